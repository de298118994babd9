"""Docker Hub image lookup and validation of game box deployment requests."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import requests

from cardinal.responses import ApiError

IMAGES_URL = "https://hub.docker.com/v2/repositories/{user}/{image}/tags/{tag}/images"
REQUEST_TIMEOUT = 5.0
MAX_PORT = 65536

_EXPOSE = re.compile(r"EXPOSE[\t\n\f\r ]+([0-9]+)")
_INT_MAX = 2**63 - 1


class DockerHubError(ApiError):
    """Raised when an image cannot be looked up on Docker Hub."""


class DeployError(ApiError):
    """Raised when a deployment request is invalid."""


@dataclass
class PortMapping:
    """A port inside the container and the port it is published on."""

    inside: int = 0
    outside: int = 0


@dataclass
class DeployForm:
    """A request to deploy a challenge's game boxes from a Docker image."""

    image: str = ""
    challenge: int = 0
    ip: str = ""
    service_port: int = 0
    ssh_port: int = 0
    root_ssh_name: str = ""
    user_ssh_name: str = ""
    description: str = ""
    ports: list[PortMapping] | None = None


def _payload_error(code: int) -> DeployError:
    return DeployError(code, "payload error")


def _decode_images(text: str) -> list[dict[str, Any]]:
    broken = DockerHubError(50029, "dockerhub json unmarshal error")
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise broken from exc
    if data is None:
        return []
    if not isinstance(data, list):
        raise broken

    images = []
    for item in data:
        item = item or {}
        if not isinstance(item, dict):
            raise broken
        layers = item.get("layers") or []
        if not isinstance(layers, list):
            raise broken
        for layer in layers:
            if layer is not None and not isinstance(layer, dict):
                raise broken
            instruction = (layer or {}).get("instruction")
            if instruction is not None and not isinstance(instruction, str):
                raise broken
        images.append(item)
    return images


def parse_exposed_ports(images: Sequence[dict[str, Any]]) -> list[int]:
    """Return the port of the first EXPOSE in each layer of the first image."""
    if not images:
        raise DockerHubError(50030, "dockerhub repo is empty")

    ports = []
    for layer in images[0].get("layers") or []:
        match = _EXPOSE.search((layer or {}).get("instruction") or "")
        if match is None:
            continue
        port = int(match.group(1))
        if port <= _INT_MAX:
            ports.append(port)
    return ports


def fetch_image_data(
    user: str,
    image: str,
    tag: str,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    """Look up an image tag on Docker Hub and return its name, reference and exposed ports."""
    if not all(isinstance(value, str) and value for value in (user, image, tag)):
        raise DockerHubError(40041, "payload error")

    url = IMAGES_URL.format(user=user, image=image, tag=tag)
    try:
        if session is None:
            with requests.Session() as own_session:
                response = own_session.get(url, timeout=REQUEST_TIMEOUT)
        else:
            response = session.get(url, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise DockerHubError(50028, "request dockerhub failed") from exc
    if response.status_code != 200:
        raise DockerHubError(50028, "request dockerhub failed")

    images = _decode_images(response.text)
    return {
        "Image": f"{user}/{image}:{tag}",
        "Name": image,
        "Ports": parse_exposed_ports(images),
    }


def _positive(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _filled(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _port_ok(port: int) -> bool:
    return 0 < port <= MAX_PORT


def validate_deploy(form: DeployForm, challenge_exists: Callable[[int], bool]) -> DeployForm:
    """Check a deployment request and return it; raise DeployError if it is invalid."""
    numbers = (form.challenge, form.service_port, form.ssh_port)
    texts = (form.image, form.ip, form.root_ssh_name, form.user_ssh_name, form.description)
    if not all(_positive(value) for value in numbers) or not all(_filled(value) for value in texts):
        raise _payload_error(40042)
    if form.ports is None:
        raise _payload_error(40042)
    for mapping in form.ports:
        for value in (mapping.inside, mapping.outside):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise _payload_error(40042)

    if not challenge_exists(form.challenge):
        raise DeployError(40406, "payload error")

    if not _port_ok(form.service_port) or not _port_ok(form.ssh_port):
        raise DeployError(40043, "error port")
    for first_index, first in enumerate(form.ports):
        if not _port_ok(first.inside) or not _port_ok(first.outside):
            raise DeployError(40043, "error port")
        for second_index, second in enumerate(form.ports):
            if first_index != second_index and (
                first.inside == second.inside or first.outside == second.outside
            ):
                raise DeployError(40044, "error port")

    if form.root_ssh_name == form.user_ssh_name:
        raise DeployError(40045, "name repeat")

    return form