"""Live broadcast of game events to the Asteroid visualisation clients."""

from __future__ import annotations

import enum
import json
import queue
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from cardinal.responses import ApiError, Response, success

DEFAULT_CAPACITY = 256
SUCCESS_MESSAGE = "Success"
PAYLOAD_ERROR_MESSAGE = "Error payload"

_ESCAPES = str.maketrans(
    {
        "<": "\\u003c",
        ">": "\\u003e",
        "&": "\\u0026",
        "\u2028": "\\u2028",
        "\u2029": "\\u2029",
    }
)


class MessageType(enum.StrEnum):
    """The type tag of a message sent to the clients."""

    INIT = "init"
    ATTACK = "attack"
    RANK = "rank"
    STATUS = "status"
    ROUND = "round"
    EASTER_EGG = "easterEgg"
    TIME = "time"
    CLEAR = "clear"
    CLEAR_ALL = "clearAll"


@dataclass(frozen=True)
class Team:
    """A team as shown on the rank list."""

    id: int
    name: str = ""
    rank: int = 0
    image: str = ""
    score: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"Id": self.id, "Name": self.name, "Rank": self.rank, "Image": self.image, "Score": self.score}


@dataclass
class Greet:
    """Title, time, round and teams, sent to a client when it connects."""

    title: str = ""
    time: int = 0
    round: int = 0
    team: list[Team] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Title": self.title,
            "Time": self.time,
            "Round": self.round,
            "Team": [team.to_dict() for team in self.team],
        }


class PayloadError(ApiError):
    """Raised when a request payload is missing, malformed or invalid."""

    def __init__(self, error_code: int = 40038, message: str = PAYLOAD_ERROR_MESSAGE) -> None:
        super().__init__(error_code, message)


def _plain(data: Any) -> Any:
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, Mapping):
        return {str(key): _plain(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [_plain(item) for item in data]
    return data


def encode_message(message_type: str, data: Any) -> bytes:
    """Encode a message as compact JSON with its type and data."""
    text = json.dumps(
        {"Type": str(message_type), "Data": _plain(data)},
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return text.translate(_ESCAPES).encode("utf-8")


class Client:
    """A connected client with a bounded queue of outbound messages."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("client capacity must be at least 1")
        self._queue: queue.Queue[bytes] = queue.Queue(maxsize=capacity)
        self.closed = False

    def _offer(self, message: bytes) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            return False
        return True

    def pending(self) -> list[bytes]:
        """Take and return every message waiting to be sent."""
        messages = []
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except queue.Empty:
                return messages

    def close(self) -> None:
        """Stop accepting messages."""
        self.closed = True


class Hub:
    """The set of connected clients and the broadcast to all of them."""

    def __init__(self) -> None:
        self._clients: set[Client] = set()
        self._lock = threading.Lock()

    @property
    def clients(self) -> frozenset[Client]:
        """The currently registered clients."""
        with self._lock:
            return frozenset(self._clients)

    def register(self, capacity: int = DEFAULT_CAPACITY) -> Client:
        """Create and register a client whose queue holds the given number of messages."""
        client = Client(capacity)
        with self._lock:
            self._clients.add(client)
        return client

    def unregister(self, client: Client) -> None:
        """Remove and close a registered client; unknown clients are ignored."""
        with self._lock:
            if client in self._clients:
                self._clients.discard(client)
                client.close()

    def broadcast(self, message: bytes) -> None:
        """Queue a message for every client, dropping those whose queue is full."""
        with self._lock:
            for client in list(self._clients):
                if not client._offer(message):
                    client.close()
                    self._clients.discard(client)


def _lookup(form: Mapping[str, Any], name: str) -> Any:
    if name in form:
        return form[name]
    lowered = name.lower()
    for key, value in form.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return None


def _bind(payload: Any, **spec: type) -> dict[str, Any]:
    if payload is None:
        raise PayloadError()
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise PayloadError() from exc
    if not isinstance(payload, Mapping):
        raise PayloadError()

    form = {}
    for name, kind in spec.items():
        value = _lookup(payload, name)
        if kind is int:
            valid = isinstance(value, int) and not isinstance(value, bool) and value != 0
        else:
            valid = isinstance(value, str) and value != ""
        if not valid:
            raise PayloadError()
        form[name] = value
    return form


class Asteroid:
    """Builds game event messages and broadcasts them through a hub."""

    def __init__(
        self,
        refresh: Callable[[], Greet],
        hub: Hub | None = None,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self.refresh = refresh
        self.hub = hub or Hub()
        self.capacity = capacity

    def _send(self, message_type: MessageType, data: Any) -> None:
        self.hub.broadcast(encode_message(message_type, data))

    def connect(self) -> Client:
        """Register a new client and queue the greeting message for it."""
        client = self.hub.register(self.capacity)
        client._offer(encode_message(MessageType.INIT, self.refresh()))
        return client

    def send_attack(self, attacker: int, target: int) -> None:
        """Send an attack from one team to another."""
        self._send(MessageType.ATTACK, {"From": attacker, "To": target})

    def send_rank(self) -> None:
        """Send the team rank list."""
        self._send(MessageType.RANK, {"Team": self.refresh().team})

    def send_status(self, team: int, status: str) -> None:
        """Send the status of a team."""
        self._send(MessageType.STATUS, {"Id": team, "Status": status})

    def send_round(self, round_number: int) -> None:
        """Send the current round."""
        self._send(MessageType.ROUND, {"Round": round_number})

    def send_easter_egg(self) -> None:
        """Send a meteorite."""
        self._send(MessageType.EASTER_EGG, None)

    def send_time(self, time: int) -> None:
        """Send the time text."""
        self._send(MessageType.TIME, {"Time": time})

    def send_clear(self, team: int) -> None:
        """Remove the status of a team."""
        self._send(MessageType.CLEAR, {"Id": team})

    def send_clear_all(self) -> None:
        """Remove the status of every team."""
        self._send(MessageType.CLEAR_ALL, None)

    def new_round_action(self) -> None:
        """Refresh the rank, clear all statuses, and send the round and time."""
        self.send_rank()
        self.send_clear_all()
        self.send_round(self.refresh().round)
        self.send_time(self.refresh().time)

    def handle(self, action: str, payload: Any = None) -> Response:
        """Run a manager request for the given action and return its response."""
        try:
            match action:
                case MessageType.ATTACK:
                    form = _bind(payload, From=int, To=int)
                    self.send_attack(form["From"], form["To"])
                case MessageType.RANK:
                    self.send_rank()
                case MessageType.STATUS:
                    form = _bind(payload, Id=int, Status=str)
                    if form["Status"] not in ("down", "attacked"):
                        raise PayloadError(40039)
                    self.send_status(form["Id"], form["Status"])
                case MessageType.ROUND:
                    form = _bind(payload, Round=int)
                    self.send_round(form["Round"])
                case MessageType.EASTER_EGG:
                    self.send_easter_egg()
                case MessageType.TIME:
                    form = _bind(payload, Time=int)
                    self.send_time(form["Time"])
                case MessageType.CLEAR:
                    form = _bind(payload, Id=int)
                    self.send_clear(form["Id"])
                case MessageType.CLEAR_ALL:
                    self.send_clear_all()
                case _:
                    raise ValueError(f"unknown asteroid action: {action!r}")
        except ApiError as exc:
            return exc.response
        return success(SUCCESS_MESSAGE)