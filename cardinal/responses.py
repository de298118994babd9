"""JSON response bodies and query-string helpers for the HTTP handlers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from http import HTTPStatus
from typing import Any
from urllib.parse import parse_qs

Response = tuple[int, dict[str, Any]]

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


class ApiError(Exception):
    """An error that a handler reports to the client as a JSON body."""

    def __init__(self, error_code: int, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message

    @property
    def status_code(self) -> int:
        """The HTTP status, taken from the leading digits of the error code."""
        return self.error_code // 100

    @property
    def response(self) -> Response:
        """The status and body that report this error."""
        return error(self.error_code, self.message)


def success(*args: Any) -> Response:
    """Return a 200 response holding the single given value, or an empty string."""
    data = args[0] if len(args) == 1 else ""
    return int(HTTPStatus.OK), {"error": 0, "data": data}


def error(error_code: int, message: str) -> Response:
    """Return an error response; the status is the error code divided by 100."""
    return error_code // 100, {"error": error_code, "msg": message}


def server_error() -> Response:
    """Return the generic internal server error response."""
    return error(int(HTTPStatus.INTERNAL_SERVER_ERROR) * 100, "Internal server error")


def _query_value(query: str | Mapping[str, Any], name: str) -> str:
    if isinstance(query, str):
        values = parse_qs(query.lstrip("?"), keep_blank_values=True).get(name)
        return values[0] if values else ""
    value = query.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else ""
    return str(value)


def query_int(query: str | Mapping[str, Any], name: str) -> int:
    """Return the named query parameter as an integer, or 0 if it is not one."""
    text = _query_value(query, name)
    if not _INTEGER.fullmatch(text):
        return 0
    return max(_INT_MIN, min(_INT_MAX, int(text)))


def query_float(query: str | Mapping[str, Any], name: str) -> float:
    """Return the named query parameter as a float, or 0.0 if it is not one."""
    text = _query_value(query, name)
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0