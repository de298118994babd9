"""Loading and saving of the TOML configuration file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import tomli_w

DEFAULT_PATH = "./conf/Cardinal.toml"
VERSION = "develop"

_ZERO_TIME = datetime(1, 1, 1)
_MISSING = object()


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded, mapped or written."""


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {value!r}")
    return value


def _integer(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    return value


def _unsigned(value: Any) -> int:
    number = _integer(value)
    if number < 0:
        raise ValueError(f"expected a non-negative integer, got {number}")
    return number


def _boolean(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected a boolean, got {value!r}")
    return value


def _local_datetime(value: Any) -> datetime:
    if not isinstance(value, datetime) or value.tzinfo is not None:
        raise TypeError(f"expected a local date-time, got {value!r}")
    return value


def _periods(value: Any) -> list[Period]:
    if not isinstance(value, list):
        raise TypeError(f"expected an array of tables, got {value!r}")
    return [_build(Period, item) for item in value]


def _key(name: str, convert: Callable[[Any], Any], *, skip: bool = False) -> dict[str, Any]:
    return {"key": name, "convert": convert, "skip": skip}


def _build(cls, table: Any):
    if not isinstance(table, dict):
        raise TypeError(f"expected a table, got {table!r}")
    lookup = {str(k).lower(): v for k, v in table.items()}
    values = {}
    for spec in fields(cls):
        meta = spec.metadata
        if meta.get("skip"):
            continue
        raw = table.get(meta["key"], lookup.get(meta["key"].lower(), _MISSING))
        if raw is _MISSING:
            continue
        values[spec.name] = meta["convert"](raw)
    return cls(**values)


def _dump(obj) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for spec in fields(obj):
        meta = spec.metadata
        if meta.get("skip"):
            continue
        value = getattr(obj, spec.name)
        if isinstance(value, list):
            value = [_dump(item) for item in value]
        result[meta["key"]] = value
    return result


@dataclass
class Period:
    """A span of time given by its start and end."""

    start_at: datetime = field(default=_ZERO_TIME, metadata=_key("StartAt", _local_datetime))
    end_at: datetime = field(default=_ZERO_TIME, metadata=_key("EndAt", _local_datetime))


@dataclass
class AppConfig:
    """The [App] section."""

    name: str = field(default="", metadata=_key("Name", _string))
    version: str = field(default="", metadata=_key("Version", _string, skip=True))
    language: str = field(default="", metadata=_key("Language", _string))
    http_addr: str = field(default="", metadata=_key("HTTPAddr", _string))
    separate_frontend: bool = field(default=False, metadata=_key("SeparateFrontend", _boolean))
    enable_sentry: bool = field(default=False, metadata=_key("EnableSentry", _boolean))
    security_salt: str = field(default="", metadata=_key("SecuritySalt", _string))


@dataclass
class DatabaseConfig:
    """The [Database] section."""

    type: str = field(default="", metadata=_key("Type", _string))
    host: str = field(default="", metadata=_key("Host", _string))
    port: int = field(default=0, metadata=_key("Port", _unsigned))
    name: str = field(default="", metadata=_key("Name", _string))
    user: str = field(default="", metadata=_key("User", _string))
    password: str = field(default="", metadata=_key("Password", _string))
    ssl_mode: str = field(default="", metadata=_key("SSLMode", _string))
    max_open_conns: int = field(default=0, metadata=_key("MaxOpenConns", _integer))
    max_idle_conns: int = field(default=0, metadata=_key("MaxIdleConns", _integer))


@dataclass
class GameConfig:
    """The [Game] section."""

    start_at: datetime = field(default=_ZERO_TIME, metadata=_key("StartAt", _local_datetime))
    end_at: datetime = field(default=_ZERO_TIME, metadata=_key("EndAt", _local_datetime))
    pause_time: list[Period] = field(default_factory=list, metadata=_key("PauseTime", _periods))
    round_duration: int = field(default=0, metadata=_key("RoundDuration", _unsigned))
    flag_prefix: str = field(default="", metadata=_key("FlagPrefix", _string))
    flag_suffix: str = field(default="", metadata=_key("FlagSuffix", _string))
    attack_score: int = field(default=0, metadata=_key("AttackScore", _integer))
    check_down_score: int = field(default=0, metadata=_key("CheckDownScore", _integer))


_SECTIONS = (("App", "app", AppConfig), ("Database", "database", DatabaseConfig), ("Game", "game", GameConfig))


@dataclass
class Config:
    """The whole configuration file."""

    app: AppConfig = field(default_factory=AppConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    game: GameConfig = field(default_factory=GameConfig)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as TOML-ready nested tables."""
        return {section: _dump(getattr(self, attr)) for section, attr, _ in _SECTIONS}


def parse(data: dict[str, Any]) -> Config:
    """Map parsed TOML tables onto a Config."""
    sections = {}
    for section, attr, cls in _SECTIONS:
        table = data.get(section)
        if not isinstance(table, dict):
            raise ConfigError(f"missing [{section}] section")
        try:
            sections[attr] = _build(cls, table)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"mapping [{section}] section: {exc}") from exc
    return Config(**sections)


def load(path: str | Path | None = None) -> Config:
    """Read and parse the configuration file, the default one if no path is given."""
    target = Path(path or DEFAULT_PATH)
    try:
        with target.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"load toml config file: {exc}") from exc
    return parse(data)


def save(config: Config, path: str | Path | None = None) -> None:
    """Write the configuration to a file, the default one if no path is given."""
    target = Path(path or DEFAULT_PATH)
    try:
        text = tomli_w.dumps(config.to_dict())
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"marshal: {exc}") from exc
    try:
        target.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"write file: {exc}") from exc