"""SQLite storage shared by the table stores."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

TABLES = ("bulletins", "challenges")

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS bulletins (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        deleted_at TEXT,
        title TEXT NOT NULL DEFAULT '',
        body TEXT NOT NULL DEFAULT ''
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_bulletins_deleted_at ON bulletins (deleted_at)",
    """
    CREATE TABLE IF NOT EXISTS challenges (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        deleted_at TEXT,
        title TEXT NOT NULL DEFAULT '',
        base_score REAL NOT NULL DEFAULT 0,
        auto_renew_flag INTEGER NOT NULL DEFAULT 0,
        renew_flag_command TEXT NOT NULL DEFAULT ''
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_challenges_deleted_at ON challenges (deleted_at)",
)


def format_time(moment: datetime) -> str:
    """Encode a timestamp for storage."""
    return moment.isoformat()


def parse_time(text: str | None) -> datetime | None:
    """Decode a stored timestamp."""
    return None if text is None else datetime.fromisoformat(text)


class Database:
    """A database connection with nested transactions and an injectable clock."""

    def __init__(self, connection: sqlite3.Connection, now: Callable[[], datetime] = datetime.now) -> None:
        connection.row_factory = sqlite3.Row
        self.connection = connection
        self.now = now
        self._depth = 0

    @classmethod
    def connect(cls, path: str | Path = ":memory:") -> Database:
        """Open the database at the given path and create the tables."""
        connection = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
        database = cls(connection)
        database.migrate()
        return database

    def migrate(self) -> None:
        """Create every table that does not exist yet."""
        for statement in _SCHEMA:
            self.connection.execute(statement)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        """Run one statement and return its cursor."""
        return self.connection.execute(sql, params)

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """Commit the enclosed work, or roll it back if an exception escapes."""
        if self._depth == 0:
            begin, commit, rollback = "BEGIN", ("COMMIT",), ("ROLLBACK",)
        else:
            name = f"sp_{self._depth}"
            begin = f"SAVEPOINT {name}"
            commit = (f"RELEASE {name}",)
            rollback = (f"ROLLBACK TO {name}", f"RELEASE {name}")

        self.connection.execute(begin)
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            for statement in rollback:
                self.connection.execute(statement)
            raise
        self._depth -= 1
        for statement in commit:
            self.connection.execute(statement)

    def close(self) -> None:
        """Close the connection."""
        self.connection.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()