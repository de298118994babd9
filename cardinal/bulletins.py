"""Bulletins sent to the teams."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime

from cardinal.database import Database, format_time, parse_time

_COLUMNS = "id, created_at, updated_at, deleted_at, title, body"


class BulletinNotExistsError(LookupError):
    """Raised when a bulletin with the given id does not exist."""

    def __init__(self, message: str = "bulletin does not exist") -> None:
        super().__init__(message)


@dataclass
class Bulletin:
    """A bulletin; equality ignores the timestamps."""

    id: int
    title: str = ""
    body: str = ""
    created_at: datetime | None = field(default=None, compare=False)
    updated_at: datetime | None = field(default=None, compare=False)
    deleted_at: datetime | None = field(default=None, compare=False)

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> Bulletin:
        return cls(
            id=row["id"],
            title=row["title"],
            body=row["body"],
            created_at=parse_time(row["created_at"]),
            updated_at=parse_time(row["updated_at"]),
            deleted_at=parse_time(row["deleted_at"]),
        )


class BulletinsStore:
    """Persistent storage of bulletins."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def create(self, title: str, body: str) -> int:
        """Create a bulletin and return its id."""
        stamp = format_time(self.database.now())
        cursor = self.database.execute(
            "INSERT INTO bulletins (created_at, updated_at, title, body) VALUES (?, ?, ?, ?)",
            (stamp, stamp, title, body),
        )
        return cursor.lastrowid

    def get(self) -> list[Bulletin]:
        """Return all the bulletins in id order."""
        rows = self.database.execute(
            f"SELECT {_COLUMNS} FROM bulletins WHERE deleted_at IS NULL ORDER BY id ASC"
        )
        return [Bulletin._from_row(row) for row in rows]

    def get_by_id(self, bulletin_id: int) -> Bulletin:
        """Return the bulletin with the given id."""
        row = self.database.execute(
            f"SELECT {_COLUMNS} FROM bulletins WHERE id = ? AND deleted_at IS NULL",
            (bulletin_id,),
        ).fetchone()
        if row is None:
            raise BulletinNotExistsError()
        return Bulletin._from_row(row)

    def update(self, bulletin_id: int, title: str, body: str) -> None:
        """Replace the title and body of the bulletin with the given id."""
        self.database.execute(
            "UPDATE bulletins SET title = ?, body = ?, updated_at = ? WHERE id = ? AND deleted_at IS NULL",
            (title, body, format_time(self.database.now()), bulletin_id),
        )

    def delete_by_id(self, bulletin_id: int) -> None:
        """Delete the bulletin with the given id."""
        self.database.execute(
            "UPDATE bulletins SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
            (format_time(self.database.now()), bulletin_id),
        )

    def delete_all(self) -> None:
        """Delete all the bulletins."""
        self.database.execute(
            "UPDATE bulletins SET deleted_at = ? WHERE deleted_at IS NULL",
            (format_time(self.database.now()),),
        )