"""AWD challenges."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from cardinal.database import Database, format_time, parse_time

_COLUMNS = "id, created_at, updated_at, deleted_at, title, base_score, auto_renew_flag, renew_flag_command"


class ChallengeAlreadyExistsError(ValueError):
    """Raised when a challenge with the same title already exists."""

    def __init__(self, message: str = "challenge already exits") -> None:
        super().__init__(message)


class ChallengeNotExistsError(LookupError):
    """Raised when a challenge with the given id does not exist."""

    def __init__(self, message: str = "challenge does not exist") -> None:
        super().__init__(message)


@dataclass
class ChallengeOptions:
    """The editable fields of a challenge."""

    title: str
    base_score: float = 0.0
    auto_renew_flag: bool = False
    renew_flag_command: str = ""


@dataclass
class Challenge:
    """A challenge; equality ignores the timestamps."""

    id: int
    title: str = ""
    base_score: float = 0.0
    auto_renew_flag: bool = False
    renew_flag_command: str = ""
    created_at: datetime | None = field(default=None, compare=False)
    updated_at: datetime | None = field(default=None, compare=False)
    deleted_at: datetime | None = field(default=None, compare=False)

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> Challenge:
        return cls(
            id=row["id"],
            title=row["title"],
            base_score=row["base_score"],
            auto_renew_flag=bool(row["auto_renew_flag"]),
            renew_flag_command=row["renew_flag_command"],
            created_at=parse_time(row["created_at"]),
            updated_at=parse_time(row["updated_at"]),
            deleted_at=parse_time(row["deleted_at"]),
        )


class ChallengesStore:
    """Persistent storage of challenges."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def _insert(self, options: ChallengeOptions) -> Challenge:
        exists = self.database.execute(
            "SELECT 1 FROM challenges WHERE title = ? AND deleted_at IS NULL",
            (options.title,),
        ).fetchone()
        if exists is not None:
            raise ChallengeAlreadyExistsError()

        moment = self.database.now()
        stamp = format_time(moment)
        cursor = self.database.execute(
            "INSERT INTO challenges (created_at, updated_at, title, base_score, auto_renew_flag,"
            " renew_flag_command) VALUES (?, ?, ?, ?, ?, ?)",
            (
                stamp,
                stamp,
                options.title,
                float(options.base_score),
                int(options.auto_renew_flag),
                options.renew_flag_command,
            ),
        )
        return Challenge(
            id=cursor.lastrowid,
            title=options.title,
            base_score=float(options.base_score),
            auto_renew_flag=options.auto_renew_flag,
            renew_flag_command=options.renew_flag_command,
            created_at=moment,
            updated_at=moment,
        )

    def create(self, options: ChallengeOptions) -> int:
        """Create a challenge and return its id."""
        return self._insert(options).id

    def batch_create(self, options: Iterable[ChallengeOptions]) -> list[Challenge]:
        """Create all the challenges or none of them, and return them."""
        with self.database.transaction():
            return [self._insert(option) for option in options]

    def get(self) -> list[Challenge]:
        """Return all the challenges in id order."""
        rows = self.database.execute(
            f"SELECT {_COLUMNS} FROM challenges WHERE deleted_at IS NULL ORDER BY id ASC"
        )
        return [Challenge._from_row(row) for row in rows]

    def _find(self, challenge_id: int) -> Challenge | None:
        row = self.database.execute(
            f"SELECT {_COLUMNS} FROM challenges WHERE id = ? AND deleted_at IS NULL",
            (challenge_id,),
        ).fetchone()
        return None if row is None else Challenge._from_row(row)

    def get_by_id(self, challenge_id: int) -> Challenge:
        """Return the challenge with the given id."""
        challenge = self._find(challenge_id)
        if challenge is None:
            raise ChallengeNotExistsError()
        return challenge

    def get_by_ids(self, *args: int) -> list[Challenge]:
        """Return the challenges with the given ids, skipping those that do not exist."""
        found = (self._find(challenge_id) for challenge_id in args)
        return [challenge for challenge in found if challenge is not None]

    def update(self, challenge_id: int, options: ChallengeOptions) -> None:
        """Replace every editable field of the challenge with the given id."""
        self.database.execute(
            "UPDATE challenges SET title = ?, base_score = ?, auto_renew_flag = ?, renew_flag_command = ?,"
            " updated_at = ? WHERE id = ? AND deleted_at IS NULL",
            (
                options.title,
                float(options.base_score),
                int(options.auto_renew_flag),
                options.renew_flag_command,
                format_time(self.database.now()),
                challenge_id,
            ),
        )

    def delete_by_id(self, challenge_id: int) -> None:
        """Delete the challenge with the given id."""
        self.database.execute(
            "UPDATE challenges SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
            (format_time(self.database.now()), challenge_id),
        )

    def delete_all(self) -> None:
        """Delete all the challenges."""
        self.database.execute(
            "UPDATE challenges SET deleted_at = ? WHERE deleted_at IS NULL",
            (format_time(self.database.now()),),
        )