"""Game clock: competition time span, rest periods and round count."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from cardinal.conf import GameConfig


class Status(enum.IntEnum):
    """State of the game clock."""

    WAIT = 0
    RUNNING = 1
    PAUSE = 2
    END = 3


class ClockError(Exception):
    """Base class for clock configuration errors."""

    message = "clock error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class ZeroRoundDurationError(ClockError):
    message = "round duration is zero"


class StartTimeOrderError(ClockError):
    message = "start time should before end time"


class RestTimeFormatError(ClockError):
    message = "rest time format error"


class RestTimeOrderError(ClockError):
    message = "rest start time should before end time"


class RestTimeOverflowError(ClockError):
    message = "rest time overflow"


class RestTimeListOrderError(ClockError):
    message = "rest time list should in order"


@dataclass
class Clock:
    """Timing state of a competition."""

    start_at: datetime
    end_at: datetime
    round_duration: timedelta = timedelta(0)
    rest_time: list[list[datetime]] = field(default_factory=list)
    run_time: list[list[datetime]] = field(default_factory=list)
    total_round: int = 0
    current_round: int = 0
    round_remain_duration: timedelta = timedelta(0)
    status: Status = Status.WAIT

    @classmethod
    def from_game(cls, game: GameConfig) -> Clock:
        """Build a checked clock from the game settings."""
        if game.round_duration == 0:
            raise ZeroRoundDurationError()

        clock = cls(
            start_at=game.start_at,
            end_at=game.end_at,
            round_duration=timedelta(minutes=game.round_duration),
            rest_time=[[period.start_at, period.end_at] for period in game.pause_time],
        )
        clock.check_config()
        clock.rest_time = combine_duration(clock.rest_time)
        clock.run_time = _run_cycles(clock.start_at, clock.end_at, clock.rest_time)

        total = sum((end - start for start, end in clock.run_time), timedelta(0))
        clock.total_round = -(-total // clock.round_duration)
        return clock

    def check_config(self) -> None:
        """Check the order of the start and end time and of every rest period."""
        if self.start_at > self.end_at:
            raise StartTimeOrderError()

        previous_start = None
        for duration in self.rest_time:
            if len(duration) != 2:
                raise RestTimeFormatError()
            start, end = duration
            if start > end:
                raise RestTimeOrderError()
            if start < self.start_at or end > self.end_at:
                raise RestTimeOverflowError()
            if previous_start is not None and start < previous_start:
                raise RestTimeListOrderError()
            previous_start = start


def _run_cycles(start_at: datetime, end_at: datetime, rest_time: list[list[datetime]]) -> list[list[datetime]]:
    boundaries = [start_at]
    for rest_start, rest_end in rest_time:
        boundaries.extend((rest_start, rest_end))
    boundaries.append(end_at)
    return [list(pair) for pair in zip(boundaries[::2], boundaries[1::2])]


def combine_duration(durations: list[list[datetime]]) -> list[list[datetime]]:
    """Merge overlapping neighbouring durations; the operation is idempotent."""
    combined: list[list[datetime]] = []
    for begin, end in durations:
        if combined and combined[-1][1] > begin:
            head_begin, head_end = combined[-1]
            combined[-1] = [head_begin, max(head_end, end)]
        else:
            combined.append([begin, end])
    return combined