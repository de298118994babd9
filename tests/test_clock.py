from datetime import datetime, timedelta

import pytest

from cardinal.clock import (
    Clock,
    ClockError,
    RestTimeFormatError,
    RestTimeListOrderError,
    RestTimeOverflowError,
    StartTimeOrderError,
    Status,
    ZeroRoundDurationError,
    combine_duration,
)
from cardinal.conf import GameConfig, Period


def date(year, month, day, hour, minute, second):
    return datetime(year, month, day, hour, minute, second)


@pytest.mark.parametrize(
    ("clock", "error"),
    [
        (
            Clock(start_at=date(2021, 10, 3, 12, 0, 0), end_at=date(2021, 10, 3, 5, 0, 0)),
            StartTimeOrderError,
        ),
        (
            Clock(
                start_at=date(2021, 10, 3, 12, 0, 0),
                end_at=date(2021, 10, 5, 12, 0, 0),
                rest_time=[[date(2021, 10, 3, 20, 0, 0)]],
            ),
            RestTimeFormatError,
        ),
        (
            Clock(
                start_at=date(2021, 10, 3, 12, 0, 0),
                end_at=date(2021, 10, 5, 12, 0, 0),
                rest_time=[
                    [date(2021, 10, 2, 20, 0, 0), date(2021, 10, 4, 8, 0, 0)],
                    [date(2021, 10, 4, 20, 0, 0), date(2021, 10, 6, 8, 0, 0)],
                ],
            ),
            RestTimeOverflowError,
        ),
        (
            Clock(
                start_at=date(2021, 10, 3, 12, 0, 0),
                end_at=date(2021, 10, 5, 12, 0, 0),
                rest_time=[
                    [date(2021, 10, 4, 20, 0, 0), date(2021, 10, 5, 8, 0, 0)],
                    [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 8, 0, 0)],
                ],
            ),
            RestTimeListOrderError,
        ),
    ],
    ids=["start time order", "rest time format", "rest time overflow", "rest time order"],
)
def test_check_config_errors(clock, error):
    with pytest.raises(error):
        clock.check_config()


def test_error_messages():
    assert str(StartTimeOrderError()) == "start time should before end time"
    assert str(ZeroRoundDurationError()) == "round duration is zero"
    assert issubclass(RestTimeOverflowError, ClockError)


def test_from_game_normal():
    game = GameConfig(
        start_at=date(2021, 10, 3, 12, 0, 0),
        end_at=date(2021, 10, 5, 12, 0, 0),
        round_duration=60,
        pause_time=[
            Period(date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 8, 0, 0)),
            Period(date(2021, 10, 4, 20, 0, 0), date(2021, 10, 5, 8, 0, 0)),
        ],
    )
    clock = Clock.from_game(game)
    assert clock.run_time == [
        [date(2021, 10, 3, 12, 0, 0), date(2021, 10, 3, 20, 0, 0)],
        [date(2021, 10, 4, 8, 0, 0), date(2021, 10, 4, 20, 0, 0)],
        [date(2021, 10, 5, 8, 0, 0), date(2021, 10, 5, 12, 0, 0)],
    ]
    assert clock.total_round == 24
    assert clock.status == Status.WAIT


def test_from_game_same_start_and_end():
    game = GameConfig(
        start_at=date(2021, 10, 3, 12, 0, 0),
        end_at=date(2021, 10, 3, 12, 0, 0),
        round_duration=10,
    )
    clock = Clock.from_game(game)
    assert clock.run_time == [[date(2021, 10, 3, 12, 0, 0), date(2021, 10, 3, 12, 0, 0)]]
    assert clock.total_round == 0


def test_from_game_rounds_up():
    game = GameConfig(
        start_at=date(2021, 10, 3, 12, 0, 0),
        end_at=date(2021, 10, 3, 12, 25, 0),
        round_duration=10,
    )
    clock = Clock.from_game(game)
    assert clock.round_duration == timedelta(minutes=10)
    assert clock.total_round == 3


def test_from_game_zero_round_duration():
    game = GameConfig(start_at=date(2021, 10, 3, 12, 0, 0), end_at=date(2021, 10, 5, 12, 0, 0))
    with pytest.raises(ZeroRoundDurationError):
        Clock.from_game(game)


def test_from_game_checks_config():
    game = GameConfig(
        start_at=date(2021, 10, 3, 12, 0, 0),
        end_at=date(2021, 10, 3, 5, 0, 0),
        round_duration=10,
    )
    with pytest.raises(StartTimeOrderError):
        Clock.from_game(game)


def test_from_game_combines_rest_time():
    game = GameConfig(
        start_at=date(2021, 10, 3, 12, 0, 0),
        end_at=date(2021, 10, 5, 12, 0, 0),
        round_duration=60,
        pause_time=[
            Period(date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 20, 0, 0)),
            Period(date(2021, 10, 4, 8, 0, 0), date(2021, 10, 5, 8, 0, 0)),
        ],
    )
    clock = Clock.from_game(game)
    assert clock.rest_time == [[date(2021, 10, 3, 20, 0, 0), date(2021, 10, 5, 8, 0, 0)]]


@pytest.mark.parametrize(
    ("durations", "want"),
    [
        ([], []),
        (
            [
                [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 8, 0, 0)],
                [date(2021, 10, 4, 20, 0, 0), date(2021, 10, 5, 8, 0, 0)],
            ],
            [
                [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 8, 0, 0)],
                [date(2021, 10, 4, 20, 0, 0), date(2021, 10, 5, 8, 0, 0)],
            ],
        ),
        (
            [
                [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 5, 20, 0, 0)],
                [date(2021, 10, 4, 8, 0, 0), date(2021, 10, 5, 8, 0, 0)],
            ],
            [[date(2021, 10, 3, 20, 0, 0), date(2021, 10, 5, 20, 0, 0)]],
        ),
        (
            [
                [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 20, 0, 0)],
                [date(2021, 10, 4, 8, 0, 0), date(2021, 10, 5, 8, 0, 0)],
            ],
            [[date(2021, 10, 3, 20, 0, 0), date(2021, 10, 5, 8, 0, 0)]],
        ),
        (
            [
                [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 8, 0, 0)],
                [date(2021, 10, 4, 0, 0, 0), date(2021, 10, 4, 8, 0, 0)],
                [date(2021, 10, 4, 13, 0, 0), date(2021, 10, 5, 8, 0, 0)],
                [date(2021, 10, 4, 15, 0, 0), date(2021, 10, 5, 0, 0, 0)],
            ],
            [
                [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 8, 0, 0)],
                [date(2021, 10, 4, 13, 0, 0), date(2021, 10, 5, 8, 0, 0)],
            ],
        ),
    ],
    ids=["empty duration time", "no overlap", "former includes latter", "overlap", "complex case"],
)
def test_combine_duration(durations, want):
    assert combine_duration(durations) == want


def test_combine_duration_is_idempotent():
    durations = [
        [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 20, 0, 0)],
        [date(2021, 10, 4, 8, 0, 0), date(2021, 10, 5, 8, 0, 0)],
        [date(2021, 10, 5, 9, 0, 0), date(2021, 10, 5, 10, 0, 0)],
    ]
    once = combine_duration(durations)
    assert combine_duration(once) == once


def test_combine_duration_leaves_input_alone():
    durations = [
        [date(2021, 10, 3, 20, 0, 0), date(2021, 10, 4, 20, 0, 0)],
        [date(2021, 10, 4, 8, 0, 0), date(2021, 10, 5, 8, 0, 0)],
    ]
    snapshot = [list(pair) for pair in durations]
    combine_duration(durations)
    assert durations == snapshot