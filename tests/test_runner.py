import threading
from datetime import datetime, timedelta

import pytest

from cardinal.clock import Clock, Status
from cardinal.conf import GameConfig, Period
from cardinal.runner import ClockHooks, ClockRunner

START = datetime(2021, 10, 3, 12, 0, 0)
END = datetime(2021, 10, 3, 14, 0, 0)
ROUND = 10


def make_runner(pause_time=None, clean=None):
    game = GameConfig(start_at=START, end_at=END, round_duration=ROUND, pause_time=pause_time or [])
    calls = []
    hooks = ClockHooks(
        set_rank_title=lambda: calls.append(("title",)),
        set_rank_list=lambda: calls.append(("rank",)),
        clean_game_box_status=clean or (lambda: calls.append(("clean",))),
        calculate_scores=lambda r: calls.append(("score", r)),
        on_begin=lambda r: calls.append(("begin", r)),
        on_pause=lambda: calls.append(("pause",)),
        on_end=lambda: calls.append(("end",)),
    )
    return ClockRunner(Clock.from_game(game), hooks, now=lambda: START - timedelta(days=1)), calls


def test_wait_before_start():
    runner, calls = make_runner()
    assert runner.tick(START - timedelta(minutes=1)) == Status.WAIT
    assert calls == []
    assert runner.clock.current_round == 0


def test_first_round_begins():
    runner, calls = make_runner()
    assert runner.tick(START + timedelta(minutes=5)) == Status.RUNNING
    assert runner.clock.current_round == 1
    assert [c for c in calls if c[0] == "begin"] == [("begin", None), ("begin", 1)]
    assert runner.clock.round_remain_duration == timedelta(minutes=5)
    assert not [c for c in calls if c[0] == "score"]


def test_same_round_does_not_repeat_hooks():
    runner, calls = make_runner()
    runner.tick(START + timedelta(minutes=2))
    before = list(calls)
    runner.tick(START + timedelta(minutes=3))
    assert calls == before


def test_next_round_calculates_previous_score():
    runner, calls = make_runner()
    runner.tick(START + timedelta(minutes=5))
    runner.tick(START + timedelta(minutes=ROUND + 5))
    assert runner.clock.current_round == 2
    assert ("score", 1) in calls
    assert calls.count(("clean",)) == 2


def test_catches_up_after_restart():
    runner, calls = make_runner()
    runner.tick(START + timedelta(minutes=2 * ROUND + 5))
    assert runner.clock.current_round == 3
    assert ("score", 2) in calls
    assert ("begin", None) not in calls


def test_remaining_duration_within_round():
    runner, _ = make_runner()
    for minutes in (1, 9, 11, 37, 119):
        runner.tick(START + timedelta(minutes=minutes))
        remain = runner.clock.round_remain_duration
        assert timedelta(0) <= remain < timedelta(minutes=ROUND)


def test_pause_fires_once():
    pause = [Period(datetime(2021, 10, 3, 12, 30), datetime(2021, 10, 3, 13, 0))]
    runner, calls = make_runner(pause_time=pause)
    assert runner.tick(datetime(2021, 10, 3, 12, 40)) == Status.PAUSE
    assert runner.tick(datetime(2021, 10, 3, 12, 45)) == Status.PAUSE
    assert calls.count(("pause",)) == 1


def test_end_calculates_last_round_once():
    runner, calls = make_runner()
    assert runner.tick(END + timedelta(minutes=1)) == Status.END
    assert runner.tick(END + timedelta(minutes=2)) == Status.END
    assert calls.count(("score", runner.clock.total_round)) == 1
    assert calls.count(("end",)) == 1


def test_failing_hook_does_not_stop_tick():
    def broken():
        raise RuntimeError("boom")

    runner, calls = make_runner(clean=broken)
    assert runner.tick(START + timedelta(minutes=5)) == Status.RUNNING
    assert ("title",) in calls
    assert ("rank",) in calls


def test_start_and_stop():
    started = threading.Event()
    game = GameConfig(start_at=START, end_at=END, round_duration=ROUND)
    runner = ClockRunner(
        Clock.from_game(game),
        ClockHooks(set_rank_title=started.set),
        now=lambda: START - timedelta(days=1),
    )
    runner.start()
    assert started.wait(timeout=5)
    with pytest.raises(RuntimeError):
        runner.start()
    runner.stop()
    assert runner.running is False
    assert runner.clock.status == Status.WAIT


def test_stop_without_start_raises():
    runner, _ = make_runner()
    with pytest.raises(RuntimeError):
        runner.stop()