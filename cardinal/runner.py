"""Background processor that drives the game clock round by round."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from cardinal.clock import Clock, Status

log = logging.getLogger(__name__)


@dataclass
class ClockHooks:
    """Actions the runner performs as the game moves between rounds and states.

    A hook left as None is skipped.
    """

    set_rank_title: Callable[[], None] | None = None
    set_rank_list: Callable[[], None] | None = None
    clean_game_box_status: Callable[[], None] | None = None
    calculate_scores: Callable[[int], None] | None = None
    on_begin: Callable[[int | None], None] | None = None
    on_pause: Callable[[], None] | None = None
    on_end: Callable[[], None] | None = None


class ClockRunner:
    """Updates a Clock from the wall time and fires hooks on state changes."""

    def __init__(
        self,
        clock: Clock,
        hooks: ClockHooks | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.clock = clock
        self.hooks = hooks or ClockHooks()
        self._now = now
        self._latest_calculated_round = 0
        self._finished = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Whether the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def _call(self, description: str, hook: Callable[..., None] | None, *args: Any) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            log.exception("Failed to %s", description)

    def _refresh_rank(self) -> None:
        self._call("set rank title", self.hooks.set_rank_title)
        self._call("set rank list", self.hooks.set_rank_list)

    def tick(self, now: datetime) -> Status:
        """Advance the clock to the given moment and return its status."""
        clock = self.clock

        if now < clock.start_at:
            clock.status = Status.WAIT
            return clock.status

        if now > clock.end_at:
            if not self._finished:
                self._finished = True
                self._call("calculate the last round score", self.hooks.calculate_scores, clock.total_round)
                self._call("send the end hook", self.hooks.on_end)
            clock.status = Status.END
            return clock.status

        index = next(
            (i for i, (begin, end) in enumerate(clock.run_time) if begin < now < end),
            None,
        )
        if index is None:
            if clock.status != Status.PAUSE:
                self._call("send the pause hook", self.hooks.on_pause)
            clock.status = Status.PAUSE
            return clock.status

        clock.status = Status.RUNNING
        finished_cycles = sum((end - begin for begin, end in clock.run_time[:index]), timedelta(0))
        running = finished_cycles + (now - clock.run_time[index][0])

        current_round = -(-running // clock.round_duration)
        clock.round_remain_duration = current_round * clock.round_duration - running

        if clock.current_round < current_round:
            clock.current_round = current_round
            if current_round == 1:
                self._call("send the begin hook", self.hooks.on_begin, None)
            self._call("send the begin hook", self.hooks.on_begin, current_round)

            self._call("clean game boxes' status", self.hooks.clean_game_box_status)
            self._refresh_rank()

            # Catch up on rounds whose score was never calculated, e.g. after a restart.
            if self._latest_calculated_round < current_round - 1:
                self._call("calculate score", self.hooks.calculate_scores, current_round - 1)
                self._latest_calculated_round = current_round - 1

        return clock.status

    def run(self, interval: float = 1.0) -> None:
        """Tick every interval seconds until stopped."""
        self._refresh_rank()
        while not self._stop_event.is_set():
            self.tick(self._now())
            self._stop_event.wait(interval)

    def start(self) -> None:
        """Run the clock in a background thread."""
        if self.running:
            raise RuntimeError("clock runner already started")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, name="game-clock", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the background thread and wait for it to finish."""
        if self._thread is None:
            raise RuntimeError("clock runner is not running")
        self._stop_event.set()
        self._thread.join()
        self._thread = None