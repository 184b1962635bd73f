"""Cooperative fixed-rate loop driving dispatch cycles and retention sweeps."""

from __future__ import annotations

import logging
import signal
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from spooldir.queue.dispatcher import JobDispatcher
from spooldir.queue.sweeper import RetentionSweeper

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SchedulerRunSummary:
    """Aggregate counters for CLI reporting."""

    cycles: int = 0
    sweeps: int = 0
    completed: int = 0
    failed: int = 0
    deleted: int = 0
    task_errors: int = 0


@dataclass(slots=True)
class PeriodicTask:
    """One fixed-rate timer."""

    name: str
    interval_seconds: float
    action: Callable[[], None]
    next_due: float

    def advance(self, now: float) -> None:
        # Missed ticks are coalesced into one run.
        self.next_due += self.interval_seconds
        while self.next_due <= now:
            self.next_due += self.interval_seconds


class DispatchScheduler:
    """Runs the dispatcher and the sweeper on independent timers, never concurrently."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        dispatcher: JobDispatcher,
        sweeper: RetentionSweeper,
        poll_interval_seconds: float = 5.0,
        sweep_interval_seconds: float = 3_600.0,
        sweep_initial_delay_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if poll_interval_seconds <= 0 or sweep_interval_seconds <= 0:
            raise ValueError("Scheduler intervals must be > 0.")
        self.dispatcher = dispatcher
        self.sweeper = sweeper
        self._clock = clock
        self.summary = SchedulerRunSummary()
        self._stop_requested = False
        self._stop_signal_name: str | None = None
        start = clock()
        self.tasks = [
            PeriodicTask(
                name="dispatch",
                interval_seconds=poll_interval_seconds,
                action=self._run_dispatch_cycle,
                next_due=start,
            ),
            PeriodicTask(
                name="sweep",
                interval_seconds=sweep_interval_seconds,
                action=self._run_sweep,
                next_due=start + sweep_initial_delay_seconds,
            ),
        ]

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def run_loop(self, *, max_cycles: int | None = None) -> SchedulerRunSummary:
        """Tick until stopped (or ``max_cycles`` dispatch cycles ran), then sweep once more."""

        logger.info(
            "Scheduler started: dispatch every %ss, sweep every %ss",
            self.tasks[0].interval_seconds,
            self.tasks[1].interval_seconds,
        )
        with self._signal_handlers():
            try:
                while not self._stop_requested:
                    self.tick()
                    if max_cycles is not None and self.summary.cycles >= max_cycles:
                        break
                    self._sleep_with_stop(self._seconds_until_next_due())
            finally:
                self.shutdown()
        return self.summary

    def tick(self) -> int:
        """Run every task that is due, in order; return how many ran."""

        ran = 0
        for task in self.tasks:
            if self._stop_requested:
                break
            if self._clock() < task.next_due:
                continue
            try:
                task.action()
            except Exception:
                self.summary.task_errors += 1
                logger.exception("Scheduled task %s failed", task.name)
            task.advance(self._clock())
            ran += 1
        return ran

    def shutdown(self) -> None:
        """Final retention sweep before the guard is released."""

        logger.info("Scheduler stopping (signal=%s)", self._stop_signal_name or "none")
        try:
            self._run_sweep()
        except Exception:
            self.summary.task_errors += 1
            logger.exception("Final retention sweep failed")

    def request_stop(self, *, signal_name: str = "manual") -> None:
        self._stop_requested = True
        self._stop_signal_name = signal_name

    def _run_dispatch_cycle(self) -> None:
        cycle = self.dispatcher.run_cycle(should_stop=lambda: self._stop_requested)
        self.summary.cycles += 1
        self.summary.completed += cycle.completed
        self.summary.failed += cycle.failed
        if cycle.scanned:
            logger.info(
                "Dispatch cycle: scanned=%d completed=%d claim_lost=%d failed=%d",
                cycle.scanned,
                cycle.completed,
                cycle.claim_lost,
                cycle.failed,
            )

    def _run_sweep(self) -> None:
        sweep = self.sweeper.sweep()
        self.summary.sweeps += 1
        self.summary.deleted += sweep.deleted

    def _seconds_until_next_due(self) -> float:
        next_due = min(task.next_due for task in self.tasks)
        return max(0.0, next_due - self._clock())

    def _sleep_with_stop(self, seconds: float) -> None:
        deadline = time.monotonic() + seconds
        while not self._stop_requested and time.monotonic() < deadline:
            time.sleep(min(0.1, max(0.0, deadline - time.monotonic())))

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        if not hasattr(signal, "SIGINT"):
            yield
            return

        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _handler(signum: int, _: object | None) -> None:
            try:
                name = signal.Signals(signum).name
            except ValueError:
                name = str(signum)
            self.request_stop(signal_name=name)

        try:
            signal.signal(signal.SIGINT, _handler)
            signal.signal(signal.SIGTERM, _handler)
            installed = True
        except ValueError:
            # Signal handlers can only be installed in main thread.
            installed = False
        try:
            yield
        finally:
            if installed:
                signal.signal(signal.SIGINT, original_sigint)
                signal.signal(signal.SIGTERM, original_sigterm)
