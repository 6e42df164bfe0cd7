from __future__ import annotations

import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ScheduledCall:
    """Handle for a deferred call. Cancelling is idempotent."""

    def __init__(self, fn: Callable[[], None], delay: float) -> None:
        self.fn = fn
        self.delay = delay
        self._cancelled = False
        self._done = False
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    def cancel(self) -> None:
        if self._done or self._cancelled:
            return
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def _run(self) -> None:
        if self._cancelled:
            return
        self._done = True
        try:
            self.fn()
        except Exception:
            logger.exception("Scheduled call %r failed", self.fn)


class Scheduler(ABC):
    """Deferred and background execution used by the game manager."""

    @abstractmethod
    def call_later(self, delay: float, fn: Callable[[], None]) -> ScheduledCall:
        """Run ``fn`` once after ``delay`` seconds unless cancelled first."""
        raise NotImplementedError

    @abstractmethod
    def submit(self, fn: Callable[[], None]) -> None:
        """Run ``fn`` as a fire-and-forget background task."""
        raise NotImplementedError


class TimerScheduler(Scheduler):
    """Production scheduler backed by ``threading.Timer`` and daemon threads."""

    def call_later(self, delay: float, fn: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(fn, delay)
        timer = threading.Timer(delay, call._run)
        timer.daemon = True
        call._timer = timer
        timer.start()
        logger.debug("Scheduled %r in %.2fs", fn, delay)
        return call

    def submit(self, fn: Callable[[], None]) -> None:
        def _task() -> None:
            try:
                fn()
            except Exception:
                logger.exception("Background task %r failed", fn)

        threading.Thread(target=_task, name="chordcrack-task", daemon=True).start()


class ManualScheduler(Scheduler):
    """Deterministic scheduler driven by an explicit clock (tests, headless runs).

    Deferred calls fire from :meth:`advance`; background tasks run from
    :meth:`run_tasks`.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._timers: List[Tuple[float, int, ScheduledCall]] = []
        self._tasks: List[Callable[[], None]] = []

    @property
    def pending_calls(self) -> int:
        return sum(1 for _, _, c in self._timers if not c.cancelled)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def call_later(self, delay: float, fn: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(fn, delay)
        heapq.heappush(self._timers, (self.now + delay, next(self._seq), call))
        return call

    def submit(self, fn: Callable[[], None]) -> None:
        self._tasks.append(fn)

    def advance(self, seconds: float) -> int:
        """Move the clock forward and fire due calls in order. Returns calls fired."""
        target = self.now + seconds
        fired = 0
        while self._timers and self._timers[0][0] <= target:
            due, _, call = heapq.heappop(self._timers)
            self.now = due
            if call.cancelled:
                continue
            call._run()
            fired += 1
        self.now = target
        return fired

    def run_tasks(self) -> int:
        """Run queued background tasks (and any they enqueue). Returns tasks run."""
        ran = 0
        while self._tasks:
            task = self._tasks.pop(0)
            try:
                task()
            except Exception:
                logger.exception("Background task %r failed", task)
            ran += 1
        return ran
