"""Scheduled-task abstraction used for heartbeats, banners and display polling.

Components never touch a real timer directly. They receive a ``Scheduler``
which the Qt UI backs with ``QTimer`` and tests back with ``ManualScheduler``,
whose virtual clock only moves when ``advance`` is called.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import heapq
import itertools
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class TaskHandle(ABC):
    """Cancellable reference to a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Scheduler(ABC):
    """Clock plus timer factory for a single-threaded event loop."""

    @abstractmethod
    def now(self) -> float:
        """Return the current time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        """Run ``callback`` once after ``delay`` seconds."""

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle:
        """Run ``callback`` every ``interval`` seconds until cancelled."""

    def call_soon(self, callback: Callable[[], None]) -> TaskHandle:
        """Run ``callback`` on the next loop turn."""
        return self.call_later(0.0, callback)


class PeriodicTask:
    """Repeating callback with an explicit start/stop lifecycle."""

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError("Interval must be a positive number of seconds.")
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._handle: TaskHandle | None = None

    @property
    def interval(self) -> float:
        return self._interval

    def start(self) -> None:
        if self.is_running:
            return
        self._handle = self._scheduler.call_every(self._interval, self._callback)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def is_running(self) -> bool:
        return self._handle is not None and not self._handle.cancelled


@dataclass(eq=False)
class _ManualTask(TaskHandle):
    due: float
    callback: Callable[[], None]
    interval: float | None = None
    _cancelled: bool = field(default=False, init=False)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """Deterministic scheduler with a virtual clock.

    Tasks due at the same instant run in the order they were scheduled. A
    callback that raises is logged and does not stop the remaining tasks, the
    same way an exception in a Qt slot does not stop the event loop.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, _ManualTask]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        task = _ManualTask(due=self._now + max(0.0, delay), callback=callback)
        self._push(task)
        return task

    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle:
        if interval <= 0:
            raise ValueError("Interval must be a positive number of seconds.")
        task = _ManualTask(due=self._now + interval, callback=callback, interval=interval)
        self._push(task)
        return task

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running every task that falls due on the way."""
        if seconds < 0:
            raise ValueError("Cannot move the clock backwards.")
        deadline = self._now + seconds
        while self._queue and self._queue[0][0] <= deadline:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = due
            if task.interval is not None:
                task.due = due + task.interval
                self._push(task)
            self._run(task)
        self._now = deadline

    def run_pending(self) -> None:
        """Run everything due right now, including ``call_soon`` callbacks."""
        self.advance(0.0)

    def pending_count(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def _push(self, task: _ManualTask) -> None:
        heapq.heappush(self._queue, (task.due, next(self._sequence), task))

    @staticmethod
    def _run(task: _ManualTask) -> None:
        try:
            task.callback()
        except Exception:
            logger.exception("Scheduled callback failed")

