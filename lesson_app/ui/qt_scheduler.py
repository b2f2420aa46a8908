"""``Scheduler`` backed by the Qt event loop."""

from __future__ import annotations

import logging
import time
from typing import Callable

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from lesson_app.core.scheduler import Scheduler, TaskHandle

logger = logging.getLogger(__name__)


class _TimerTask(TaskHandle):
    def __init__(self, timer: QTimer | None = None, owner: set[QTimer] | None = None) -> None:
        self._timer = timer
        self._owner = owner
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.stop()
            if self._owner is not None:
                self._owner.discard(self._timer)

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class _Invoker(QObject):
    """Lives on the GUI thread; a signal emitted elsewhere is queued onto it."""

    invoke = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self.invoke.connect(self._run)

    @Slot(object)
    def _run(self, payload: object) -> None:
        task, callback = payload  # type: ignore[misc]
        if task.cancelled:
            return
        try:
            callback()
        except Exception:
            logger.exception("Queued callback failed")


class QtScheduler(Scheduler):
    """Timers are ``QTimer`` objects; ``call_soon`` is safe from any thread."""

    def __init__(self) -> None:
        self._invoker = _Invoker()
        self._timers: set[QTimer] = set()

    def now(self) -> float:
        return time.monotonic()

    def call_soon(self, callback: Callable[[], None]) -> TaskHandle:
        task = _TimerTask()
        self._invoker.invoke.emit((task, callback))
        return task

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        timer = self._make_timer(single_shot=True)
        task = _TimerTask(timer, self._timers)

        def fire() -> None:
            self._timers.discard(timer)
            if not task.cancelled:
                callback()

        timer.timeout.connect(fire)
        timer.start(max(0, int(delay * 1000)))
        return task

    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle:
        if interval <= 0:
            raise ValueError("Interval must be a positive number of seconds.")
        timer = self._make_timer(single_shot=False)
        task = _TimerTask(timer, self._timers)
        timer.timeout.connect(callback)
        timer.start(int(interval * 1000))
        return task

    def _make_timer(self, single_shot: bool) -> QTimer:
        timer = QTimer()
        timer.setSingleShot(single_shot)
        self._timers.add(timer)
        return timer
