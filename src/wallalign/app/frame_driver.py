"""
Qt Frame Driver
===============
Drives an AnimationScheduler from the Qt event loop.

Why is this file needed?
------------------------
Animations are advanced by an external frame clock. In a Qt host that clock
is a QTimer firing on the GUI thread, so node writes never race with rendering.
"""
from __future__ import annotations

import logging

from PySide6.QtCore import QObject, QTimer, Signal

from wallalign.config import FRAME_INTERVAL_MS
from wallalign.controller.animation import AnimationScheduler

logger = logging.getLogger(__name__)


class QtFrameDriver(QObject):
    # Emitted when the scheduler ran out of animations and the timer stopped
    idle = Signal()

    def __init__(
        self,
        scheduler: AnimationScheduler,
        interval_ms: int = FRAME_INTERVAL_MS,
        auto_stop: bool = True,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.scheduler = scheduler
        self.auto_stop = auto_stop
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def running(self) -> bool:
        return self._timer.isActive()

    def start(self) -> None:
        if not self._timer.isActive():
            logger.debug(f"Frame driver started ({self._timer.interval()} ms)")
            self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def _on_timeout(self) -> None:
        self.scheduler.tick()
        if self.auto_stop and self.scheduler.idle:
            self._timer.stop()
            logger.debug("Frame driver idle, timer stopped")
            self.idle.emit()
