#!/usr/bin/env python3
"""
Delayed delivery of follow-up tutor messages.
Paces multi-message tutor turns; pending deliveries can be cancelled.
"""

import threading
from typing import Callable, List

from ..logger import get_logger

logger = get_logger(__name__)


class FollowUpScheduler:
    """Runs callbacks after a fixed delay on timer threads"""

    def __init__(self, delay: float = 1.0):
        self.delay = delay
        self._timers: List[threading.Timer] = []
        self._lock = threading.Lock()

    def schedule(self, callback: Callable[[], None]) -> None:
        """Run callback after the delay (immediately if delay <= 0)"""
        if self.delay <= 0:
            callback()
            return

        timer = threading.Timer(self.delay, self._run, args=(callback,))
        timer.daemon = True
        with self._lock:
            self._timers.append(timer)
        timer.start()

    def _run(self, callback: Callable[[], None]) -> None:
        current = threading.current_thread()
        with self._lock:
            self._timers = [t for t in self._timers if t is not current]
        try:
            callback()
        except Exception:
            # Timer threads have no caller to report to
            logger.exception("Follow-up callback failed")

    def cancel_all(self) -> int:
        """Cancel pending callbacks, returning how many were dropped"""
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
        if timers:
            logger.debug("Cancelled %d pending follow-ups", len(timers))
        return len(timers)

    def pending(self) -> int:
        with self._lock:
            return len(self._timers)
