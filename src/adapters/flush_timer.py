"""
Interval flush timer.

Background thread that invokes a callback at a fixed interval until
stopped. Drives the engagement tracker's periodic flush.

Key behaviors:
- First tick fires one full interval after start()
- Errors raised by the callback are logged and the loop keeps running
- stop() joins the thread; no final tick is issued
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class IntervalFlushTimer:
    """Fixed-interval background trigger."""

    def __init__(
        self,
        callback: Callable[[], Any],
        interval_seconds: float = 5.0,
    ) -> None:
        """
        Initialize timer.

        Args:
            callback: Function to call on each tick
            interval_seconds: Interval between ticks
        """
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")
        self._callback = callback
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False

    def start(self) -> None:
        """Start ticking in a daemon thread."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._tick_loop,
            name="engagement-flush-timer",
            daemon=True,
        )
        self._thread.start()
        self._running = True
        logger.info("Flush timer started (interval: %.1fs)", self._interval)

    def stop(self) -> None:
        """Stop the timer and wait for the current tick to finish."""
        if not self._running:
            return

        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("Flush timer stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def _tick_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Error in flush timer callback")
