"""Cancelable periodic background jobs."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from trustlayer.logging import get_logger

logger = get_logger(__name__)


class PeriodicJob:
    """
    Run ``fn`` every ``interval`` seconds on a daemon thread.

    ``stop()`` wakes the thread, lets a sweep that is already running finish
    and joins it. A failing sweep is logged and the schedule continues.
    """

    def __init__(self, name: str, interval: float, fn: Callable[[], None]) -> None:
        self.name = name
        self.interval = interval
        self._fn = fn
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f"trustlayer-{self.name}", daemon=True)
        self._thread.start()
        logger.debug("periodic_job_started", job=self.name, interval_seconds=self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.debug("periodic_job_stopped", job=self.name)

    def run_once(self) -> None:
        try:
            self._fn()
        except Exception:
            logger.exception("periodic_job_failed", job=self.name)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()
