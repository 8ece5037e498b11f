"""Background retention sweeper.

Runs ``RelayService.sweep`` on a fixed period in a daemon thread. Reads in
between sweeps never return expired messages (the store filters them), but
abandoned uploads and rate limit records linger until the next run.
"""

import logging
import threading
from typing import Optional

from lineserver.services.relay_service import RelayService, SweepReport

logger = logging.getLogger(__name__)


class RetentionSweeper:
    def __init__(self, relay: RelayService, interval: float):
        self.relay = relay
        self.interval = interval
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                logger.debug("RetentionSweeper already running")
                return

            logger.info("Starting RetentionSweeper (interval=%ss)", self.interval)
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, name="retention-sweeper", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            logger.info("Stopping RetentionSweeper")
            self._stop_event.set()
            self._thread = None

        # join outside the lock
        thread.join(timeout=self.interval + 1.0)

    def run_once(self) -> SweepReport:
        return self.relay.sweep()

    def _loop(self) -> None:
        while not self._stop_event.wait(timeout=self.interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("Retention sweep failed")
