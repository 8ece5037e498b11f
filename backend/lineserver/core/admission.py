# lineserver/core/admission.py

import logging
import math
import threading
from typing import Callable, Dict

from fastapi import Request
from slowapi.util import get_remote_address

from lineserver.core.errors import TooManyRequests
from lineserver.models.user import RateLimitRecord
from lineserver.utils.clock import now_ms

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    """Rate limit key for a request: the remote address"""
    return get_remote_address(request) or "unknown"


class AdmissionController:
    """
    Fixed-window request counter per client key.

    A window opens on the first call and lasts ``window_ms``. Up to
    ``max_requests`` calls are admitted inside it; everything after is
    rejected until the window ends. Up to 2N calls can land around a
    window edge, which is accepted.
    """

    def __init__(self, window_ms: int, max_requests: int, clock: Callable[[], int] = now_ms):
        self.window_ms = window_ms
        self.max_requests = max_requests
        self._clock = clock
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = threading.RLock()

    def admit(self, key: str) -> None:
        """Admit one call for ``key`` or raise TooManyRequests"""
        now = self._clock()
        with self._lock:
            record = self._records.get(key)

            if record is None or now > record.window_reset_at:
                self._records[key] = RateLimitRecord(count=1, window_reset_at=now + self.window_ms)
                return

            if record.count >= self.max_requests:
                retry_after = max(1, math.ceil((record.window_reset_at - now) / 1000))
                logger.debug("Rejecting %s for %ss", key, retry_after)
                raise TooManyRequests(retry_after=retry_after)

            record.count += 1

    def sweep(self, now: int | None = None) -> int:
        """Drop records whose window has ended. Returns how many were removed."""
        now = self._clock() if now is None else now
        with self._lock:
            expired = [k for k, r in self._records.items() if now > r.window_reset_at]
            for key in expired:
                del self._records[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
