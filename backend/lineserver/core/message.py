# lineserver/core/message.py

import itertools
import logging
import secrets
import threading
from typing import Callable, List, Set

from lineserver.core.errors import CapacityExceeded
from lineserver.models.message import Message
from lineserver.utils.clock import now_ms

logger = logging.getLogger(__name__)

_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


def new_message_id(now: int) -> str:
    """Millisecond prefix + process-wide sequence + random suffix"""
    with _sequence_lock:
        seq = next(_sequence)
    return f"{now}{seq:06x}{secrets.token_hex(4)}"


class MessageStore:
    """
    Bounded, insertion-ordered message list.

    Expired messages are removed by ``sweep``; reads also hide anything
    already past the retention horizon so callers never see it between sweeps.
    """

    def __init__(self, max_messages: int, retention_ms: int, clock: Callable[[], int] = now_ms):
        self.max_messages = max_messages
        self.retention_ms = retention_ms
        self._clock = clock
        self._messages: List[Message] = []
        self._ids: Set[str] = set()
        self._lock = threading.RLock()

    def append(self, message: Message) -> str:
        """Store ``message`` under a fresh unique id and return the id"""
        with self._lock:
            if len(self._messages) >= self.max_messages:
                logger.warning("Message store full (%d)", self.max_messages)
                raise CapacityExceeded()

            message_id = new_message_id(self._clock())
            while message_id in self._ids:
                message_id = new_message_id(self._clock())

            self._messages.append(message.model_copy(update={"id": message_id}))
            self._ids.add(message_id)
            return message_id

    def _live(self) -> List[Message]:
        horizon = self._clock() - self.retention_ms
        return [m for m in self._messages if m.created_at >= horizon]

    def list_for_journalist(self) -> List[Message]:
        with self._lock:
            return self._live()

    def list_for_user(self, identifier: str) -> List[Message]:
        with self._lock:
            return [m for m in self._live() if m.sender == identifier or m.recipient == identifier]

    def remove_from(self, identifier: str) -> int:
        """Delete every message sent by ``identifier``"""
        with self._lock:
            return self._remove(lambda m: m.sender == identifier)

    def sweep(self, now: int | None = None) -> int:
        """Delete messages older than the retention horizon"""
        horizon = (self._clock() if now is None else now) - self.retention_ms
        with self._lock:
            return self._remove(lambda m: m.created_at < horizon)

    def _remove(self, predicate: Callable[[Message], bool]) -> int:
        kept = [m for m in self._messages if not predicate(m)]
        removed = len(self._messages) - len(kept)
        if removed:
            self._messages = kept
            self._ids = {m.id for m in kept}
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
