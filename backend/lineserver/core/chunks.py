# lineserver/core/chunks.py

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from lineserver.core.errors import InvalidInput
from lineserver.core.validation import ValidationPolicy
from lineserver.models.message import FileBundle
from lineserver.utils.clock import now_ms

logger = logging.getLogger(__name__)

ChunkKey = Tuple[str, str]


@dataclass
class ChunkSet:
    sender: str
    file_name: str
    file_type: Optional[str]
    declared_size: Optional[int]
    total_chunks: int
    last_updated_at: int
    chunks: Dict[int, str] = field(default_factory=dict)
    completed_at: Optional[int] = None

    def to_bundle(self, chunks: Dict[int, str]) -> FileBundle:
        return FileBundle(
            sender=self.sender,
            file_name=self.file_name,
            file_type=self.file_type,
            file_size=self.declared_size,
            total_chunks=self.total_chunks,
            chunks=dict(sorted(chunks.items())),
        )


@dataclass(frozen=True)
class ChunkProgress:
    received: int
    total: int
    completed: bool = False
    message_id: Optional[str] = None


class ChunkReassembler:
    """
    Collects file chunks per (sender, file name) until every index is present.

    On completion the bundle is passed to ``on_complete`` before the set is
    touched, so a failing callback leaves the transfer exactly as it was. A
    completed set lingers for ``grace_ms`` and swallows retransmitted chunks.
    """

    def __init__(
        self,
        policy: ValidationPolicy,
        stale_ms: int,
        grace_ms: int,
        clock: Callable[[], int] = now_ms,
    ):
        self.policy = policy
        self.stale_ms = stale_ms
        self.grace_ms = grace_ms
        self._clock = clock
        self._sets: Dict[ChunkKey, ChunkSet] = {}
        self._lock = threading.RLock()

    def submit_chunk(
        self,
        sender: Any,
        chunk_index: Any,
        total_chunks: Any,
        chunk_data: Any,
        file_name: Any,
        file_type: Any = None,
        declared_size: Any = None,
        on_complete: Optional[Callable[[FileBundle], str]] = None,
    ) -> ChunkProgress:
        sender = self.policy.sender(sender)
        self.policy.chunk_position(chunk_index, total_chunks)
        chunk_data = self.policy.chunk_data(chunk_data)
        file_name = self.policy.file_name(file_name)
        file_type = self.policy.optional_text(file_type, "file type")
        declared_size = self.policy.file_size(declared_size)

        key = (sender, file_name)
        now = self._clock()

        with self._lock:
            chunk_set = self._sets.get(key)

            if chunk_set is not None and chunk_set.completed_at is not None:
                if now - chunk_set.completed_at < self.grace_ms:
                    return ChunkProgress(received=chunk_set.total_chunks, total=chunk_set.total_chunks, completed=True)
                del self._sets[key]
                chunk_set = None

            if chunk_set is None:
                chunk_set = ChunkSet(
                    sender=sender,
                    file_name=file_name,
                    file_type=file_type,
                    declared_size=declared_size,
                    total_chunks=total_chunks,
                    last_updated_at=now,
                )
            elif chunk_set.total_chunks != total_chunks:
                raise InvalidInput("Invalid chunk metadata")

            chunks = dict(chunk_set.chunks)
            chunks[chunk_index] = chunk_data
            message_id = None

            if len(chunks) == chunk_set.total_chunks:
                if on_complete is not None:
                    message_id = on_complete(chunk_set.to_bundle(chunks))
                chunk_set.completed_at = now
                logger.info("File transfer complete (%d chunks)", chunk_set.total_chunks)

            chunk_set.chunks = chunks
            chunk_set.last_updated_at = now
            self._sets[key] = chunk_set

            return ChunkProgress(
                received=len(chunks),
                total=chunk_set.total_chunks,
                completed=chunk_set.completed_at is not None,
                message_id=message_id,
            )

    def drop_sender(self, sender: str) -> int:
        """Forget every in-flight transfer from ``sender``"""
        with self._lock:
            keys = [k for k in self._sets if k[0] == sender]
            for key in keys:
                del self._sets[key]
        return len(keys)

    def sweep(self, now: int | None = None) -> int:
        """Drop abandoned transfers and completed ones past their grace delay"""
        now = self._clock() if now is None else now
        with self._lock:
            expired = [
                key
                for key, s in self._sets.items()
                if (s.completed_at is not None and now - s.completed_at >= self.grace_ms)
                or now - s.last_updated_at > self.stale_ms
            ]
            for key in expired:
                del self._sets[key]
        return len(expired)

    def get(self, sender: str, file_name: str) -> Optional[ChunkSet]:
        with self._lock:
            return self._sets.get((sender, file_name))

    def __len__(self) -> int:
        with self._lock:
            return len(self._sets)
