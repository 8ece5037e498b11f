# lineserver/services/relay_service.py

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from lineserver.core.admission import AdmissionController
from lineserver.core.chunks import ChunkProgress, ChunkReassembler
from lineserver.core.config import RelaySettings
from lineserver.core.errors import InvalidInput
from lineserver.core.message import MessageStore
from lineserver.core.user import ParticipantRegistry
from lineserver.core.validation import ValidationPolicy
from lineserver.models.message import FileBundle, Message
from lineserver.utils.clock import now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepReport:
    messages: int
    chunk_sets: int
    rate_limits: int


class RelayService:
    """
    Owns every piece of relay state for the lifetime of the process.

    Components guard their own structures; ``_lock`` additionally serialises
    operations that span several of them (file completion, purge).
    """

    def __init__(self, settings: RelaySettings, clock: Callable[[], int] = now_ms):
        self.settings = settings
        self.clock = clock
        self.policy = ValidationPolicy(settings)
        self.admission = AdmissionController(
            settings.rate_limit_window_ms, settings.rate_limit_max_requests, clock=clock
        )
        self.registry = ParticipantRegistry(
            self.policy, settings.max_users, settings.journalist_secret, clock=clock
        )
        self.store = MessageStore(settings.max_messages, settings.retention_ms, clock=clock)
        self.reassembler = ChunkReassembler(
            self.policy, settings.chunk_stale_ms, settings.chunk_grace_ms, clock=clock
        )
        self._lock = threading.RLock()

    # =========================
    # PARTICIPANTS
    # =========================

    def register_user(self, identifier: Any) -> Optional[str]:
        return self.registry.register_user(identifier)

    def register_journalist(self, public_key: Any, secret: Any = None) -> None:
        self.registry.register_journalist(public_key, secret)

    # =========================
    # MESSAGES
    # =========================

    def send_message(
        self,
        sender: Any,
        encrypted_data: Any,
        recipient: Any = None,
        timestamp: Any = None,
        has_files: Any = False,
        user_public_key: Any = None,
    ) -> str:
        sender = self.policy.sender(sender)
        encrypted_data = self.policy.payload(encrypted_data)
        recipient = self.policy.optional_text(recipient, "recipient")
        user_public_key = self.policy.optional_text(user_public_key, "public key")
        if timestamp is not None and (not isinstance(timestamp, int) or isinstance(timestamp, bool)):
            raise InvalidInput("Invalid timestamp")

        now = self.clock()
        message = Message(
            sender=sender,
            recipient=recipient,
            encrypted_data=encrypted_data,
            timestamp=timestamp or now,
            created_at=now,
            has_files=bool(has_files),
            user_public_key=user_public_key,
        )
        with self._lock:
            return self.store.append(message)

    def send_chunk(
        self,
        sender: Any,
        chunk_index: Any,
        total_chunks: Any,
        chunk_data: Any,
        file_name: Any,
        file_type: Any = None,
        file_size: Any = None,
    ) -> ChunkProgress:
        with self._lock:
            return self.reassembler.submit_chunk(
                sender,
                chunk_index,
                total_chunks,
                chunk_data,
                file_name,
                file_type,
                file_size,
                on_complete=self._store_file,
            )

    def _store_file(self, bundle: FileBundle) -> str:
        now = self.clock()
        message = Message(
            sender=bundle.sender,
            timestamp=now,
            created_at=now,
            has_files=True,
            file_data=bundle,
        )
        return self.store.append(message)

    def messages_for_journalist(self) -> List[Message]:
        return self.store.list_for_journalist()

    def messages_for_user(self, identifier: Any) -> List[Message]:
        self.policy.identifier(identifier, "Invalid user hash")
        return self.store.list_for_user(identifier)

    def purge_sender(self, identifier: Any) -> None:
        """Forget everything the relay holds about ``identifier``"""
        self.policy.identifier(identifier, "Invalid user hash")
        with self._lock:
            removed = self.store.remove_from(identifier)
            self.registry.wipe(identifier)
            dropped = self.reassembler.drop_sender(identifier)
        logger.info("Purged sender data (%d messages, %d transfers)", removed, dropped)

    # =========================
    # RETENTION
    # =========================

    def sweep(self) -> SweepReport:
        now = self.clock()
        report = SweepReport(
            messages=self.store.sweep(now),
            chunk_sets=self.reassembler.sweep(now),
            rate_limits=self.admission.sweep(now),
        )
        logger.debug("Sweep removed %s", report)
        return report
