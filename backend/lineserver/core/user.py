# lineserver/core/user.py

import hmac
import logging
import threading
from typing import Callable, Dict, Optional

from lineserver.core.errors import CapacityExceeded, Unauthorized
from lineserver.core.validation import ValidationPolicy
from lineserver.models.user import Participant
from lineserver.utils.clock import now_ms

logger = logging.getLogger(__name__)


class ParticipantRegistry:
    """Known user identifiers plus the single journalist public key"""

    def __init__(
        self,
        policy: ValidationPolicy,
        max_users: int,
        journalist_secret: Optional[str] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.policy = policy
        self.max_users = max_users
        self._journalist_secret = journalist_secret
        self._clock = clock
        self._users: Dict[str, Participant] = {}
        self._journalist_key: Optional[str] = None
        self._lock = threading.RLock()

    @property
    def journalist_key(self) -> Optional[str]:
        with self._lock:
            return self._journalist_key

    def register_user(self, identifier: str) -> Optional[str]:
        """Insert or refresh a user, returning the current journalist key"""
        self.policy.identifier(identifier)
        now = self._clock()

        with self._lock:
            existing = self._users.get(identifier)
            if existing is not None:
                existing.last_active_at = now
            else:
                if len(self._users) >= self.max_users:
                    logger.warning("User registry full (%d)", self.max_users)
                    raise CapacityExceeded()
                self._users[identifier] = Participant(identifier=identifier, last_active_at=now)
                logger.debug("Registered user %s", identifier)
            return self._journalist_key

    def register_journalist(self, public_key: str, secret: Optional[str] = None) -> None:
        """Set the journalist key. Replacing an existing key needs the shared secret."""
        with self._lock:
            if self._journalist_key is not None and not self._secret_matches(secret):
                logger.warning("Rejected journalist re-registration")
                raise Unauthorized("Unauthorized")

            self._journalist_key = self.policy.public_key(public_key)
            logger.info("Journalist public key registered")

    def _secret_matches(self, secret: Optional[str]) -> bool:
        # No configured secret means the first key is final, even when no secret is supplied
        if not self._journalist_secret or not isinstance(secret, str):
            return False
        return hmac.compare_digest(secret.encode(), self._journalist_secret.encode())

    def wipe(self, identifier: str) -> None:
        with self._lock:
            self._users.pop(identifier, None)

    def get(self, identifier: str) -> Optional[Participant]:
        with self._lock:
            return self._users.get(identifier)

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
