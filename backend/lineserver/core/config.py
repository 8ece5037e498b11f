# lineserver/core/config.py

import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel

# =========================
# DEFAULT LIMITS
# =========================

MAX_MESSAGES = 10000
MAX_USERS = 5000
MAX_MESSAGE_SIZE = 100000      # characters per encrypted payload
MAX_CHUNK_SIZE = 100000        # characters per file chunk
MAX_FILENAME_LENGTH = 255
RATE_LIMIT_WINDOW_MS = 60000
RATE_LIMIT_MAX_REQUESTS = 100
RETENTION_MS = 24 * 60 * 60 * 1000
CHUNK_STALE_MS = 60 * 60 * 1000
CHUNK_GRACE_MS = 60000
SWEEP_INTERVAL_SECONDS = 60.0


class RelaySettings(BaseModel):
    max_messages: int = MAX_MESSAGES
    max_users: int = MAX_USERS
    max_message_size: int = MAX_MESSAGE_SIZE
    max_chunk_size: int = MAX_CHUNK_SIZE
    max_filename_length: int = MAX_FILENAME_LENGTH
    rate_limit_window_ms: int = RATE_LIMIT_WINDOW_MS
    rate_limit_max_requests: int = RATE_LIMIT_MAX_REQUESTS
    retention_ms: int = RETENTION_MS
    chunk_stale_ms: int = CHUNK_STALE_MS
    chunk_grace_ms: int = CHUNK_GRACE_MS
    sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS
    journalist_secret: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "RelaySettings":
        """
        Build settings from environment variables, falling back to defaults.
        A .env file (``env_file`` or the nearest one from the working directory)
        fills in variables the process environment does not already set.
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))
        return cls(
            max_messages=int(os.getenv("MAX_MESSAGES", MAX_MESSAGES)),
            max_users=int(os.getenv("MAX_USERS", MAX_USERS)),
            max_message_size=int(os.getenv("MAX_MESSAGE_SIZE", MAX_MESSAGE_SIZE)),
            max_chunk_size=int(os.getenv("MAX_CHUNK_SIZE", MAX_CHUNK_SIZE)),
            max_filename_length=int(os.getenv("MAX_FILENAME_LENGTH", MAX_FILENAME_LENGTH)),
            rate_limit_window_ms=int(os.getenv("RATE_LIMIT_WINDOW_MS", RATE_LIMIT_WINDOW_MS)),
            rate_limit_max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", RATE_LIMIT_MAX_REQUESTS)),
            retention_ms=int(os.getenv("RETENTION_MS", RETENTION_MS)),
            chunk_stale_ms=int(os.getenv("CHUNK_STALE_MS", CHUNK_STALE_MS)),
            chunk_grace_ms=int(os.getenv("CHUNK_GRACE_MS", CHUNK_GRACE_MS)),
            sweep_interval_seconds=float(os.getenv("SWEEP_INTERVAL_SECONDS", SWEEP_INTERVAL_SECONDS)),
            journalist_secret=os.getenv("JOURNALIST_SECRET") or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
        )
