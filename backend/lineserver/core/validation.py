# lineserver/core/validation.py

import re
from typing import Any, Optional

from lineserver.core.config import RelaySettings
from lineserver.core.errors import InvalidInput

_IDENTIFIER_RE = re.compile(r"^[0-9a-f]{32}$")


def is_valid_identifier(value: Any) -> bool:
    """32 lowercase hex chars (16 bytes)"""
    return isinstance(value, str) and bool(_IDENTIFIER_RE.match(value))


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid index
    return isinstance(value, int) and not isinstance(value, bool)


class ValidationPolicy:
    """
    Per-field input rules, applied before any shared state is touched.
    Every check raises InvalidInput with the caller-facing reason.
    """

    def __init__(self, settings: RelaySettings):
        self.max_message_size = settings.max_message_size
        self.max_chunk_size = settings.max_chunk_size
        self.max_filename_length = settings.max_filename_length

    def identifier(self, value: Any, reason: str = "Invalid hash format") -> str:
        if not is_valid_identifier(value):
            raise InvalidInput(reason)
        return value

    def sender(self, value: Any) -> str:
        if not value or not isinstance(value, str):
            raise InvalidInput("Invalid sender")
        return value

    def payload(self, value: Any) -> str:
        if not value or not isinstance(value, str) or len(value) > self.max_message_size:
            raise InvalidInput("Invalid message data")
        return value

    def public_key(self, value: Any) -> str:
        if not value or not isinstance(value, str):
            raise InvalidInput("Invalid public key")
        return value

    def optional_text(self, value: Any, field: str) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise InvalidInput(f"Invalid {field}")
        return value or None

    def chunk_position(self, chunk_index: Any, total_chunks: Any) -> None:
        if not _is_int(chunk_index) or not _is_int(total_chunks):
            raise InvalidInput("Invalid chunk metadata")
        if total_chunks < 1 or not 0 <= chunk_index < total_chunks:
            raise InvalidInput("Invalid chunk metadata")

    def chunk_data(self, value: Any) -> str:
        if not value or not isinstance(value, str) or len(value) > self.max_chunk_size:
            raise InvalidInput("Invalid chunk data")
        return value

    def file_name(self, value: Any) -> str:
        if not value or not isinstance(value, str) or len(value) > self.max_filename_length:
            raise InvalidInput("Invalid filename")
        return value

    def file_size(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        if not _is_int(value) or value < 0:
            raise InvalidInput("Invalid file size")
        return value
