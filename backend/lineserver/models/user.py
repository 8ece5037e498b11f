# lineserver/models/user.py

from dataclasses import dataclass


@dataclass
class Participant:
    identifier: str
    last_active_at: int


@dataclass
class RateLimitRecord:
    count: int
    window_reset_at: int
