from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Conversation:
    id: int
    other_user_id: int | None
    other_user_name: str
    last_message: str | None
    last_message_at: datetime | None
    listing_id: int | None = None
    listing_title: str | None = None
