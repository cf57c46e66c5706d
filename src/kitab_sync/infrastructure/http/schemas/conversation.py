from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ConversationResponse(BaseModel):
    id: int
    other_user_id: int | None = None
    other_user_username: str = ""
    last_message: str | None = None
    last_message_at: datetime | None = None
    announcement_id: int | None = None
    announcement_title: str | None = None

    model_config = {"extra": "ignore"}


class ConversationListResponse(BaseModel):
    conversations: list[ConversationResponse] = []
