from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class MessageResponse(BaseModel):
    id: int
    conversation_id: int | None = None
    sender_id: int | None = None
    content: str = ""
    created_at: datetime

    model_config = {"extra": "ignore"}


class MessageListResponse(BaseModel):
    messages: list[MessageResponse] = []
