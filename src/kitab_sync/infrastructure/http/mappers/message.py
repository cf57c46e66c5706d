from __future__ import annotations

from kitab_sync.domain.entities.message import Message
from kitab_sync.infrastructure.http.schemas.message import MessageResponse


def response_to_entity(resp: MessageResponse, conversation_id: int) -> Message:
    # The list endpoint omits conversation_id; fall back to the requested one.
    return Message(
        id=resp.id,
        conversation_id=resp.conversation_id or conversation_id,
        sender_id=resp.sender_id,
        body=resp.content,
        created_at=resp.created_at,
    )
