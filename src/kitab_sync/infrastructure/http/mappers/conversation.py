from __future__ import annotations

from kitab_sync.domain.entities.conversation import Conversation
from kitab_sync.infrastructure.http.schemas.conversation import ConversationResponse


def response_to_entity(resp: ConversationResponse) -> Conversation:
    return Conversation(
        id=resp.id,
        other_user_id=resp.other_user_id,
        other_user_name=resp.other_user_username,
        last_message=resp.last_message,
        last_message_at=resp.last_message_at,
        listing_id=resp.announcement_id,
        listing_title=resp.announcement_title,
    )
