from __future__ import annotations

from kitab_sync.application.ports.remote import RemoteClient
from kitab_sync.domain.entities.conversation import Conversation
from kitab_sync.infrastructure.http.mappers.conversation import response_to_entity
from kitab_sync.infrastructure.http.repositories._payload import parse_payload
from kitab_sync.infrastructure.http.schemas.conversation import ConversationListResponse

CONVERSATIONS_PATH = "/api/messages/conversations"


class HttpConversationReader:
    def __init__(self, remote: RemoteClient) -> None:
        self._remote = remote

    async def list_conversations(self) -> list[Conversation]:
        body = await self._remote.get(CONVERSATIONS_PATH)
        parsed = parse_payload(ConversationListResponse, body)
        return [response_to_entity(c) for c in parsed.conversations]
