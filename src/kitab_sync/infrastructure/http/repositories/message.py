from __future__ import annotations

from kitab_sync.application.ports.remote import RemoteClient
from kitab_sync.domain.entities.message import Message
from kitab_sync.infrastructure.http.mappers.message import response_to_entity
from kitab_sync.infrastructure.http.repositories._payload import parse_payload
from kitab_sync.infrastructure.http.repositories.conversation import CONVERSATIONS_PATH
from kitab_sync.infrastructure.http.schemas.message import MessageListResponse, MessageResponse


class HttpMessageRepository:
    """Implements MessageReader and MessageWriter."""

    def __init__(self, remote: RemoteClient) -> None:
        self._remote = remote

    async def list_messages(self, conversation_id: int) -> list[Message]:
        body = await self._remote.get(f"{CONVERSATIONS_PATH}/{conversation_id}")
        parsed = parse_payload(MessageListResponse, body)
        return [response_to_entity(m, conversation_id) for m in parsed.messages]

    async def create_message(self, conversation_id: int, body: str) -> Message:
        # The backend takes the text as a query parameter, not a JSON body.
        raw = await self._remote.post(
            f"{CONVERSATIONS_PATH}/{conversation_id}/messages",
            params={"content": body},
        )
        return response_to_entity(parse_payload(MessageResponse, raw), conversation_id)
