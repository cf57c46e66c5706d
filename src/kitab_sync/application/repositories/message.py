from __future__ import annotations

from typing import Protocol

from kitab_sync.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(self, conversation_id: int) -> list[Message]: ...


class MessageWriter(Protocol):
    async def create_message(self, conversation_id: int, body: str) -> Message:
        """Post a message and return the server-confirmed record."""
        ...
