from __future__ import annotations

from typing import Protocol

from kitab_sync.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def list_conversations(self) -> list[Conversation]: ...
