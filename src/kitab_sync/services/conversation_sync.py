"""Conversation list polling, active selection and message polling."""
from __future__ import annotations

import logging

from kitab_sync.application.repositories.conversation import ConversationReader
from kitab_sync.application.repositories.message import MessageReader
from kitab_sync.domain.entities.conversation import Conversation
from kitab_sync.domain.entities.message import Message
from kitab_sync.domain.value_objects.enums import SyncState
from kitab_sync.infrastructure.cache.entity_cache import EntityCache
from kitab_sync.workers.polling import PollingLoop, Subscription

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "conversations"
MESSAGES_KEY = "messages"


class ConversationSync:
    """Keeps the conversation list and the active conversation's messages fresh.

    Selection rules on every list refresh:

    - a pending deep-link target that is present in the list is selected and
      cleared, even over an explicit choice;
    - otherwise, if nothing is selected yet, the first conversation in server
      order is selected;
    - otherwise the current selection is left alone.

    At most one message subscription is active, scoped to ``active_id``.
    """

    def __init__(
        self,
        conversations: ConversationReader,
        messages: MessageReader,
        polling: PollingLoop,
        *,
        conversation_cache: EntityCache[tuple[Conversation, ...]] | None = None,
        message_cache: EntityCache[tuple[Message, ...]] | None = None,
        deep_link: int | None = None,
        list_interval: float = 10.0,
        message_interval: float = 5.0,
    ) -> None:
        self._conversations = conversations
        self._messages = messages
        self._polling = polling
        self.conversation_cache = conversation_cache or EntityCache("conversations")
        self.message_cache = message_cache or EntityCache("messages")
        self._pending_target = deep_link
        self._list_interval = list_interval
        self._message_interval = message_interval

        self._active_id: int | None = None
        self._explicit = False
        self._state = SyncState.UNINITIALIZED
        self._message_sub: Subscription | None = None

    # -- read-only projections -------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def active_id(self) -> int | None:
        return self._active_id

    @property
    def selected_explicitly(self) -> bool:
        return self._explicit

    @property
    def pending_target(self) -> int | None:
        return self._pending_target

    @property
    def conversations(self) -> tuple[Conversation, ...]:
        return self.conversation_cache.value

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.message_cache.value

    @property
    def message_subscription(self) -> Subscription | None:
        return self._message_sub

    @property
    def active_conversation(self) -> Conversation | None:
        if self._active_id is None:
            return None
        return self._find(self._active_id)

    def filter_conversations(self, query: str) -> list[Conversation]:
        """Case-insensitive substring match on the counterpart's name, server order kept."""
        needle = query.strip().lower()
        if not needle:
            return list(self.conversations)
        return [c for c in self.conversations if needle in c.other_user_name.lower()]

    def is_outgoing(self, message: Message) -> bool:
        conv = self._find(message.conversation_id)
        if conv is None or conv.other_user_id is None:
            return message.is_provisional
        return message.sender_id != conv.other_user_id

    # -- lifecycle -------------------------------------------------------

    def start(self) -> Subscription:
        sub = self._polling.subscribe(CONVERSATIONS_KEY, self._list_interval, self.refresh_conversations)
        # Resume message polling for a selection kept across stop()/start().
        if self._active_id is not None and self._message_sub is None:
            self._activate(self._active_id)
        return sub

    def stop(self) -> None:
        self._polling.cancel(CONVERSATIONS_KEY)
        self._stop_messages()

    # -- selection -------------------------------------------------------

    def select(self, conversation_id: int) -> None:
        """Explicit user selection."""
        self._explicit = True
        self._activate(conversation_id)

    def set_deep_link(self, conversation_id: int) -> None:
        """Register an incoming navigation target; applied now if already listed."""
        self._pending_target = conversation_id
        if self.conversation_cache.loaded:
            self._apply_selection_rules()

    def _activate(self, conversation_id: int) -> None:
        if conversation_id == self._active_id and self._message_sub is not None and not self._message_sub.cancelled:
            return
        previous = self._active_id
        self._active_id = conversation_id
        if previous != conversation_id:
            self.message_cache.reset()
        self._state = SyncState.CONVERSATION_SELECTED
        logger.info("Active conversation %s -> %s", previous, conversation_id)

        async def _fetch() -> None:
            await self._refresh_messages_for(conversation_id)

        self._message_sub = self._polling.subscribe(MESSAGES_KEY, self._message_interval, _fetch)

    def _stop_messages(self) -> None:
        if self._message_sub is not None:
            self._message_sub.cancel()
            self._message_sub = None

    # -- poll callbacks --------------------------------------------------

    async def refresh_conversations(self) -> bool:
        """Fetch the list, merge it, then apply the selection rules."""
        fetched = await self._conversations.list_conversations()
        changed = self.conversation_cache.merge(fetched)
        if self._state == SyncState.UNINITIALIZED:
            self._state = SyncState.LIST_LOADED
        self._apply_selection_rules()
        return changed

    async def refresh_messages(self) -> bool:
        if self._active_id is None:
            return False
        return await self._refresh_messages_for(self._active_id)

    async def _refresh_messages_for(self, conversation_id: int) -> bool:
        fetched = await self._messages.list_messages(conversation_id)
        if conversation_id != self._active_id:
            logger.debug("Discarding stale messages for conversation %s", conversation_id)
            return False

        server_ids = {m.id for m in fetched}
        local = [
            m for m in self.message_cache.value
            if m.is_provisional and m.conversation_id == conversation_id and m.id not in server_ids
        ]
        changed = self.message_cache.merge([*fetched, *local])
        self._state = SyncState.MESSAGES_LOADED
        return changed

    def _apply_selection_rules(self) -> None:
        target = self._pending_target
        if target is not None and self._find(target) is not None:
            self._pending_target = None
            self._explicit = True
            self._activate(target)
            return
        if self._active_id is None and self.conversations:
            self._activate(self.conversations[0].id)

    def _find(self, conversation_id: int) -> Conversation | None:
        for conv in self.conversations:
            if conv.id == conversation_id:
                return conv
        return None
