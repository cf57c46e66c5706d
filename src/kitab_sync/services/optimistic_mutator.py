"""Local-first mutations: message sends and wishlist edits."""
from __future__ import annotations

import dataclasses
import logging
import uuid

from kitab_sync.application.exceptions import AuthRequired, ValidationError
from kitab_sync.application.ports.auth import CredentialProvider
from kitab_sync.application.ports.clock import Clock, SystemClock
from kitab_sync.application.repositories.message import MessageWriter
from kitab_sync.application.repositories.wishlist import WishlistWriter
from kitab_sync.domain.entities.message import Message
from kitab_sync.domain.value_objects.enums import DeliveryState
from kitab_sync.services.conversation_sync import ConversationSync
from kitab_sync.services.wishlist_store import WishlistStore

logger = logging.getLogger(__name__)

MAX_FAILED_MESSAGES = 50


class OptimisticMutator:
    """Applies user edits to the caches first, then calls the backend.

    Message sends that fail stay in the message list marked ``failed`` and
    can be retried while their conversation stays active. Wishlist removals
    are never rolled back; a failed add is rolled back unless a later toggle
    of the same listing superseded it.
    """

    def __init__(
        self,
        messages: MessageWriter,
        wishlist_writer: WishlistWriter,
        credentials: CredentialProvider,
        sync: ConversationSync,
        wishlist: WishlistStore,
        clock: Clock | None = None,
    ) -> None:
        self._messages = messages
        self._wishlist_writer = wishlist_writer
        self._credentials = credentials
        self._sync = sync
        self._wishlist = wishlist
        self._clock = clock or SystemClock()
        self._failed: dict[str, Message] = {}

    # -- messages --------------------------------------------------------

    async def send_message(self, conversation_id: int, body: str) -> Message:
        if not body or not body.strip():
            raise ValidationError("Message body must not be empty")
        self._prune_failed()

        principal = self._credentials.principal()
        provisional = Message(
            id=None,
            conversation_id=conversation_id,
            sender_id=principal.subject_id if principal else None,
            body=body,
            created_at=self._clock.now(),
            client_msg_id=uuid.uuid4().hex,
            state=DeliveryState.PENDING,
        )
        if self._sync.active_id == conversation_id:
            self._sync.message_cache.update(lambda msgs: (*msgs, provisional))
        return await self._deliver(provisional)

    async def retry_message(self, client_msg_id: str) -> Message:
        self._prune_failed()
        failed = self._failed.pop(client_msg_id, None)
        if failed is None:
            raise ValidationError("No failed message to retry")
        pending = dataclasses.replace(failed, state=DeliveryState.PENDING)
        self._swap(failed.conversation_id, client_msg_id, pending)
        return await self._deliver(pending)

    def _prune_failed(self) -> None:
        """Forget failed sends of conversations no longer shown; cap the rest."""
        active = self._sync.active_id
        for key, msg in list(self._failed.items()):
            if msg.conversation_id != active:
                del self._failed[key]
        while len(self._failed) > MAX_FAILED_MESSAGES:
            del self._failed[next(iter(self._failed))]

    @property
    def failed_messages(self) -> list[Message]:
        return list(self._failed.values())

    async def _deliver(self, provisional: Message) -> Message:
        assert provisional.client_msg_id is not None
        cid = provisional.conversation_id
        try:
            confirmed = await self._messages.create_message(cid, provisional.body)
        except Exception as exc:
            logger.warning("Send to conversation %s failed: %s", cid, exc)
            failed = dataclasses.replace(provisional, state=DeliveryState.FAILED)
            self._failed[provisional.client_msg_id] = failed
            self._prune_failed()
            self._swap(cid, provisional.client_msg_id, failed)
            raise
        logger.info("Message %s sent to conversation %s", confirmed.id, cid)
        self._swap(cid, provisional.client_msg_id, confirmed)
        return confirmed

    def _swap(self, conversation_id: int, client_msg_id: str, replacement: Message) -> None:
        """Replace the local entry tagged ``client_msg_id``, if that conversation is still shown."""
        if self._sync.active_id != conversation_id:
            return

        def _apply(msgs: tuple[Message, ...]) -> list[Message]:
            # A poll may already have delivered the confirmed record.
            duplicate = replacement.id is not None and any(m.id == replacement.id for m in msgs)
            out: list[Message] = []
            for m in msgs:
                if m.client_msg_id == client_msg_id and m.id is None:
                    if not duplicate:
                        out.append(replacement)
                else:
                    out.append(m)
            return out

        self._sync.message_cache.update(_apply)

    # -- wishlist --------------------------------------------------------

    async def toggle_wishlist(self, listing_id: int) -> bool:
        """Flip membership of ``listing_id``. Return the new membership."""
        if self._wishlist.contains(listing_id):
            await self.remove_from_wishlist(listing_id)
            return False
        await self.add_to_wishlist(listing_id)
        return True

    async def add_to_wishlist(self, listing_id: int) -> None:
        if not self._credentials.has_token():
            raise AuthRequired("Please login to use the wishlist")

        marker = self._wishlist.begin_add(listing_id)
        try:
            await self._wishlist_writer.add(listing_id)
        except Exception as exc:
            logger.warning("Adding listing %s to wishlist failed: %s", listing_id, exc)
            self._wishlist.finish_add(listing_id, marker, ok=False)
            raise
        self._wishlist.finish_add(listing_id, marker, ok=True)
        logger.info("Listing %s added to wishlist", listing_id)

    async def remove_from_wishlist(self, listing_id: int) -> None:
        if not self._credentials.has_token():
            raise AuthRequired("Please login to use the wishlist")

        marker = self._wishlist.begin_remove(listing_id)
        try:
            await self._wishlist_writer.remove(listing_id)
        except Exception as exc:
            logger.warning("Removing listing %s from wishlist failed: %s", listing_id, exc)
            raise
        finally:
            self._wishlist.finish_remove(listing_id, marker)
        logger.info("Listing %s removed from wishlist", listing_id)
