from __future__ import annotations

import logging
from types import TracebackType
from typing import Self

from kitab_sync.application.exceptions import AppError
from kitab_sync.application.ports.auth import CredentialProvider
from kitab_sync.application.ports.clock import Clock, SystemClock
from kitab_sync.application.ports.remote import RemoteClient
from kitab_sync.config import Settings, settings as default_settings
from kitab_sync.infrastructure.auth.token_store import TokenStore
from kitab_sync.infrastructure.http.client import HttpxRemoteClient
from kitab_sync.infrastructure.http.repositories.conversation import HttpConversationReader
from kitab_sync.infrastructure.http.repositories.message import HttpMessageRepository
from kitab_sync.infrastructure.http.repositories.wishlist import HttpWishlistRepository
from kitab_sync.services.conversation_sync import ConversationSync
from kitab_sync.services.optimistic_mutator import OptimisticMutator
from kitab_sync.services.wishlist_store import WishlistStore
from kitab_sync.workers.polling import PollingLoop

logger = logging.getLogger(__name__)


class SyncApp:
    """Composition root: owns the transport, the polling loop and every store."""

    def __init__(
        self,
        remote: RemoteClient,
        credentials: CredentialProvider,
        polling: PollingLoop,
        sync: ConversationSync,
        wishlist: WishlistStore,
        mutator: OptimisticMutator,
    ) -> None:
        self.remote = remote
        self.credentials = credentials
        self.polling = polling
        self.sync = sync
        self.wishlist = wishlist
        self.mutator = mutator

    async def start(self) -> None:
        """Startup: initial wishlist load, then conversation polling."""
        try:
            await self.wishlist.refresh()
        except AppError as exc:
            logger.warning("Initial wishlist load failed: %s", exc.detail or exc)
        self.sync.start()
        logger.info("Sync started")

    async def stop(self) -> None:
        self.sync.stop()
        await self.polling.aclose()
        aclose = getattr(self.remote, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.info("Sync stopped")

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()


def create_app(
    settings: Settings | None = None,
    *,
    deep_link: int | None = None,
    remote: RemoteClient | None = None,
    credentials: CredentialProvider | None = None,
    clock: Clock | None = None,
) -> SyncApp:
    cfg = settings or default_settings
    clock = clock or SystemClock()
    credentials = credentials or TokenStore(cfg.ACCESS_TOKEN)
    remote = remote or HttpxRemoteClient(cfg.api_base_url, credentials, timeout=cfg.HTTP_TIMEOUT)

    polling = PollingLoop(clock)
    messages = HttpMessageRepository(remote)
    wishlist_repo = HttpWishlistRepository(remote)

    sync = ConversationSync(
        HttpConversationReader(remote),
        messages,
        polling,
        deep_link=deep_link,
        list_interval=cfg.CONVERSATIONS_POLL_INTERVAL,
        message_interval=cfg.MESSAGES_POLL_INTERVAL,
    )
    wishlist = WishlistStore(wishlist_repo, credentials)
    mutator = OptimisticMutator(messages, wishlist_repo, credentials, sync, wishlist, clock)
    return SyncApp(remote, credentials, polling, sync, wishlist, mutator)
