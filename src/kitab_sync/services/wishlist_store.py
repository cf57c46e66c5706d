from __future__ import annotations

import logging
from typing import Iterable

from kitab_sync.application.ports.auth import CredentialProvider
from kitab_sync.application.repositories.wishlist import WishlistReader
from kitab_sync.domain.entities.wishlist import WishlistItem
from kitab_sync.infrastructure.cache.entity_cache import EntityCache

logger = logging.getLogger(__name__)


class WishlistStore:
    """Owns the set of wishlisted listing ids.

    Adds and removes that are still in flight are re-applied on top of every
    server snapshot, so a fetch that lands mid-call cannot undo them.
    """

    def __init__(
        self,
        reader: WishlistReader,
        credentials: CredentialProvider,
        cache: EntityCache[frozenset[int]] | None = None,
    ) -> None:
        self._reader = reader
        self._credentials = credentials
        self.cache = cache or EntityCache("wishlist", frozenset)
        self.loading = False
        self._adding: dict[int, object] = {}
        self._removing: dict[int, object] = {}

    @property
    def ids(self) -> frozenset[int]:
        return self.cache.value

    def contains(self, listing_id: int) -> bool:
        return listing_id in self.cache.value

    async def refresh(self) -> bool:
        """Load the whole set. Logged-out sessions get an empty set, no request."""
        if not self._credentials.has_token():
            return self.cache.merge(())

        self.loading = True
        try:
            items = await self._reader.list_items()
        finally:
            self.loading = False
        changed = self._reconcile(item.listing_id for item in items)
        if changed:
            logger.info("Wishlist loaded: %d listing(s)", len(self.cache.value))
        return changed

    async def fetch_items(self) -> list[WishlistItem]:
        """Detailed rows for the wishlist page. Also reconciles the id set."""
        items = await self._reader.list_items()
        self._reconcile(item.listing_id for item in items)
        return items

    # -- in-flight edits -------------------------------------------------

    def begin_add(self, listing_id: int) -> object:
        """Insert ``listing_id`` now. Returns a marker for ``finish_add``."""
        marker = object()
        self._removing.pop(listing_id, None)
        self._adding[listing_id] = marker
        self.cache.update(lambda ids: ids | {listing_id})
        return marker

    def finish_add(self, listing_id: int, marker: object, *, ok: bool) -> None:
        """Settle an add. A failed add is undone unless a later edit superseded it."""
        if self._adding.get(listing_id) is not marker:
            return
        del self._adding[listing_id]
        if not ok:
            self.cache.update(lambda ids: ids - {listing_id})

    def begin_remove(self, listing_id: int) -> object:
        marker = object()
        self._adding.pop(listing_id, None)
        self._removing[listing_id] = marker
        self.cache.update(lambda ids: ids - {listing_id})
        return marker

    def finish_remove(self, listing_id: int, marker: object) -> None:
        # Removals are never rolled back, even when the call failed.
        if self._removing.get(listing_id) is marker:
            del self._removing[listing_id]

    def _reconcile(self, server_ids: Iterable[int]) -> bool:
        merged = (set(server_ids) | self._adding.keys()) - self._removing.keys()
        return self.cache.merge(merged)
