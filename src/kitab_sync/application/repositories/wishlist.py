from __future__ import annotations

from typing import Protocol

from kitab_sync.domain.entities.wishlist import WishlistItem


class WishlistReader(Protocol):
    async def list_items(self) -> list[WishlistItem]: ...


class WishlistWriter(Protocol):
    async def add(self, listing_id: int) -> None: ...

    async def remove(self, listing_id: int) -> None: ...
