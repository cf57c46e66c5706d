from __future__ import annotations

from kitab_sync.application.ports.remote import RemoteClient
from kitab_sync.domain.entities.wishlist import WishlistItem
from kitab_sync.infrastructure.http.mappers.wishlist import response_to_entity
from kitab_sync.infrastructure.http.repositories._payload import parse_payload
from kitab_sync.infrastructure.http.schemas.wishlist import AddToWishlistRequest, WishlistResponse

WISHLIST_PATH = "/api/wishlist"


class HttpWishlistRepository:
    """Implements WishlistReader and WishlistWriter."""

    def __init__(self, remote: RemoteClient) -> None:
        self._remote = remote

    async def list_items(self) -> list[WishlistItem]:
        body = await self._remote.get(WISHLIST_PATH)
        parsed = parse_payload(WishlistResponse, body)
        return [response_to_entity(i) for i in parsed.items]

    async def add(self, listing_id: int) -> None:
        payload = AddToWishlistRequest(announcement_id=listing_id)
        await self._remote.post(f"{WISHLIST_PATH}/", json=payload.model_dump())

    async def remove(self, listing_id: int) -> None:
        await self._remote.delete(f"{WISHLIST_PATH}/{listing_id}")
