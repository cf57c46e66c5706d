from __future__ import annotations

from kitab_sync.domain.entities.wishlist import WishlistItem
from kitab_sync.infrastructure.http.schemas.wishlist import WishlistItemResponse


def response_to_entity(resp: WishlistItemResponse) -> WishlistItem:
    return WishlistItem(
        listing_id=resp.announcement_id,
        title=resp.title,
        price=resp.price,
        status=resp.status,
        image_url=resp.image_url,
    )
