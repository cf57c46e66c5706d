from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class WishlistItem:
    listing_id: int
    title: str | None = None
    price: float | None = None
    status: str | None = None
    image_url: str | None = None

    @property
    def is_available(self) -> bool:
        return self.status in ("Active", "Available")
