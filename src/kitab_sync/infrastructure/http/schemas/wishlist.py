from __future__ import annotations

from pydantic import BaseModel


class WishlistItemResponse(BaseModel):
    announcement_id: int
    title: str | None = None
    price: float | None = None
    status: str | None = None
    image_url: str | None = None

    model_config = {"extra": "ignore"}


class WishlistResponse(BaseModel):
    items: list[WishlistItemResponse] = []


class AddToWishlistRequest(BaseModel):
    announcement_id: int
