"""Shopping cart and wishlist models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CartItem:
    id: str
    user_id: str
    product_id: str
    provider_id: str
    unit_price: float
    quantity: int
    added_at: str


@dataclass
class WishlistEntry:
    id: str
    user_id: str
    product_id: str
    added_at: str


@dataclass
class CartTotal:
    subtotal: float
    item_count: int
