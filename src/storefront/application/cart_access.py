"""Shared cart lookup for the cart use cases.

Resolves a cart by ID, enforces ownership when the caller says who is
asking, and applies lazy expiration.
"""

from __future__ import annotations

from datetime import datetime

from storefront.domain.exceptions import (
    AccessDeniedError,
    CartExpiredError,
    CartNotFoundError,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.owner import Owner
from storefront.domain.repository.cart_repository import CartRepository


def load_cart(
    cart_repo: CartRepository,
    cart_id: int,
    requester: Owner | None = None,
) -> Cart:
    cart = cart_repo.get_by_id(cart_id)
    if cart is None:
        raise CartNotFoundError(f"Cart #{cart_id} not found")
    if requester is not None and not cart.is_owned_by(requester):
        raise AccessDeniedError(f"Cart #{cart_id} does not belong to {requester}")
    return cart


def load_valid_cart(
    cart_repo: CartRepository,
    cart_id: int,
    now: datetime,
    requester: Owner | None = None,
) -> Cart:
    """Like ``load_cart`` but refuses carts past their expiration date."""
    cart = load_cart(cart_repo, cart_id, requester)
    if cart.is_expired(now):
        raise CartExpiredError(f"Cart #{cart_id} expired on {cart.expires_at:%Y-%m-%d}")
    return cart
