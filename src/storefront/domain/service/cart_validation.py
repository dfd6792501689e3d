"""Domain service: Cart Validation.

Compares each cart line against the live catalog.  Used both for the
non-raising validation report shown to shoppers and for the checkout
preconditions, which turn the first problem found into an exception.
"""

from __future__ import annotations

from typing import Mapping

from storefront.domain.exceptions import (
    EmptyCartError,
    ItemNotOrderableError,
    PriceChangedError,
)
from storefront.domain.model.cart import Cart, CartItem
from storefront.domain.model.value_objects import Money
from storefront.domain.model.variant import Variant
from storefront.domain.service.pricing import price_for

VARIANT_UNAVAILABLE = "variant_unavailable"
INSUFFICIENT_STOCK = "insufficient_stock"
PRICE_CHANGED = "price_changed"


def current_price(cart: Cart, item: CartItem, variant: Variant | None) -> Money | None:
    """Live unit price of a line at its current quantity, or None."""
    if variant is None:
        return None
    return price_for(variant, cart.currency, cart.customer_type, item.quantity)


def line_issues(cart: Cart, item: CartItem, variant: Variant | None) -> list[str]:
    """Problem codes for one line; empty when the line can be ordered as is."""
    if variant is None or not variant.is_active or variant.is_deleted:
        return [VARIANT_UNAVAILABLE]
    issues = []
    if not variant.has_quantity_available(item.quantity):
        issues.append(INSUFFICIENT_STOCK)
    if item.has_price_changed(current_price(cart, item, variant)):
        issues.append(PRICE_CHANGED)
    return issues


def assert_ready_for_checkout(
    cart: Cart,
    variants: Mapping[int, Variant | None],
) -> None:
    """Raise on the first failed checkout precondition.

    Checked in order: the cart has lines, every line is orderable, no
    line's price drifted beyond the tolerance.  ``variants`` maps each
    line's variant ID to the live variant (or None when it is gone).
    """
    if cart.is_empty:
        raise EmptyCartError("Cannot check out an empty cart")

    for item in cart.items:
        variant = variants.get(item.variant_id) if item.variant_id is not None else None
        if not item.is_orderable(variant):
            raise ItemNotOrderableError(
                f"'{item.display_name}' cannot be ordered (unavailable or out of stock)",
                item_id=item.id,
            )

    for item in cart.items:
        variant = variants[item.variant_id]  # type: ignore[index]
        if item.has_price_changed(current_price(cart, item, variant)):
            raise PriceChangedError(
                f"The price of '{item.display_name}' has changed since it was added",
                item_id=item.id,
            )
