"""Domain service: Pricing.

Pure functions over a variant's price table.  "No price" is a normal
answer here (``None``), not an error: the caller decides whether an
unpriceable item is a failure in its context.
"""

from __future__ import annotations

from decimal import Decimal

from storefront.domain.model.value_objects import Money
from storefront.domain.model.variant import PriceEntry, Variant


def unit_price(entry: PriceEntry, quantity: int) -> Decimal:
    """Unit price for ``quantity`` units under a single price-table entry.

    The highest tier whose minimum is reached wins; below the first tier
    the base price applies.
    """
    price = entry.base
    for tier in entry.tiers:
        if quantity >= tier.min_quantity:
            price = tier.price
        else:
            break
    return price


def price_for(
    variant: Variant,
    currency: str,
    customer_type: str,
    quantity: int = 1,
) -> Money | None:
    """Unit price of ``variant`` for this context, or None if not priced."""
    entry = variant.price_entry(currency, customer_type)
    if entry is None:
        return None
    return Money(unit_price(entry, quantity), currency.upper())


def savings_for(
    variant: Variant,
    currency: str,
    customer_type: str,
    quantity: int,
) -> Money | None:
    """Total saved on ``quantity`` units compared to the single-unit price.

    None when the entry is missing or when the quantity does not reach a
    cheaper tier.
    """
    entry = variant.price_entry(currency, customer_type)
    if entry is None or not entry.is_tiered:
        return None
    single = unit_price(entry, 1)
    applied = unit_price(entry, quantity)
    if applied >= single:
        return None
    return Money((single - applied) * quantity, currency.upper())
