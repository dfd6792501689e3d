"""Variant aggregate — the sellable unit of a catalog product.

A variant carries its own price table and stock counter.  Prices are keyed
by (currency, customer type) and may be tiered by quantity.  Stock is only
mutated through the stock ledger so concurrent decrements stay safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from storefront.domain.exceptions import ValidationError


@dataclass(frozen=True)
class PriceTier:
    """Unit price that applies from ``min_quantity`` units upwards."""

    min_quantity: int
    price: Decimal

    def __post_init__(self) -> None:
        if self.min_quantity < 1:
            raise ValidationError("Tier minimum quantity must be at least 1")
        if self.price < Decimal("0"):
            raise ValidationError("Tier price cannot be negative")


@dataclass(frozen=True)
class PriceEntry:
    """One cell of a variant's price table.

    A flat entry has no tiers.  Tiers are kept sorted by ascending
    ``min_quantity`` whatever order they were given in.
    """

    base: Decimal
    tiers: tuple[PriceTier, ...] = ()

    def __post_init__(self) -> None:
        if self.base < Decimal("0"):
            raise ValidationError("Base price cannot be negative")
        ordered = tuple(sorted(self.tiers, key=lambda t: t.min_quantity))
        object.__setattr__(self, "tiers", ordered)

    @property
    def is_tiered(self) -> bool:
        return bool(self.tiers)

    @staticmethod
    def flat(price: str | Decimal) -> PriceEntry:
        return PriceEntry(base=Decimal(str(price)))

    @staticmethod
    def tiered(base: str | Decimal, *tiers: tuple[int, str | Decimal]) -> PriceEntry:
        return PriceEntry(
            base=Decimal(str(base)),
            tiers=tuple(PriceTier(m, Decimal(str(p))) for m, p in tiers),
        )


PriceKey = tuple[str, str]  # (currency, customer type)


@dataclass
class Variant:
    """Aggregate root for a product variant.

    Invariants:
    - ``stock`` is never negative
    - ``available_stock`` excludes the safety stock and is always >= 0
    """

    id: int
    sku: str
    name: str
    product_id: int
    product_name: str
    prices: dict[PriceKey, PriceEntry] = field(default_factory=dict)
    stock: int = 0
    low_stock_threshold: int = 5
    safety_stock: int = 0
    weight: int | None = None  # grams
    image: str | None = None
    is_active: bool = True
    is_deleted: bool = False

    def __post_init__(self) -> None:
        if self.stock < 0:
            raise ValidationError(f"Stock cannot be negative for {self.sku}")
        self.sku = self.sku.upper()

    # --- Prices ---------------------------------------------------------------

    def price_entry(self, currency: str, customer_type: str) -> PriceEntry | None:
        return self.prices.get((currency.upper(), customer_type))

    def set_price(self, currency: str, customer_type: str, entry: PriceEntry) -> None:
        self.prices[(currency.upper(), customer_type)] = entry

    # --- Stock ----------------------------------------------------------------

    @property
    def available_stock(self) -> int:
        return max(0, self.stock - self.safety_stock)

    @property
    def is_in_stock(self) -> bool:
        return self.available_stock > 0

    @property
    def is_low_stock(self) -> bool:
        available = self.available_stock
        return 0 < available <= self.low_stock_threshold

    @property
    def stock_status(self) -> str:
        if self.available_stock == 0:
            return "out_of_stock"
        if self.is_low_stock:
            return "low_stock"
        return "in_stock"

    def has_quantity_available(self, quantity: int) -> bool:
        return self.available_stock >= quantity

    @property
    def is_sellable(self) -> bool:
        """Active, not soft-deleted and with at least one unit available."""
        return self.is_active and not self.is_deleted and self.is_in_stock

    def try_decrement(self, quantity: int) -> bool:
        """Remove ``quantity`` units if that many are physically in stock."""
        if quantity <= 0:
            raise ValidationError("Decrement quantity must be positive")
        if self.stock < quantity:
            return False
        self.stock -= quantity
        return True

    def increment(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Increment quantity must be positive")
        self.stock += quantity

    # --- Display --------------------------------------------------------------

    @property
    def full_name(self) -> str:
        return f"{self.product_name} - {self.name}".strip(" -")

    def to_snapshot(self) -> dict[str, Any]:
        """Display fields frozen into cart and order lines."""
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "variant_id": self.id,
            "variant_sku": self.sku,
            "variant_name": self.name,
            "full_name": self.full_name,
            "image": self.image,
            "weight": self.weight,
        }
