"""Cart aggregate — a shopper's basket before checkout.

The Cart owns its line items.  Each line freezes the unit price, the tier
savings and the product display data at the moment it was (re)priced, so
later catalog changes never silently alter what the shopper saw.  Drift
between the frozen price and the live catalog is detected at checkout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from storefront.domain.exceptions import (
    CartItemNotFoundError,
    InsufficientStockError,
    InvalidQuantityError,
    PriceUnavailableError,
    VariantUnavailableError,
)
from storefront.domain.model.coupon import Coupon
from storefront.domain.model.owner import GuestOwner, Owner, UserOwner
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money
from storefront.domain.model.variant import Variant
from storefront.domain.service.pricing import price_for, savings_for
from storefront.utils.clock import utcnow

# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
GUEST_CART_LIFETIME = timedelta(days=7)
USER_CART_LIFETIME = timedelta(days=30)
FREE_SHIPPING_THRESHOLD = Decimal("50")
FLAT_SHIPPING_COST = Decimal("5.90")
# Relative drift between the frozen and the live unit price above which a
# line must be refreshed before checkout.
PRICE_CHANGE_TOLERANCE = Decimal("0.05")


@dataclass
class CartItem:
    """A cart line with its price snapshot.

    ``price_at_add`` and ``savings_at_add`` are recomputed only when the
    quantity changes; ``product_snapshot`` is frozen when the line is
    created.  ``variant_id`` becomes None if the variant is removed from
    the catalog.
    """

    id: int | None
    variant_id: int | None
    product_id: int | None
    quantity: int
    price_at_add: Money
    product_snapshot: dict[str, Any] = field(default_factory=dict)
    savings_at_add: Money | None = None
    custom_message: str | None = None
    added_at: datetime = field(default_factory=utcnow)

    @property
    def line_total(self) -> Money:
        return self.price_at_add * self.quantity

    @property
    def display_name(self) -> str:
        return self.product_snapshot.get("full_name") or "Unavailable product"

    @property
    def weight(self) -> int | None:
        unit = self.product_snapshot.get("weight")
        if unit is None:
            return None
        return int(unit) * self.quantity

    def is_orderable(self, variant: Variant | None) -> bool:
        """Variant still sellable and enough stock for this line's quantity."""
        if variant is None or variant.id != self.variant_id:
            return False
        return variant.is_sellable and variant.has_quantity_available(self.quantity)

    def price_drift(self, current: Money | None) -> Decimal | None:
        """Relative difference between ``current`` and the frozen price.

        None when there is nothing to compare against.
        """
        if current is None or self.price_at_add.is_zero:
            return None
        difference = abs(current.amount - self.price_at_add.amount)
        return difference / self.price_at_add.amount

    def has_price_changed(
        self,
        current: Money | None,
        tolerance: Decimal = PRICE_CHANGE_TOLERANCE,
    ) -> bool:
        drift = self.price_drift(current)
        return drift is not None and drift > tolerance

    def reprice(self, variant: Variant, currency: str, customer_type: str) -> None:
        price = price_for(variant, currency, customer_type, self.quantity)
        if price is None:
            raise PriceUnavailableError(
                f"No price for '{variant.full_name}' in {currency} {customer_type}"
            )
        self.price_at_add = price
        self.savings_at_add = savings_for(variant, currency, customer_type, self.quantity)


@dataclass
class Cart:
    """Aggregate root for shopping carts.

    Invariants:
    - ownership is either a user or a guest token, never both
    - ``expires_at`` is recomputed on every mutation (7 days for guests,
      30 days for users)
    - at most one line per variant
    """

    id: int | None
    site_id: int
    owner: Owner
    currency: str = DEFAULT_CURRENCY
    customer_type: str = "B2C"
    locale: str = "fr"
    items: list[CartItem] = field(default_factory=list)
    coupon: Coupon | None = None
    created_at: datetime = field(default_factory=utcnow)
    last_activity_at: datetime = field(default_factory=utcnow)
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        self.currency = self.currency.upper()
        if self.expires_at is None:
            self.recalculate_expiration(self.last_activity_at)

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def open(
        site_id: int,
        owner: Owner | None = None,
        currency: str = DEFAULT_CURRENCY,
        customer_type: str = "B2C",
        locale: str = "fr",
        now: datetime | None = None,
    ) -> Cart:
        """Create an empty cart; a guest token is generated when no owner is given."""
        now = now or utcnow()
        return Cart(
            id=None,
            site_id=site_id,
            owner=owner if owner is not None else GuestOwner.generate(),
            currency=currency,
            customer_type=customer_type,
            locale=locale,
            created_at=now,
            last_activity_at=now,
        )

    # --- Ownership ------------------------------------------------------------

    @property
    def is_guest_cart(self) -> bool:
        return isinstance(self.owner, GuestOwner)

    @property
    def user_id(self) -> int | None:
        return self.owner.user_id if isinstance(self.owner, UserOwner) else None

    @property
    def session_token(self) -> str | None:
        return self.owner.token if isinstance(self.owner, GuestOwner) else None

    def is_owned_by(self, owner: Owner) -> bool:
        return self.owner == owner

    def attach_to_user(self, user_id: int, now: datetime | None = None) -> None:
        """Hand a guest cart over to a registered user (login / registration)."""
        self.owner = UserOwner(user_id)
        self.touch_activity(now)

    # --- Items ----------------------------------------------------------------

    def find_item(self, item_id: int) -> CartItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise CartItemNotFoundError(f"Item #{item_id} not found in cart #{self.id}")

    def find_item_by_variant(self, variant_id: int) -> CartItem | None:
        for item in self.items:
            if item.variant_id == variant_id:
                return item
        return None

    def add_variant(
        self,
        variant: Variant,
        quantity: int,
        custom_message: str | None = None,
        now: datetime | None = None,
    ) -> CartItem:
        """Add ``quantity`` units of ``variant``.

        An existing line for the variant is grown and re-priced at the new
        total quantity; otherwise a new line with a fresh snapshot is
        created.  Stock is checked against the resulting line quantity.
        """
        if quantity < 1:
            raise InvalidQuantityError("Quantity must be at least 1")
        self._assert_variant_available(variant)

        existing = self.find_item_by_variant(variant.id)
        target = quantity + (existing.quantity if existing else 0)
        self._assert_stock(variant, target)

        price = price_for(variant, self.currency, self.customer_type, target)
        if price is None:
            raise PriceUnavailableError(
                f"No price for '{variant.full_name}' in {self.currency} {self.customer_type}"
            )
        savings = savings_for(variant, self.currency, self.customer_type, target)

        if existing is not None:
            existing.quantity = target
            existing.price_at_add = price
            existing.savings_at_add = savings
            if custom_message:
                existing.custom_message = custom_message
            self.touch_activity(now)
            return existing

        item = CartItem(
            id=None,
            variant_id=variant.id,
            product_id=variant.product_id,
            quantity=target,
            price_at_add=price,
            product_snapshot=variant.to_snapshot(),
            savings_at_add=savings,
            custom_message=custom_message,
            added_at=now or utcnow(),
        )
        self.items.append(item)
        self.touch_activity(now)
        return item

    def update_item_quantity(
        self,
        item_id: int,
        new_quantity: int,
        variant: Variant | None,
        now: datetime | None = None,
    ) -> CartItem:
        """Set a line's quantity and re-price it against the live catalog."""
        if new_quantity < 1:
            raise InvalidQuantityError("Quantity must be at least 1")
        item = self.find_item(item_id)
        if variant is None or item.variant_id != variant.id:
            raise VariantUnavailableError(
                f"'{item.display_name}' is no longer available"
            )
        self._assert_variant_available(variant)
        self._assert_stock(variant, new_quantity)

        previous = item.quantity
        item.quantity = new_quantity
        try:
            item.reprice(variant, self.currency, self.customer_type)
        except PriceUnavailableError:
            item.quantity = previous
            raise
        self.touch_activity(now)
        return item

    def remove_item(self, item_id: int, now: datetime | None = None) -> CartItem:
        item = self.find_item(item_id)
        self.items.remove(item)
        self.touch_activity(now)
        return item

    def clear(self, now: datetime | None = None) -> None:
        self.items.clear()
        self.touch_activity(now)

    # --- Coupon ---------------------------------------------------------------

    def apply_coupon(self, coupon: Coupon, now: datetime | None = None) -> None:
        self.coupon = coupon
        self.touch_activity(now)

    def remove_coupon(self, now: datetime | None = None) -> None:
        self.coupon = None
        self.touch_activity(now)

    def active_coupon(self, now: datetime | None = None) -> Coupon | None:
        """The attached coupon if it is currently valid, else None."""
        if self.coupon is None or not self.coupon.is_valid(now or utcnow()):
            return None
        return self.coupon

    # --- Computed properties --------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def lines_count(self) -> int:
        return len(self.items)

    @property
    def subtotal(self) -> Money:
        result = Money.zero(self.currency)
        for item in self.items:
            result = result + item.line_total
        return result

    def discount_amount(self, now: datetime | None = None) -> Money:
        coupon = self.active_coupon(now)
        if coupon is None:
            return Money.zero(self.currency)
        return coupon.discount_for(self.subtotal)

    def total_after_discount(self, now: datetime | None = None) -> Money:
        return self.subtotal.minus_floor_zero(self.discount_amount(now))

    def shipping_cost(self, now: datetime | None = None) -> Money:
        coupon = self.active_coupon(now)
        if coupon is not None and coupon.offers_free_shipping:
            return Money.zero(self.currency)
        if self.total_after_discount(now).amount >= FREE_SHIPPING_THRESHOLD:
            return Money.zero(self.currency)
        return Money(FLAT_SHIPPING_COST, self.currency)

    def grand_total(self, now: datetime | None = None) -> Money:
        return self.total_after_discount(now) + self.shipping_cost(now)

    @property
    def total_weight(self) -> int:
        return sum(item.weight or 0 for item in self.items)

    @property
    def total_savings(self) -> Money:
        result = Money.zero(self.currency)
        for item in self.items:
            if item.savings_at_add is not None:
                result = result + item.savings_at_add
        return result

    # --- Expiration -----------------------------------------------------------

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utcnow())

    def touch_activity(self, now: datetime | None = None) -> None:
        now = now or utcnow()
        self.last_activity_at = now
        self.recalculate_expiration(now)

    def recalculate_expiration(self, now: datetime | None = None) -> None:
        lifetime = GUEST_CART_LIFETIME if self.is_guest_cart else USER_CART_LIFETIME
        self.expires_at = (now or utcnow()) + lifetime

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _assert_variant_available(variant: Variant) -> None:
        if not variant.is_active or variant.is_deleted:
            raise VariantUnavailableError(
                f"'{variant.full_name}' is no longer available"
            )

    @staticmethod
    def _assert_stock(variant: Variant, quantity: int) -> None:
        if not variant.has_quantity_available(quantity):
            raise InsufficientStockError(
                f"Insufficient stock for '{variant.full_name}' "
                f"(available {variant.available_stock}, requested {quantity})"
            )

    def __str__(self) -> str:
        kind = "Guest" if self.is_guest_cart else "User"
        return f"Cart [{kind}] {self.owner} ({self.total_items_count} items)"

