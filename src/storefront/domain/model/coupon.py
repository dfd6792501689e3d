"""Coupon aggregate — promotional codes and their discount rules.

Every check here is a pure function of the coupon's own fields plus the
values passed in (``now``, a subtotal, a usage count).  Looking up how many
times a user already used the coupon is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money


class CouponType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"


@dataclass
class Coupon:
    """Aggregate root for coupons.

    ``value`` is a fraction for percentage coupons (0.10 means 10 %) and an
    amount in the cart currency for fixed-amount coupons.  It is ignored
    for free-shipping coupons.

    Invariant: ``usage_count`` never exceeds ``max_usages`` when set.
    """

    id: int | None
    code: str
    site_id: int
    type: CouponType
    value: Decimal = Decimal("0")
    minimum_amount: Decimal | None = None
    maximum_discount: Decimal | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    max_usages: int | None = None
    max_usages_per_user: int | None = None
    usage_count: int = 0
    first_order_only: bool = False
    allowed_customer_types: list[str] | None = None
    public_message: str | None = None
    is_active: bool = True
    is_deleted: bool = False
    created_at: datetime | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.code or not self.code.strip():
            raise ValidationError("Coupon code is required")
        self.code = self.code.strip().upper()
        if self.value < Decimal("0"):
            raise ValidationError("Coupon value cannot be negative")
        if self.type is CouponType.PERCENTAGE and self.value > Decimal("1"):
            raise ValidationError(
                f"Percentage coupon value must be a fraction between 0 and 1, got {self.value}"
            )

    # --- Validity -------------------------------------------------------------

    def is_valid(self, now: datetime) -> bool:
        return (
            not self.is_expired(now)
            and not self.is_exhausted
            and self.is_active
            and not self.is_deleted
        )

    def is_expired(self, now: datetime) -> bool:
        """True outside the validity window (before it opens or after it closes)."""
        if self.valid_from is not None and now < self.valid_from:
            return True
        if self.valid_until is not None and now > self.valid_until:
            return True
        return False

    @property
    def is_exhausted(self) -> bool:
        if self.max_usages is None:
            return False
        return self.usage_count >= self.max_usages

    @property
    def remaining_usages(self) -> int | None:
        if self.max_usages is None:
            return None
        return max(0, self.max_usages - self.usage_count)

    def can_user_use(self, prior_usage_count: int) -> bool:
        if self.max_usages_per_user is None:
            return True
        return prior_usage_count < self.max_usages_per_user

    def is_applicable_to_customer_type(self, customer_type: str) -> bool:
        if not self.allowed_customer_types:
            return True
        return customer_type in self.allowed_customer_types

    def meets_minimum(self, subtotal: Money) -> bool:
        if self.minimum_amount is None:
            return True
        return subtotal.amount >= self.minimum_amount

    # --- Discount -------------------------------------------------------------

    def discount_for(self, subtotal: Money) -> Money:
        """Discount granted on ``subtotal``; never more than the subtotal itself.

        Free-shipping coupons return zero here; the waived shipping is
        applied by the cart through ``offers_free_shipping``.
        """
        zero = Money.zero(subtotal.currency)
        if not self.meets_minimum(subtotal):
            return zero

        if self.type is CouponType.PERCENTAGE:
            discount = subtotal.amount * self.value
            if self.maximum_discount is not None:
                discount = min(discount, self.maximum_discount)
        elif self.type is CouponType.FIXED_AMOUNT:
            discount = self.value
        else:
            return zero

        rounded = Money(discount, subtotal.currency).rounded()
        return Money(min(rounded.amount, subtotal.amount), subtotal.currency)

    @property
    def offers_free_shipping(self) -> bool:
        return self.type is CouponType.FREE_SHIPPING

    def increment_usage(self) -> None:
        if self.is_exhausted:
            raise ValidationError(f"Coupon {self.code} has no usages left")
        self.usage_count += 1

    # --- Display --------------------------------------------------------------

    @property
    def description(self) -> str:
        if self.type is CouponType.PERCENTAGE:
            return f"{self.value * 100:.0f}% off"
        if self.type is CouponType.FIXED_AMOUNT:
            return f"{self.value:.2f} off"
        return "Free shipping"

    def to_snapshot(self) -> dict[str, str]:
        """Coupon fields frozen into an order."""
        return {
            "code": self.code,
            "type": self.type.value,
            "value": str(self.value),
            "description": self.description,
        }

    def __str__(self) -> str:
        return f"{self.code} ({self.description})"
