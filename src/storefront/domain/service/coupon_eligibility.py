"""Domain service: Coupon Eligibility.

Runs every rule that decides whether a coupon may be attached to a cart,
in a fixed order.  Usage counts come from the caller because they live
in the order history, outside both aggregates.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from storefront.domain.exceptions import CouponNotApplicableError
from storefront.domain.model.cart import Cart
from storefront.domain.model.coupon import Coupon


@dataclass(frozen=True)
class EligibilityCheck:
    name: str
    passed: bool
    reason: str
    message: str


def eligibility_checks(
    coupon: Coupon,
    cart: Cart,
    now: datetime,
    user_usage_count: int | None = None,
    user_order_count: int | None = None,
) -> list[EligibilityCheck]:
    """Every check in evaluation order.

    The two user checks are only run for carts owned by a registered user,
    signalled by passing the counts.
    """
    subtotal = cart.subtotal
    if coupon.is_expired(now):
        invalid_message = f"Coupon {coupon.code} is expired"
    else:
        invalid_message = f"Coupon {coupon.code} is no longer valid"

    checks = [
        EligibilityCheck("is_valid", coupon.is_valid(now), "coupon_invalid", invalid_message),
        EligibilityCheck("cart_not_empty", not cart.is_empty, "cart_empty", "The cart is empty"),
        EligibilityCheck(
            "meets_minimum",
            coupon.meets_minimum(subtotal),
            "minimum_amount_not_met",
            f"Minimum amount {coupon.minimum_amount} required (cart: {subtotal})",
        ),
        EligibilityCheck(
            "customer_type_allowed",
            coupon.is_applicable_to_customer_type(cart.customer_type),
            "customer_type_not_allowed",
            f"Coupon {coupon.code} is not available for {cart.customer_type} customers",
        ),
        EligibilityCheck(
            "not_exhausted",
            not coupon.is_exhausted,
            "coupon_exhausted",
            f"Coupon {coupon.code} has reached its usage limit",
        ),
    ]
    if user_usage_count is not None:
        checks.append(
            EligibilityCheck(
                "can_user_use",
                coupon.can_user_use(user_usage_count),
                "user_limit_reached",
                f"Coupon {coupon.code} was already used the maximum number of times",
            )
        )
    if user_order_count is not None and coupon.first_order_only:
        checks.append(
            EligibilityCheck(
                "first_order",
                user_order_count == 0,
                "first_order_only",
                f"Coupon {coupon.code} is reserved for a first order",
            )
        )
    return checks


def first_failure(checks: list[EligibilityCheck]) -> EligibilityCheck | None:
    for check in checks:
        if not check.passed:
            return check
    return None


def assert_eligible(
    coupon: Coupon,
    cart: Cart,
    now: datetime,
    user_usage_count: int | None = None,
    user_order_count: int | None = None,
) -> None:
    failed = first_failure(
        eligibility_checks(coupon, cart, now, user_usage_count, user_order_count)
    )
    if failed is not None:
        raise CouponNotApplicableError(failed.message, code=failed.reason)
