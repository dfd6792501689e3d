"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Amounts are rendered as
strings ("12.50 EUR") so no caller ever does arithmetic on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from storefront.domain.model.cart import Cart
from storefront.domain.model.order import Order

_TIMESTAMP = "%Y-%m-%d %H:%M UTC"


# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class CustomerInfo:
    """Input: identity details of the registered buyer, frozen into the order."""

    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None

    def to_snapshot(self) -> dict:
        return {
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "is_guest": False,
        }


GUEST_CUSTOMER_SNAPSHOT = {
    "email": None,
    "first_name": None,
    "last_name": None,
    "phone": None,
    "is_guest": True,
}


# --- Cart ---------------------------------------------------------------------


@dataclass(frozen=True)
class CartLineDTO:
    """Output: a single cart line as displayed to the shopper."""

    id: int
    variant_id: int | None
    display_name: str
    sku: str | None
    quantity: int
    unit_price: str
    line_total: str
    savings: str | None = None
    custom_message: str | None = None


@dataclass(frozen=True)
class CartDTO:
    """Output: a cart and its summary."""

    id: int
    owner: str
    currency: str
    customer_type: str
    items: list[CartLineDTO]
    coupon_code: str | None
    items_count: int
    lines_count: int
    subtotal: str
    discount: str
    shipping: str
    total: str
    savings: str
    weight: int
    is_empty: bool
    expires_at: str


@dataclass(frozen=True)
class OpenCartDTO:
    """Output of get-or-create: the cart plus whether it was just created."""

    cart: CartDTO
    session_token: str | None
    is_new: bool


@dataclass(frozen=True)
class CartLineCheckDTO:
    """Output: problems found on one line, empty when the line is fine."""

    item_id: int
    display_name: str
    issues: list[str]
    current_price: str | None = None


@dataclass(frozen=True)
class CartValidationDTO:
    cart_id: int
    is_valid_for_checkout: bool
    lines: list[CartLineCheckDTO]


@dataclass(frozen=True)
class PriceUpdateDTO:
    item_id: int
    display_name: str
    old_price: str
    new_price: str


@dataclass(frozen=True)
class CleanupReportDTO:
    expired_deleted: int
    empty_deleted: int


# --- Coupons ------------------------------------------------------------------


@dataclass(frozen=True)
class CouponCheckDTO:
    """Output: every eligibility check of a coupon against a cart.

    ``reason`` is the code of the first failing check, or None.
    """

    code: str
    exists: bool
    checks: dict[str, bool] = field(default_factory=dict)
    reason: str | None = None
    description: str | None = None
    discount: str | None = None
    free_shipping: bool = False

    @property
    def is_applicable(self) -> bool:
        return self.exists and self.reason is None


@dataclass(frozen=True)
class CouponSummaryDTO:
    """Output: one row of the active-coupon listing."""

    id: int
    code: str
    description: str
    usage_count: int
    remaining_usages: int | None
    valid_until: str | None


# --- Orders -------------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineDTO:
    display_name: str
    sku: str | None
    quantity: int
    unit_price: str
    tax: str
    line_total: str


@dataclass(frozen=True)
class StatusChangeDTO:
    from_status: str | None
    to_status: str
    description: str
    notify_customer: bool
    created_at: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    reference: str
    status: str
    user_id: int | None
    items: list[OrderLineDTO]
    subtotal: str
    discount: str
    tax: str
    shipping: str
    grand_total: str
    coupon_code: str | None
    created_at: str
    history: list[StatusChangeDTO]


@dataclass(frozen=True)
class OrderSummaryDTO:
    """Output: one row of an order list."""

    id: int
    reference: str
    status: str
    items_count: int
    grand_total: str
    created_at: str


@dataclass(frozen=True)
class OrderStatisticsDTO:
    """Output: paid-order figures for a window plus the status breakdown."""

    start: str
    end: str
    site_id: int | None
    total_orders: int
    total_revenue: str
    average_order_value: str
    status_distribution: dict[str, int]

    @property
    def status_total(self) -> int:
        return sum(self.status_distribution.values())


# --- Mapping ------------------------------------------------------------------


def to_cart_dto(cart: Cart, now: datetime) -> CartDTO:
    coupon = cart.active_coupon(now)
    return CartDTO(
        id=cart.id,  # type: ignore[arg-type]
        owner=str(cart.owner),
        currency=cart.currency,
        customer_type=cart.customer_type,
        items=[
            CartLineDTO(
                id=item.id,  # type: ignore[arg-type]
                variant_id=item.variant_id,
                display_name=item.display_name,
                sku=item.product_snapshot.get("variant_sku"),
                quantity=item.quantity,
                unit_price=str(item.price_at_add),
                line_total=str(item.line_total),
                savings=str(item.savings_at_add) if item.savings_at_add else None,
                custom_message=item.custom_message,
            )
            for item in cart.items
        ],
        coupon_code=coupon.code if coupon else None,
        items_count=cart.total_items_count,
        lines_count=cart.lines_count,
        subtotal=str(cart.subtotal),
        discount=str(cart.discount_amount(now)),
        shipping=str(cart.shipping_cost(now)),
        total=str(cart.grand_total(now)),
        savings=str(cart.total_savings),
        weight=cart.total_weight,
        is_empty=cart.is_empty,
        expires_at=cart.expires_at.strftime(_TIMESTAMP) if cart.expires_at else "",
    )


def to_order_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        reference=order.reference,
        status=order.status.value,
        user_id=order.user_id,
        items=[
            OrderLineDTO(
                display_name=item.display_name,
                sku=item.sku,
                quantity=item.quantity,
                unit_price=str(item.unit_price),
                tax=str(item.tax_amount),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        discount=str(order.discount_amount),
        tax=str(order.tax_amount),
        shipping=str(order.shipping_cost),
        grand_total=str(order.grand_total),
        coupon_code=order.applied_coupon["code"] if order.applied_coupon else None,
        created_at=order.created_at.strftime(_TIMESTAMP),
        history=[
            StatusChangeDTO(
                from_status=entry.from_status.value if entry.from_status else None,
                to_status=entry.to_status.value,
                description=entry.description,
                notify_customer=entry.notify_customer,
                created_at=entry.created_at.strftime(_TIMESTAMP),
            )
            for entry in order.status_history
        ],
    )


def to_order_summary_dto(order: Order) -> OrderSummaryDTO:
    return OrderSummaryDTO(
        id=order.id,  # type: ignore[arg-type]
        reference=order.reference,
        status=order.status.value,
        items_count=order.total_items_count,
        grand_total=str(order.grand_total),
        created_at=order.created_at.strftime(_TIMESTAMP),
    )
