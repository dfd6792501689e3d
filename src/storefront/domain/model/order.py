"""Order aggregate — the immutable record of a checkout.

The Order is an aggregate root that owns its line items and its status
history.  Monetary fields, addresses, the customer snapshot and the applied
coupon are frozen at creation; afterwards only ``status`` (and the history
that records each change) evolves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from storefront.domain.exceptions import EmptyCartError, InvalidTransitionError
from storefront.domain.model.cart import Cart, CartItem
from storefront.domain.model.order_status import ActorType, OrderStatus
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money
from storefront.utils.clock import utcnow

# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
# Single flat VAT rate; per-site or per-product rates do not exist yet.
TAX_RATE = Decimal("0.20")


@dataclass(frozen=True)
class OrderItem:
    """A line copied verbatim from a cart line at checkout."""

    variant_id: int | None
    product_id: int | None
    quantity: int
    unit_price: Money  # locked at checkout
    tax_rate: Decimal
    tax_amount: Money
    product_snapshot: Mapping[str, Any] = field(default_factory=dict)
    savings_amount: Money | None = None
    custom_message: str | None = None

    @property
    def line_subtotal(self) -> Money:
        return self.unit_price * self.quantity

    @property
    def line_total(self) -> Money:
        return self.line_subtotal + self.tax_amount

    @property
    def display_name(self) -> str:
        return self.product_snapshot.get("full_name") or "Product"

    @property
    def sku(self) -> str | None:
        return self.product_snapshot.get("variant_sku")

    @staticmethod
    def from_cart_item(item: CartItem, tax_rate: Decimal = TAX_RATE) -> OrderItem:
        line_subtotal = item.price_at_add * item.quantity
        return OrderItem(
            variant_id=item.variant_id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=item.price_at_add,
            tax_rate=tax_rate,
            tax_amount=(line_subtotal * tax_rate).rounded(),
            product_snapshot=dict(item.product_snapshot),
            savings_amount=item.savings_at_add,
            custom_message=item.custom_message,
        )


@dataclass(frozen=True)
class OrderStatusHistory:
    """One accepted status change.  Append-only."""

    from_status: OrderStatus | None
    to_status: OrderStatus
    changed_by_type: ActorType = ActorType.SYSTEM
    changed_by: int | None = None
    reason: str | None = None
    metadata: Mapping[str, Any] | None = None
    notify_customer: bool = False
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_admin_change(self) -> bool:
        return self.changed_by_type is ActorType.ADMIN

    @property
    def is_customer_change(self) -> bool:
        return self.changed_by_type is ActorType.CUSTOMER

    @property
    def is_system_change(self) -> bool:
        return self.changed_by_type is ActorType.SYSTEM

    def metadata_value(self, key: str, default: Any = None) -> Any:
        if not self.metadata:
            return default
        return self.metadata.get(key, default)

    @property
    def description(self) -> str:
        source = self.from_status.value if self.from_status else "new"
        actor = {
            ActorType.ADMIN: f"admin #{self.changed_by}" if self.changed_by else "admin",
            ActorType.CUSTOMER: "customer",
            ActorType.SYSTEM: "system",
        }[self.changed_by_type]
        text = f"{source} -> {self.to_status.value} by {actor}"
        if self.reason:
            text += f": {self.reason}"
        return text


@dataclass
class Order:
    """Aggregate root for orders.

    Use the ``Order.create_from_cart()`` factory for new orders.  The
    ``__init__`` is intentionally simple so the repository can reconstitute
    persisted orders without re-validating.
    """

    id: int | None
    reference: str
    site_id: int
    user_id: int | None
    items: list[OrderItem]
    subtotal: Money
    discount_amount: Money
    tax_rate: Decimal
    tax_amount: Money
    shipping_cost: Money
    grand_total: Money
    shipping_address: Mapping[str, Any]
    billing_address: Mapping[str, Any]
    customer_snapshot: Mapping[str, Any]
    currency: str = DEFAULT_CURRENCY
    locale: str = "fr"
    customer_type: str = "B2C"
    status: OrderStatus = OrderStatus.PENDING
    applied_coupon: Mapping[str, Any] | None = None
    coupon_id: int | None = None
    customer_message: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    status_history: list[OrderStatusHistory] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    validated_at: datetime | None = None
    cancelled_at: datetime | None = None
    delivered_at: datetime | None = None

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create_from_cart(
        cart: Cart,
        reference: str,
        shipping_address: Mapping[str, Any],
        billing_address: Mapping[str, Any],
        customer_snapshot: Mapping[str, Any],
        customer_message: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Freeze a cart into a PENDING order.

        Line validation (orderable, price drift) is the checkout service's
        job; this factory only snapshots and computes totals.
        """
        if cart.is_empty:
            raise EmptyCartError("Cannot create an order from an empty cart")
        now = now or utcnow()

        subtotal = cart.subtotal
        discount = cart.discount_amount(now)
        shipping = cart.shipping_cost(now)
        taxable = subtotal.minus_floor_zero(discount)
        tax = (taxable * TAX_RATE).rounded()

        coupon = cart.active_coupon(now)
        order = Order(
            id=None,
            reference=reference,
            site_id=cart.site_id,
            user_id=cart.user_id,
            items=[OrderItem.from_cart_item(item) for item in cart.items],
            subtotal=subtotal,
            discount_amount=discount,
            tax_rate=TAX_RATE,
            tax_amount=tax,
            shipping_cost=shipping,
            grand_total=taxable + tax + shipping,
            shipping_address=dict(shipping_address),
            billing_address=dict(billing_address),
            customer_snapshot=dict(customer_snapshot),
            currency=cart.currency,
            locale=cart.locale,
            customer_type=cart.customer_type,
            applied_coupon=coupon.to_snapshot() if coupon else None,
            coupon_id=coupon.id if coupon else None,
            customer_message=customer_message,
            metadata=dict(metadata or {}),
            created_at=now,
        )
        return order

    # --- State transitions ----------------------------------------------------

    def change_status(
        self,
        new_status: OrderStatus,
        changed_by: int | None = None,
        changed_by_type: ActorType = ActorType.SYSTEM,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        now: datetime | None = None,
    ) -> OrderStatusHistory:
        """Move to ``new_status`` and append the matching history entry.

        Stock side effects are applied by the status service *before*
        calling this; the aggregate only guards the graph and records.
        """
        if not self.status.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot transition order {self.reference} from "
                f"{self.status.value} to {new_status.value}"
            )
        now = now or utcnow()
        entry = OrderStatusHistory(
            from_status=self.status,
            to_status=new_status,
            changed_by_type=changed_by_type,
            changed_by=changed_by,
            reason=reason,
            metadata=dict(metadata) if metadata else None,
            notify_customer=new_status.notifies_customer,
            created_at=now,
        )
        self.status = new_status
        self.status_history.append(entry)

        if new_status is OrderStatus.CONFIRMED and self.validated_at is None:
            self.validated_at = now
        elif new_status is OrderStatus.CANCELLED and self.cancelled_at is None:
            self.cancelled_at = now
        elif new_status is OrderStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = now
        return entry

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return self.status.can_transition_to(new_status)

    def is_cancellable(self) -> bool:
        return self.status.is_cancellable

    def is_refundable(self) -> bool:
        return self.status.is_refundable

    # --- Computed properties --------------------------------------------------

    @property
    def total_items_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_guest_order(self) -> bool:
        return self.user_id is None

    @property
    def last_status_change(self) -> OrderStatusHistory | None:
        return self.status_history[-1] if self.status_history else None
