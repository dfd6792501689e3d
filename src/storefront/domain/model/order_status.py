"""Order lifecycle states and the transition graph between them.

The graph is a plain lookup table kept next to the enum.  Labels, colours
and other presentation concerns belong to the UI, not here.
"""

from __future__ import annotations

from enum import Enum


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"
    ON_HOLD = "on_hold"

    @property
    def allowed_transitions(self) -> frozenset[OrderStatus]:
        return ALLOWED_TRANSITIONS[self]

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self]

    @property
    def is_final(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]

    @property
    def is_cancellable(self) -> bool:
        return self in CANCELLABLE_STATUSES

    @property
    def is_refundable(self) -> bool:
        return self in REFUNDABLE_STATUSES

    @property
    def holds_decremented_stock(self) -> bool:
        """Orders in these states have already taken their units out of stock."""
        return self in STOCK_DECREMENTED_STATUSES

    @property
    def restores_stock(self) -> bool:
        return self in STOCK_RESTORING_STATUSES

    @property
    def notifies_customer(self) -> bool:
        return self in CUSTOMER_NOTIFIED_STATUSES

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES

    @property
    def is_paid(self) -> bool:
        """Payment was received; these orders count towards revenue."""
        return self in PAID_STATUSES


S = OrderStatus

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.FAILED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.PROCESSING, S.ON_HOLD, S.CANCELLED}),
    S.PROCESSING: frozenset({S.SHIPPED, S.ON_HOLD, S.CANCELLED}),
    S.SHIPPED: frozenset({S.DELIVERED, S.ON_HOLD}),
    S.DELIVERED: frozenset({S.COMPLETED, S.REFUNDED}),
    S.ON_HOLD: frozenset({S.PROCESSING, S.CANCELLED, S.REFUNDED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.REFUNDED: frozenset(),
    S.FAILED: frozenset(),
}

CANCELLABLE_STATUSES = frozenset({S.PENDING, S.CONFIRMED, S.PROCESSING, S.ON_HOLD})
REFUNDABLE_STATUSES = frozenset({S.DELIVERED, S.COMPLETED, S.ON_HOLD})
STOCK_DECREMENTED_STATUSES = frozenset(
    {S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.DELIVERED, S.COMPLETED}
)
STOCK_RESTORING_STATUSES = frozenset({S.CANCELLED, S.REFUNDED})
CUSTOMER_NOTIFIED_STATUSES = frozenset(
    {S.CONFIRMED, S.SHIPPED, S.DELIVERED, S.CANCELLED, S.REFUNDED, S.ON_HOLD}
)
ACTIVE_STATUSES = frozenset({S.PENDING, S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.ON_HOLD})
PAID_STATUSES = frozenset(
    {S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.DELIVERED, S.COMPLETED, S.REFUNDED}
)

del S


class ActorType(Enum):
    SYSTEM = "system"
    ADMIN = "admin"
    CUSTOMER = "customer"
