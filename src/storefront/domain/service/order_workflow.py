"""Domain service: Order Workflow.

Applies a status change to an order together with its stock side
effects.  The transition is validated before anything moves, so a
rejected change touches neither stock nor history.

Stock rules, keyed on the new status relative to the old one:
- entering the "stock decremented" group (confirmed through completed)
  from outside it takes every line out of stock, once;
- entering CANCELLED or REFUNDED puts every line back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from storefront.domain.exceptions import InvalidTransitionError
from storefront.domain.model.order import Order, OrderStatusHistory
from storefront.domain.model.order_status import ActorType, OrderStatus
from storefront.domain.service.stock_ledger import StockLedger
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderWorkflow:

    def __init__(self, stock_ledger: StockLedger) -> None:
        self._stock_ledger = stock_ledger

    def change_status(
        self,
        order: Order,
        new_status: OrderStatus,
        changed_by: int | None = None,
        changed_by_type: ActorType = ActorType.SYSTEM,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        now: datetime | None = None,
    ) -> OrderStatusHistory:
        old_status = order.status
        if not order.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot transition order {order.reference} from "
                f"{old_status.value} to {new_status.value}"
            )

        if new_status.holds_decremented_stock and not old_status.holds_decremented_stock:
            self._stock_ledger.decrement_for_order(order)
        if new_status.restores_stock:
            self._stock_ledger.restore_for_order(order)

        entry = order.change_status(
            new_status,
            changed_by=changed_by,
            changed_by_type=changed_by_type,
            reason=reason,
            metadata=metadata,
            now=now,
        )

        logger.info(f"Order {order.reference}: {entry.description}")
        if entry.notify_customer:
            logger.info(
                f"Order {order.reference}: customer notification due "
                f"for status {new_status.value}"
            )
        return entry
