"""Application service: Change Order Status use case.

``handle`` drives any allowed transition; the named methods are the
everyday transitions with their usual actor and wording.  Each call loads
the order, applies the change with its stock side effects and saves,
all in one unit of work.
"""

from __future__ import annotations

from typing import Any, Mapping

from storefront.application.dto import OrderDTO, to_order_dto
from storefront.domain.exceptions import (
    OrderNotCancellableError,
    OrderNotFoundError,
    OrderNotRefundableError,
)
from storefront.domain.model.order import Order
from storefront.domain.model.order_status import ActorType, OrderStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.order_workflow import OrderWorkflow
from storefront.domain.service.stock_ledger import StockLedger
from storefront.utils.clock import Clock, utcnow


class ChangeOrderStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        variant_repo: VariantRepository,
        uow: UnitOfWork,
        clock: Clock = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._workflow = OrderWorkflow(StockLedger(variant_repo))
        self._uow = uow
        self._clock = clock

    def handle(
        self,
        order_id: int,
        new_status: OrderStatus,
        changed_by: int | None = None,
        changed_by_type: ActorType = ActorType.SYSTEM,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> OrderDTO:
        return self._change_status(
            order_id, new_status, changed_by, changed_by_type, reason, metadata
        )

    # --- Named transitions ----------------------------------------------------

    def confirm_payment(
        self, order_id: int, payment_metadata: Mapping[str, Any] | None = None
    ) -> OrderDTO:
        return self._change_status(
            order_id,
            OrderStatus.CONFIRMED,
            changed_by_type=ActorType.SYSTEM,
            reason="Payment confirmed",
            metadata=payment_metadata,
        )

    def mark_as_processing(self, order_id: int, admin_id: int | None = None) -> OrderDTO:
        return self._change_status(
            order_id,
            OrderStatus.PROCESSING,
            changed_by=admin_id,
            changed_by_type=ActorType.ADMIN,
            reason="Order being prepared",
        )

    def mark_as_shipped(
        self,
        order_id: int,
        tracking_number: str | None = None,
        carrier: str | None = None,
        admin_id: int | None = None,
    ) -> OrderDTO:
        metadata = {}
        if tracking_number:
            metadata["tracking_number"] = tracking_number
        if carrier:
            metadata["carrier"] = carrier
        return self._change_status(
            order_id,
            OrderStatus.SHIPPED,
            changed_by=admin_id,
            changed_by_type=ActorType.ADMIN,
            reason="Order shipped",
            metadata=metadata or None,
        )

    def mark_as_delivered(self, order_id: int, admin_id: int | None = None) -> OrderDTO:
        return self._change_status(
            order_id,
            OrderStatus.DELIVERED,
            changed_by=admin_id,
            changed_by_type=ActorType.ADMIN if admin_id is not None else ActorType.SYSTEM,
            reason="Order delivered",
        )

    def mark_as_completed(self, order_id: int) -> OrderDTO:
        return self._change_status(
            order_id, OrderStatus.COMPLETED, reason="Order completed"
        )

    def mark_as_failed(self, order_id: int, reason: str | None = None) -> OrderDTO:
        return self._change_status(
            order_id, OrderStatus.FAILED, reason=reason or "Payment failed"
        )

    def cancel_order(
        self,
        order_id: int,
        reason: str | None = None,
        actor_id: int | None = None,
        actor_type: ActorType = ActorType.CUSTOMER,
    ) -> OrderDTO:
        return self._change_status(
            order_id,
            OrderStatus.CANCELLED,
            changed_by=actor_id,
            changed_by_type=actor_type,
            reason=reason or "Order cancelled",
            guard=self._assert_cancellable,
        )

    def refund_order(
        self,
        order_id: int,
        reason: str | None = None,
        admin_id: int | None = None,
    ) -> OrderDTO:
        return self._change_status(
            order_id,
            OrderStatus.REFUNDED,
            changed_by=admin_id,
            changed_by_type=ActorType.ADMIN,
            reason=reason or "Order refunded",
            guard=self._assert_refundable,
        )

    def put_on_hold(self, order_id: int, reason: str, admin_id: int | None = None) -> OrderDTO:
        return self._change_status(
            order_id,
            OrderStatus.ON_HOLD,
            changed_by=admin_id,
            changed_by_type=ActorType.ADMIN,
            reason=reason,
        )

    # --- Internal helpers -----------------------------------------------------

    def _change_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        changed_by: int | None = None,
        changed_by_type: ActorType = ActorType.SYSTEM,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        guard=None,
    ) -> OrderDTO:
        with self._uow:
            order = self._order_repo.get_by_id(order_id)
            if order is None:
                raise OrderNotFoundError(f"Order #{order_id} not found")
            if guard is not None:
                guard(order)

            self._workflow.change_status(
                order,
                new_status,
                changed_by=changed_by,
                changed_by_type=changed_by_type,
                reason=reason,
                metadata=metadata,
                now=self._clock(),
            )
            self._order_repo.save(order)

        return to_order_dto(order)

    @staticmethod
    def _assert_cancellable(order: Order) -> None:
        if not order.is_cancellable():
            raise OrderNotCancellableError(
                f"Order {order.reference} cannot be cancelled in status {order.status.value}"
            )

    @staticmethod
    def _assert_refundable(order: Order) -> None:
        if not order.is_refundable():
            raise OrderNotRefundableError(
                f"Order {order.reference} cannot be refunded in status {order.status.value}"
            )
