"""Application service: Show Order use case (query)."""

from __future__ import annotations

from storefront.application.dto import OrderDTO, to_order_dto
from storefront.domain.exceptions import AccessDeniedError, OrderNotFoundError
from storefront.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        order_id: int | None = None,
        reference: str | None = None,
        user_id: int | None = None,
    ) -> OrderDTO:
        """Find an order by ID or by reference.

        When ``user_id`` is given the order must belong to that user.
        """
        if order_id is not None:
            order = self._order_repo.get_by_id(order_id)
            label = f"#{order_id}"
        elif reference is not None:
            order = self._order_repo.get_by_reference(reference)
            label = reference
        else:
            raise ValueError("Either order_id or reference is required")

        if order is None:
            raise OrderNotFoundError(f"Order {label} not found")
        if user_id is not None and order.user_id != user_id:
            raise AccessDeniedError(f"Order {label} does not belong to user #{user_id}")
        return to_order_dto(order)
