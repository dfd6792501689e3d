"""Application services: list a user's or a site's orders (queries)."""

from __future__ import annotations

from storefront.application.dto import OrderSummaryDTO, to_order_summary_dto
from storefront.domain.repository.order_repository import OrderRepository


class ListUserOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, user_id: int, limit: int = 20) -> list[OrderSummaryDTO]:
        return [
            to_order_summary_dto(order)
            for order in self._order_repo.list_by_user(user_id, limit)
        ]


class ListSiteOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, site_id: int, limit: int = 20) -> list[OrderSummaryDTO]:
        return [
            to_order_summary_dto(order)
            for order in self._order_repo.list_by_site(site_id, limit)
        ]
