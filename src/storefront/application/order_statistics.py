"""Application service: Order Statistics use case (query).

Revenue, order count and average order value over a creation window,
with the per-status breakdown for the same window.
"""

from __future__ import annotations

from datetime import datetime

from storefront.application.dto import OrderStatisticsDTO
from storefront.domain.model.value_objects import DEFAULT_CURRENCY
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.order_reporting import OrderReport
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_TIMESTAMP = "%Y-%m-%d %H:%M UTC"


class OrderStatisticsHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._report = OrderReport(order_repo)

    def handle(
        self,
        start: datetime,
        end: datetime,
        site_id: int | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> OrderStatisticsDTO:
        stats = self._report.statistics(start, end, site_id, currency)
        distribution = self._report.status_distribution(site_id, start, end)

        logger.debug(
            f"Order statistics {start:%Y-%m-%d}..{end:%Y-%m-%d} site={site_id}: "
            f"{stats.total_orders} paid orders, {stats.total_revenue}"
        )
        return OrderStatisticsDTO(
            start=start.strftime(_TIMESTAMP),
            end=end.strftime(_TIMESTAMP),
            site_id=site_id,
            total_orders=stats.total_orders,
            total_revenue=str(stats.total_revenue),
            average_order_value=str(stats.average_order_value),
            status_distribution={s.value: n for s, n in distribution.items()},
        )
