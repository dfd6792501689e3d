"""Domain service: Order Reporting.

Revenue and order statistics over a creation window.  Only paid orders
(confirmed onwards, refunds included) count towards revenue; the status
distribution counts every order.  Amounts are summed per currency, so a
report is always asked for in one currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.order import Order
from storefront.domain.model.order_status import OrderStatus
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money
from storefront.domain.repository.order_repository import OrderRepository


@dataclass(frozen=True)
class OrderStatistics:
    total_orders: int
    total_revenue: Money
    average_order_value: Money


def paid_orders(orders: list[Order], currency: str) -> list[Order]:
    return [o for o in orders if o.status.is_paid and o.currency == currency.upper()]


def revenue(orders: list[Order], currency: str) -> Money:
    """Sum of grand totals of the paid orders in ``currency``."""
    total = Money.zero(currency)
    for order in paid_orders(orders, currency):
        total = total + order.grand_total
    return total


def statistics(orders: list[Order], currency: str) -> OrderStatistics:
    paid = paid_orders(orders, currency)
    total = revenue(paid, currency)
    if not paid:
        average = Money.zero(currency)
    else:
        average = Money(total.amount / len(paid), total.currency).rounded()
    return OrderStatistics(
        total_orders=len(paid),
        total_revenue=total,
        average_order_value=average,
    )


def status_distribution(counts: dict[OrderStatus, int]) -> dict[OrderStatus, int]:
    """Every status in declaration order, zero where nothing was counted."""
    return {status: counts.get(status, 0) for status in OrderStatus}


class OrderReport:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def revenue(
        self,
        start: datetime,
        end: datetime,
        site_id: int | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> Money:
        self._check_window(start, end)
        return revenue(self._order_repo.list_created_between(start, end, site_id), currency)

    def statistics(
        self,
        start: datetime,
        end: datetime,
        site_id: int | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> OrderStatistics:
        self._check_window(start, end)
        orders = self._order_repo.list_created_between(start, end, site_id)
        return statistics(orders, currency)

    def status_distribution(
        self,
        site_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[OrderStatus, int]:
        if start is not None and end is not None:
            self._check_window(start, end)
        return status_distribution(self._order_repo.count_by_status(site_id, start, end))

    @staticmethod
    def _check_window(start: datetime, end: datetime) -> None:
        if start > end:
            raise ValidationError("Report window starts after it ends")
