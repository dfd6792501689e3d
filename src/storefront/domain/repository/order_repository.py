"""Abstract repository for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.order import Order
from storefront.domain.model.order_status import OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_reference(self, reference: str) -> Order | None:
        """Return an order by its human-readable reference, or None."""

    @abstractmethod
    def last_reference_with_prefix(self, prefix: str) -> str | None:
        """Return the highest reference starting with ``prefix``, or None."""

    @abstractmethod
    def list_by_user(self, user_id: int, limit: int = 20) -> list[Order]:
        """Return a user's orders, newest first."""

    @abstractmethod
    def list_by_site(self, site_id: int, limit: int = 20) -> list[Order]:
        """Return a site's orders, newest first."""

    @abstractmethod
    def list_created_between(
        self, start: datetime, end: datetime, site_id: int | None = None
    ) -> list[Order]:
        """Return orders created in ``[start, end]``, optionally for one site."""

    @abstractmethod
    def count_by_status(
        self,
        site_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[OrderStatus, int]:
        """Count orders per status; statuses with no orders are omitted."""

    @abstractmethod
    def count_by_user(self, user_id: int, coupon_id: int | None = None) -> int:
        """Count a user's orders, optionally only those that used a coupon."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order."""
