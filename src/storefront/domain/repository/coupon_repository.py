"""Abstract repository for the Coupon aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.coupon import Coupon


class CouponRepository(ABC):

    @abstractmethod
    def get_by_id(self, coupon_id: int) -> Coupon | None:
        """Return a coupon by its ID, or None if not found."""

    @abstractmethod
    def get_by_code(self, code: str, site_id: int) -> Coupon | None:
        """Return a site's coupon by code (case-insensitive), or None."""

    @abstractmethod
    def list_active(self, site_id: int, now: datetime) -> list[Coupon]:
        """Return a site's coupons that are usable at ``now``, newest first."""

    @abstractmethod
    def save(self, coupon: Coupon) -> None:
        """Persist a new or updated coupon."""
