"""Application service: List Active Coupons use case (query)."""

from __future__ import annotations

from storefront.application.dto import CouponSummaryDTO
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.utils.clock import Clock, utcnow

_TIMESTAMP = "%Y-%m-%d %H:%M UTC"


class ListActiveCouponsHandler:

    def __init__(self, coupon_repo: CouponRepository, clock: Clock = utcnow) -> None:
        self._coupon_repo = coupon_repo
        self._clock = clock

    def handle(self, site_id: int) -> list[CouponSummaryDTO]:
        """Coupons a shopper on ``site_id`` could use right now, newest first."""
        return [
            CouponSummaryDTO(
                id=c.id,  # type: ignore[arg-type]
                code=c.code,
                description=c.description,
                usage_count=c.usage_count,
                remaining_usages=c.remaining_usages,
                valid_until=c.valid_until.strftime(_TIMESTAMP) if c.valid_until else None,
            )
            for c in self._coupon_repo.list_active(site_id, self._clock())
        ]
