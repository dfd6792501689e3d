"""Application service: Cleanup Expired Carts use case.

Meant to run from a scheduler.  Expiration is also enforced lazily on
every read, so a late sweep only costs disk space.
"""

from __future__ import annotations

from datetime import timedelta

from storefront.application.dto import CleanupReportDTO
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CleanupExpiredCartsHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        uow: UnitOfWork,
        clock: Clock = utcnow,
    ) -> None:
        self._cart_repo = cart_repo
        self._uow = uow
        self._clock = clock

    def handle(self, empty_older_than_days: int | None = None) -> CleanupReportDTO:
        """Delete expired carts.

        With ``empty_older_than_days`` only empty carts that expired at
        least that many days ago are deleted; carts still holding lines
        are kept.
        """
        now = self._clock()

        with self._uow:
            if empty_older_than_days is None:
                expired = self._cart_repo.list_expired(now)
                for cart in expired:
                    self._cart_repo.delete(cart)
                report = CleanupReportDTO(expired_deleted=len(expired), empty_deleted=0)
            else:
                threshold = now - timedelta(days=empty_older_than_days)
                empty = [c for c in self._cart_repo.list_expired(threshold) if c.is_empty]
                for cart in empty:
                    self._cart_repo.delete(cart)
                report = CleanupReportDTO(expired_deleted=0, empty_deleted=len(empty))

        logger.info(
            f"Cart sweep: {report.expired_deleted} expired, "
            f"{report.empty_deleted} empty carts deleted"
        )
        return report
