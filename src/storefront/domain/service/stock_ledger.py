"""Domain service: Stock Ledger.

Coordinates stock movements for whole orders on top of the repository's
conditional stock writes.  An insufficient-stock answer is a boolean, not
an exception: it is an expected outcome and the caller decides the policy.
"""

from __future__ import annotations

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.order import Order
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StockLedger:

    def __init__(self, variant_repo: VariantRepository) -> None:
        self._variant_repo = variant_repo

    def decrement(self, variant_id: int, quantity: int) -> bool:
        """Take ``quantity`` units out of stock if, and only if, they exist."""
        if quantity <= 0:
            raise ValidationError("Decrement quantity must be positive")
        return self._variant_repo.decrement_stock(variant_id, quantity)

    def increment(self, variant_id: int, quantity: int) -> bool:
        """Put ``quantity`` units back; used for cancellations and refunds."""
        if quantity <= 0:
            raise ValidationError("Increment quantity must be positive")
        return self._variant_repo.increment_stock(variant_id, quantity)

    def decrement_for_order(self, order: Order) -> list[int]:
        """Decrement stock for every line of the order.

        Stock was checked at checkout, so a refusal here means the catalog
        drifted underneath a live order.  It is logged as an integrity
        fault and reported back; it does not abort the status change.
        Returns the variant IDs that could not be decremented.
        """
        failed: list[int] = []
        for item in order.items:
            if item.variant_id is None:
                continue
            if not self.decrement(item.variant_id, item.quantity):
                logger.error(
                    f"Stock integrity fault: could not decrement {item.quantity} "
                    f"of variant {item.variant_id} for order {order.reference}"
                )
                failed.append(item.variant_id)
        return failed

    def restore_for_order(self, order: Order) -> None:
        """Give every line's quantity back to stock."""
        for item in order.items:
            if item.variant_id is None:
                continue
            if not self.increment(item.variant_id, item.quantity):
                logger.warning(
                    f"Variant {item.variant_id} is missing or deleted; "
                    f"stock for order {order.reference} not restored"
                )
