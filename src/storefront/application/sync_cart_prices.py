"""Application service: Sync Cart Prices use case.

Re-prices every line whose frozen unit price no longer matches the live
catalog (by more than one cent), so a shopper blocked by a price change
can accept the new prices and check out.
"""

from __future__ import annotations

from decimal import Decimal

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import PriceUpdateDTO
from storefront.domain.model.owner import Owner
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.cart_validation import current_price
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRICE_SYNC_THRESHOLD = Decimal("0.01")


class SyncCartPricesHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        variant_repo: VariantRepository,
        uow: UnitOfWork,
        clock: Clock = utcnow,
    ) -> None:
        self._cart_repo = cart_repo
        self._variant_repo = variant_repo
        self._uow = uow
        self._clock = clock

    def handle(self, cart_id: int, requester: Owner | None = None) -> list[PriceUpdateDTO]:
        now = self._clock()
        updates: list[PriceUpdateDTO] = []

        with self._uow:
            cart = load_valid_cart(self._cart_repo, cart_id, now, requester)
            for item in cart.items:
                if item.variant_id is None:
                    continue
                variant = self._variant_repo.get_by_id(item.variant_id)
                price = current_price(cart, item, variant)
                if price is None:
                    continue
                if abs(price.amount - item.price_at_add.amount) <= PRICE_SYNC_THRESHOLD:
                    continue

                old_price = item.price_at_add
                item.reprice(variant, cart.currency, cart.customer_type)  # type: ignore[arg-type]
                updates.append(
                    PriceUpdateDTO(
                        item_id=item.id,  # type: ignore[arg-type]
                        display_name=item.display_name,
                        old_price=str(old_price),
                        new_price=str(item.price_at_add),
                    )
                )

            if updates:
                cart.touch_activity(now)
                self._cart_repo.save(cart)

        for update in updates:
            logger.warning(
                f"Cart #{cart_id}: '{update.display_name}' re-priced "
                f"{update.old_price} -> {update.new_price}"
            )
        return updates
