"""Application service: Add Item to Cart use case.

Resolves the variant from the catalog and lets the Cart aggregate apply
the availability, stock and pricing rules.  Adding a variant that is
already in the cart grows that line and re-prices it at the new total
quantity.
"""

from __future__ import annotations

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import CartDTO, to_cart_dto
from storefront.domain.exceptions import VariantNotFoundError
from storefront.domain.model.owner import Owner
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AddCartItemHandler:

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

    def handle(
        self,
        cart_id: int,
        variant_id: int,
        quantity: int,
        custom_message: str | None = None,
        requester: Owner | None = None,
    ) -> CartDTO:
        now = self._clock()

        with self._uow:
            cart = load_valid_cart(self._cart_repo, cart_id, now, requester)
            variant = self._variant_repo.get_by_id(variant_id)
            if variant is None:
                raise VariantNotFoundError(f"Variant #{variant_id} not found")

            item = cart.add_variant(variant, quantity, custom_message, now=now)
            self._cart_repo.save(cart)

        logger.info(
            f"Cart #{cart.id}: {variant.sku} now x{item.quantity} "
            f"at {item.price_at_add}"
        )
        return to_cart_dto(cart, now)
