"""Application service: Update Cart Item Quantity use case."""

from __future__ import annotations

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import CartDTO, to_cart_dto
from storefront.domain.model.cart import Cart
from storefront.domain.model.owner import Owner
from storefront.domain.model.variant import Variant
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UpdateCartItemHandler:

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
        item_id: int,
        quantity: int,
        requester: Owner | None = None,
    ) -> CartDTO:
        """Set the line's quantity; price and savings follow the live catalog."""
        now = self._clock()

        with self._uow:
            cart = load_valid_cart(self._cart_repo, cart_id, now, requester)
            variant = self._variant_for_line(cart, item_id)
            cart.update_item_quantity(item_id, quantity, variant, now=now)
            self._cart_repo.save(cart)

        logger.info(f"Cart #{cart.id}: line #{item_id} set to x{quantity}")
        return to_cart_dto(cart, now)

    def _variant_for_line(self, cart: Cart, item_id: int) -> Variant | None:
        # Unknown lines resolve to None; the aggregate reports them after
        # validating the quantity.
        for item in cart.items:
            if item.id == item_id and item.variant_id is not None:
                return self._variant_repo.get_by_id(item.variant_id)
        return None
