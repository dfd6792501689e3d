"""Application service: Clear Cart use case."""

from __future__ import annotations

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import CartDTO, to_cart_dto
from storefront.domain.model.owner import Owner
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ClearCartHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        uow: UnitOfWork,
        clock: Clock = utcnow,
    ) -> None:
        self._cart_repo = cart_repo
        self._uow = uow
        self._clock = clock

    def handle(self, cart_id: int, requester: Owner | None = None) -> CartDTO:
        now = self._clock()

        with self._uow:
            cart = load_valid_cart(self._cart_repo, cart_id, now, requester)
            cart.clear(now=now)
            self._cart_repo.save(cart)

        logger.info(f"Cart #{cart.id} cleared")
        return to_cart_dto(cart, now)
