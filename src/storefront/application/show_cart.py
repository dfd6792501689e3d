"""Application service: Show Cart use case (query)."""

from __future__ import annotations

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import CartDTO, to_cart_dto
from storefront.domain.model.owner import Owner
from storefront.domain.repository.cart_repository import CartRepository
from storefront.utils.clock import Clock, utcnow


class ShowCartHandler:

    def __init__(self, cart_repo: CartRepository, clock: Clock = utcnow) -> None:
        self._cart_repo = cart_repo
        self._clock = clock

    def handle(self, cart_id: int, requester: Owner | None = None) -> CartDTO:
        now = self._clock()
        cart = load_valid_cart(self._cart_repo, cart_id, now, requester)
        return to_cart_dto(cart, now)
