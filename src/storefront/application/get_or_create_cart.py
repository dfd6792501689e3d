"""Application service: Get-or-Create Cart use case.

Returns the owner's cart on a site, opening a new one when there is none
or when the existing one has expired.  Without an owner a new guest cart
is opened and its session token handed back to the caller.
"""

from __future__ import annotations

from storefront.application.dto import OpenCartDTO, to_cart_dto
from storefront.domain.model.cart import Cart
from storefront.domain.model.owner import Owner
from storefront.domain.model.value_objects import DEFAULT_CURRENCY
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class GetOrCreateCartHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        uow: UnitOfWork,
        clock: Clock = utcnow,
    ) -> None:
        self._cart_repo = cart_repo
        self._uow = uow
        self._clock = clock

    def handle(
        self,
        site_id: int,
        owner: Owner | None = None,
        currency: str = DEFAULT_CURRENCY,
        customer_type: str = "B2C",
        locale: str = "fr",
    ) -> OpenCartDTO:
        now = self._clock()

        with self._uow:
            if owner is not None:
                cart = self._cart_repo.get_by_owner(site_id, owner)
                if cart is not None and not cart.is_expired(now):
                    return OpenCartDTO(
                        cart=to_cart_dto(cart, now),
                        session_token=cart.session_token,
                        is_new=False,
                    )
                if cart is not None:
                    logger.info(f"Dropping expired cart #{cart.id} of {owner}")
                    self._cart_repo.delete(cart)

            cart = Cart.open(
                site_id=site_id,
                owner=owner,
                currency=currency,
                customer_type=customer_type,
                locale=locale,
                now=now,
            )
            self._cart_repo.save(cart)

        logger.info(f"Opened cart #{cart.id} for {cart.owner} on site #{site_id}")
        return OpenCartDTO(
            cart=to_cart_dto(cart, now),
            session_token=cart.session_token,
            is_new=True,
        )
