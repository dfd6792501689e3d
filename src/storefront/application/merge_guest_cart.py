"""Application service: Merge Guest Cart use case (login / registration).

When the user has no cart yet, the guest cart is simply handed over.
Otherwise every guest line is added to the user's cart with the same
stock and pricing rules as a normal add, so duplicate variants combine
and re-price, and the guest cart is deleted.  Any failure aborts the
whole merge.
"""

from __future__ import annotations

from storefront.application.dto import CartDTO, to_cart_dto
from storefront.domain.exceptions import VariantUnavailableError
from storefront.domain.model.owner import GuestOwner, UserOwner
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class MergeGuestCartHandler:

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

    def handle(self, site_id: int, session_token: str, user_id: int) -> CartDTO | None:
        """Return the user's cart after the merge, or None if neither exists."""
        now = self._clock()

        with self._uow:
            guest_cart = self._cart_repo.get_by_owner(site_id, GuestOwner(session_token))
            user_cart = self._cart_repo.get_by_owner(site_id, UserOwner(user_id))

            if guest_cart is not None and guest_cart.is_expired(now):
                self._cart_repo.delete(guest_cart)
                guest_cart = None

            if guest_cart is None:
                return to_cart_dto(user_cart, now) if user_cart else None

            if user_cart is None:
                guest_cart.attach_to_user(user_id, now)
                self._cart_repo.save(guest_cart)
                logger.info(f"Guest cart #{guest_cart.id} attached to user #{user_id}")
                return to_cart_dto(guest_cart, now)

            for item in guest_cart.items:
                variant = (
                    self._variant_repo.get_by_id(item.variant_id)
                    if item.variant_id is not None
                    else None
                )
                if variant is None:
                    raise VariantUnavailableError(
                        f"'{item.display_name}' is no longer available"
                    )
                user_cart.add_variant(variant, item.quantity, item.custom_message, now=now)

            self._cart_repo.save(user_cart)
            self._cart_repo.delete(guest_cart)

        logger.info(
            f"Merged guest cart #{guest_cart.id} ({guest_cart.lines_count} lines) "
            f"into cart #{user_cart.id} of user #{user_id}"
        )
        return to_cart_dto(user_cart, now)
