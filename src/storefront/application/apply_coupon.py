"""Application service: Apply Coupon use case.

Looks the code up on the cart's site, refuses a coupon that is already
attached, then runs the eligibility rules.  Usage is only counted when an
order is placed with the coupon.
"""

from __future__ import annotations

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import CartDTO, to_cart_dto
from storefront.domain.exceptions import (
    CouponAlreadyAppliedError,
    CouponNotApplicableError,
    CouponNotFoundError,
)
from storefront.domain.model.owner import Owner
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.coupon_eligibility import assert_eligible
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ApplyCouponHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        coupon_repo: CouponRepository,
        order_repo: OrderRepository,
        uow: UnitOfWork,
        clock: Clock = utcnow,
    ) -> None:
        self._cart_repo = cart_repo
        self._coupon_repo = coupon_repo
        self._order_repo = order_repo
        self._uow = uow
        self._clock = clock

    def handle(self, cart_id: int, code: str, requester: Owner | None = None) -> CartDTO:
        now = self._clock()

        with self._uow:
            cart = load_valid_cart(self._cart_repo, cart_id, now, requester)
            coupon = self._coupon_repo.get_by_code(code, cart.site_id)
            if coupon is None:
                raise CouponNotFoundError(f"Coupon '{code}' does not exist")
            if cart.coupon is not None and cart.coupon.id == coupon.id:
                raise CouponAlreadyAppliedError(
                    f"Coupon {coupon.code} is already applied to this cart"
                )

            user_usages = user_orders = None
            if cart.user_id is not None:
                user_usages = self._order_repo.count_by_user(cart.user_id, coupon.id)
                user_orders = self._order_repo.count_by_user(cart.user_id)

            try:
                assert_eligible(coupon, cart, now, user_usages, user_orders)
            except CouponNotApplicableError as exc:
                logger.warning(f"Cart #{cart.id}: coupon {coupon.code} refused ({exc.code})")
                raise

            cart.apply_coupon(coupon, now=now)
            self._cart_repo.save(cart)

        logger.info(
            f"Cart #{cart.id}: coupon {coupon.code} applied, "
            f"discount {cart.discount_amount(now)}"
        )
        return to_cart_dto(cart, now)
