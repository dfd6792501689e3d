"""Application service: Check Coupon use case (query).

Dry run of coupon application: never raises for an ineligible coupon,
reports every check instead, plus the discount it would grant.
"""

from __future__ import annotations

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import CouponCheckDTO
from storefront.domain.model.owner import Owner
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.coupon_eligibility import (
    eligibility_checks,
    first_failure,
)
from storefront.utils.clock import Clock, utcnow


class CheckCouponHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        coupon_repo: CouponRepository,
        order_repo: OrderRepository,
        clock: Clock = utcnow,
    ) -> None:
        self._cart_repo = cart_repo
        self._coupon_repo = coupon_repo
        self._order_repo = order_repo
        self._clock = clock

    def handle(self, cart_id: int, code: str, requester: Owner | None = None) -> CouponCheckDTO:
        now = self._clock()
        cart = load_valid_cart(self._cart_repo, cart_id, now, requester)
        coupon = self._coupon_repo.get_by_code(code, cart.site_id)
        if coupon is None:
            return CouponCheckDTO(code=code.strip().upper(), exists=False, reason="coupon_not_found")

        user_usages = user_orders = None
        if cart.user_id is not None:
            user_usages = self._order_repo.count_by_user(cart.user_id, coupon.id)
            user_orders = self._order_repo.count_by_user(cart.user_id)

        checks = eligibility_checks(coupon, cart, now, user_usages, user_orders)
        failed = first_failure(checks)
        return CouponCheckDTO(
            code=coupon.code,
            exists=True,
            checks={check.name: check.passed for check in checks},
            reason=failed.reason if failed else None,
            description=coupon.description,
            discount=str(coupon.discount_for(cart.subtotal)) if failed is None else None,
            free_shipping=coupon.offers_free_shipping,
        )
