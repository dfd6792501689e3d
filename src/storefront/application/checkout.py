"""Application service: Checkout use case (cart -> order).

This is the only place that coordinates every aggregate at once: it
validates the cart against the live catalog, freezes it into a PENDING
order, counts the coupon usage and empties the cart.  Everything happens
in one unit of work, so a failed precondition writes nothing.
"""

from __future__ import annotations

from typing import Any, Mapping

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import (
    GUEST_CUSTOMER_SNAPSHOT,
    CustomerInfo,
    OrderDTO,
    to_order_dto,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.order import Order
from storefront.domain.model.owner import Owner
from storefront.domain.model.variant import Variant
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.cart_validation import assert_ready_for_checkout
from storefront.domain.service.order_reference import OrderReferenceGenerator
from storefront.utils.clock import Clock, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        variant_repo: VariantRepository,
        coupon_repo: CouponRepository,
        order_repo: OrderRepository,
        uow: UnitOfWork,
        clock: Clock = utcnow,
    ) -> None:
        self._cart_repo = cart_repo
        self._variant_repo = variant_repo
        self._coupon_repo = coupon_repo
        self._order_repo = order_repo
        self._uow = uow
        self._clock = clock

    def handle(
        self,
        cart_id: int,
        shipping_address: Mapping[str, Any],
        billing_address: Mapping[str, Any],
        customer: CustomerInfo | None = None,
        customer_message: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        requester: Owner | None = None,
    ) -> OrderDTO:
        """Turn a cart into an order.

        Steps:
        1. Check the preconditions (non-empty, orderable lines, no price
           drift beyond tolerance); the first failure aborts.
        2. Reserve a reference and freeze the cart into an Order.
        3. Count one usage on the applied coupon, if any.
        4. Persist the order and empty the cart.
        """
        now = self._clock()

        with self._uow:
            cart = load_valid_cart(self._cart_repo, cart_id, now, requester)
            assert_ready_for_checkout(cart, self._live_variants(cart))

            reference = OrderReferenceGenerator(self._order_repo).next_reference(now)
            order = Order.create_from_cart(
                cart,
                reference=reference,
                shipping_address=shipping_address,
                billing_address=billing_address,
                customer_snapshot=self._customer_snapshot(cart, customer),
                customer_message=customer_message,
                metadata=metadata,
                now=now,
            )

            if order.coupon_id is not None:
                coupon = self._coupon_repo.get_by_id(order.coupon_id)
                if coupon is not None:
                    coupon.increment_usage()
                    self._coupon_repo.save(coupon)

            self._order_repo.save(order)

            cart.clear(now=now)
            cart.remove_coupon(now=now)
            self._cart_repo.save(cart)

        logger.info(
            f"Order {order.reference} created from cart #{cart_id}: "
            f"{order.total_items_count} items, total {order.grand_total}"
        )
        return to_order_dto(order)

    # --- Helpers --------------------------------------------------------------

    def _live_variants(self, cart: Cart) -> dict[int, Variant | None]:
        return {
            item.variant_id: self._variant_repo.get_by_id(item.variant_id)
            for item in cart.items
            if item.variant_id is not None
        }

    @staticmethod
    def _customer_snapshot(cart: Cart, customer: CustomerInfo | None) -> dict:
        if cart.user_id is None:
            snapshot = dict(GUEST_CUSTOMER_SNAPSHOT)
            if customer is not None:
                snapshot.update(customer.to_snapshot(), is_guest=True)
            return snapshot
        snapshot = customer.to_snapshot() if customer else {"is_guest": False}
        snapshot["user_id"] = cart.user_id
        return snapshot
