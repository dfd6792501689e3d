"""Integration tests for the Checkout use case (cart -> order).

Uses in-memory fake repositories — no file I/O.
"""

from decimal import Decimal

import pytest

from storefront.application.checkout import CheckoutHandler
from storefront.application.dto import CustomerInfo
from storefront.domain.exceptions import (
    CartNotFoundError,
    EmptyCartError,
    ItemNotOrderableError,
    PriceChangedError,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.owner import GuestOwner, UserOwner
from storefront.domain.model.variant import PriceEntry
from tests.fakes import (
    NOW,
    FakeCartRepository,
    FakeCouponRepository,
    FakeOrderRepository,
    FakeUnitOfWork,
    FakeVariantRepository,
    fixed_clock,
    make_coupon,
    make_variant,
)

ADDRESS = {"name": "Alice Martin", "street": "1 rue de la Paix", "city": "Paris",
           "postcode": "75002", "country": "FR"}


def _setup(*lines, owner=None, coupon=None):
    """Cart #1 holding ``lines`` of (variant_id, quantity), ready to check out."""
    variant_repo = FakeVariantRepository([
        make_variant(1, "10.00", stock=10),
        make_variant(2, "25.00", stock=10),
    ])
    coupon_repo = FakeCouponRepository([coupon] if coupon else [])
    cart_repo = FakeCartRepository()
    order_repo = FakeOrderRepository()

    cart = Cart.open(site_id=1, owner=owner or UserOwner(5), now=NOW)
    for variant_id, quantity in lines:
        cart.add_variant(variant_repo.get_by_id(variant_id), quantity, now=NOW)
    if coupon is not None:
        cart.apply_coupon(coupon, now=NOW)
    cart_repo.save(cart)

    uow = FakeUnitOfWork(cart_repo, variant_repo, coupon_repo, order_repo)
    handler = CheckoutHandler(
        cart_repo, variant_repo, coupon_repo, order_repo, uow, fixed_clock()
    )
    return handler, cart_repo, variant_repo, coupon_repo, order_repo


class TestCheckoutHappyPath:

    def test_totals(self):
        handler, *_ = _setup((1, 2))
        dto = handler.handle(1, ADDRESS, ADDRESS)

        assert dto.status == "pending"
        assert dto.subtotal == "20.00 EUR"
        assert dto.discount == "0.00 EUR"
        assert dto.tax == "4.00 EUR"
        assert dto.shipping == "5.90 EUR"
        assert dto.grand_total == "29.90 EUR"
        assert dto.history == []

    def test_cart_emptied(self):
        handler, cart_repo, *_ = _setup((1, 2))
        handler.handle(1, ADDRESS, ADDRESS)
        assert cart_repo.get_by_id(1).is_empty

    def test_order_persisted_with_reference(self):
        handler, _, _, _, order_repo = _setup((1, 2))
        dto = handler.handle(1, ADDRESS, ADDRESS, customer_message="Leave at door")

        order = order_repo.get_by_id(dto.id)
        assert order.reference == "2026-03-00001"
        assert dto.reference == "2026-03-00001"
        assert order.customer_message == "Leave at door"
        assert order.shipping_address["city"] == "Paris"

    def test_references_follow_each_other(self):
        handler, cart_repo, variant_repo, _, _ = _setup((1, 1))
        first = handler.handle(1, ADDRESS, ADDRESS)
        cart = cart_repo.get_by_id(1)
        cart.add_variant(variant_repo.get_by_id(1), 1, now=NOW)
        second = handler.handle(1, ADDRESS, ADDRESS)
        assert (first.reference, second.reference) == ("2026-03-00001", "2026-03-00002")

    def test_stock_is_not_touched(self):
        handler, _, variant_repo, _, _ = _setup((1, 2))
        handler.handle(1, ADDRESS, ADDRESS)
        assert variant_repo.get_by_id(1).stock == 10


class TestCheckoutCoupon:

    def test_coupon_snapshot_and_usage(self):
        coupon = make_coupon("SAVE10", value="0.10", maximum_discount=Decimal("3.00"))
        handler, cart_repo, _, coupon_repo, order_repo = _setup((2, 2), coupon=coupon)

        dto = handler.handle(1, ADDRESS, ADDRESS)

        assert dto.coupon_code == "SAVE10"
        assert dto.discount == "3.00 EUR"
        assert dto.tax == "9.40 EUR"
        assert dto.shipping == "5.90 EUR"
        assert dto.grand_total == "62.30 EUR"
        assert coupon_repo.get_by_id(1).usage_count == 1
        assert cart_repo.get_by_id(1).coupon is None
        assert order_repo.get_by_id(dto.id).applied_coupon["code"] == "SAVE10"


class TestCustomerSnapshot:

    def test_registered_user(self):
        handler, _, _, _, order_repo = _setup((1, 1))
        dto = handler.handle(1, ADDRESS, ADDRESS,
                             customer=CustomerInfo("alice@example.com", "Alice", "Martin"))
        snapshot = order_repo.get_by_id(dto.id).customer_snapshot
        assert snapshot["email"] == "alice@example.com"
        assert snapshot["user_id"] == 5
        assert snapshot["is_guest"] is False

    def test_guest_placeholder(self):
        handler, _, _, _, order_repo = _setup((1, 1), owner=GuestOwner("tok"))
        dto = handler.handle(1, ADDRESS, ADDRESS)
        order = order_repo.get_by_id(dto.id)
        assert order.user_id is None
        assert order.customer_snapshot["is_guest"] is True
        assert order.customer_snapshot["email"] is None

    def test_guest_with_contact_details(self):
        handler, _, _, _, order_repo = _setup((1, 1), owner=GuestOwner("tok"))
        dto = handler.handle(1, ADDRESS, ADDRESS, customer=CustomerInfo("guest@example.com"))
        snapshot = order_repo.get_by_id(dto.id).customer_snapshot
        assert snapshot["email"] == "guest@example.com"
        assert snapshot["is_guest"] is True


class TestCheckoutRejections:

    def test_empty_cart(self):
        handler, _, _, _, order_repo = _setup()
        with pytest.raises(EmptyCartError):
            handler.handle(1, ADDRESS, ADDRESS)
        assert order_repo.list_by_user(5) == []

    def test_unknown_cart(self):
        handler, *_ = _setup((1, 1))
        with pytest.raises(CartNotFoundError):
            handler.handle(9, ADDRESS, ADDRESS)

    def test_out_of_stock_line(self):
        handler, cart_repo, variant_repo, _, _ = _setup((1, 2), (2, 1))
        variant_repo.get_by_id(2).stock = 0
        with pytest.raises(ItemNotOrderableError) as exc_info:
            handler.handle(1, ADDRESS, ADDRESS)
        assert exc_info.value.item_id == 2
        assert cart_repo.get_by_id(1).lines_count == 2

    def test_price_change_rolls_everything_back(self):
        coupon = make_coupon("SAVE10", value="0.10")
        handler, cart_repo, variant_repo, coupon_repo, order_repo = _setup(
            (1, 2), coupon=coupon
        )
        variant_repo.get_by_id(1).set_price("EUR", "B2C", PriceEntry.flat("11.00"))

        with pytest.raises(PriceChangedError):
            handler.handle(1, ADDRESS, ADDRESS)

        assert order_repo.get_by_id(1) is None
        assert coupon_repo.get_by_id(1).usage_count == 0
        cart = cart_repo.get_by_id(1)
        assert cart.lines_count == 1
        assert cart.coupon is not None

    def test_drift_within_tolerance_accepted(self):
        handler, _, variant_repo, _, _ = _setup((1, 2))
        variant_repo.get_by_id(1).set_price("EUR", "B2C", PriceEntry.flat("10.50"))
        dto = handler.handle(1, ADDRESS, ADDRESS)
        assert dto.subtotal == "20.00 EUR"
