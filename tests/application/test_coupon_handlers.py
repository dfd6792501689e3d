"""Integration tests for the coupon use cases (apply, remove, check)."""

from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.application.apply_coupon import ApplyCouponHandler
from storefront.application.check_coupon import CheckCouponHandler
from storefront.application.remove_coupon import RemoveCouponHandler
from storefront.domain.exceptions import (
    CouponAlreadyAppliedError,
    CouponNotApplicableError,
    CouponNotFoundError,
    NoCouponAppliedError,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.coupon import CouponType
from storefront.domain.model.order import Order
from storefront.domain.model.owner import GuestOwner, UserOwner
from tests.fakes import (
    NOW,
    FakeCartRepository,
    FakeCouponRepository,
    FakeOrderRepository,
    FakeUnitOfWork,
    fixed_clock,
    make_coupon,
    make_variant,
)


def _setup(owner=None, subtotal: str = "50.00", coupons=None):
    coupon_repo = FakeCouponRepository(coupons if coupons is not None else [
        make_coupon("SAVE10", value="0.10", maximum_discount=Decimal("3.00")),
        make_coupon("SHIPFREE", type=CouponType.FREE_SHIPPING, value="0",
                    minimum_amount=Decimal("20")),
        make_coupon("WELCOME", value="0.05", first_order_only=True),
        make_coupon("OLD", value="0.20", valid_until=NOW - timedelta(days=1)),
    ])
    cart_repo = FakeCartRepository()
    order_repo = FakeOrderRepository()
    cart = Cart.open(site_id=1, owner=owner or GuestOwner("tok"), now=NOW)
    cart.add_variant(make_variant(price=subtotal), 1, now=NOW)
    cart_repo.save(cart)

    uow = FakeUnitOfWork(cart_repo, coupon_repo)
    clock = fixed_clock()
    apply = ApplyCouponHandler(cart_repo, coupon_repo, order_repo, uow, clock)
    remove = RemoveCouponHandler(cart_repo, uow, clock)
    check = CheckCouponHandler(cart_repo, coupon_repo, order_repo, clock)
    return apply, remove, check, cart_repo, order_repo


def _past_order(order_repo, user_id: int, coupon_id: int | None = None) -> None:
    cart = Cart.open(site_id=1, owner=UserOwner(user_id), now=NOW)
    cart.add_variant(make_variant(9), 1, now=NOW)
    order = Order.create_from_cart(cart, "2026-02-00001", {}, {}, {}, now=NOW)
    order.coupon_id = coupon_id
    order_repo.save(order)


class TestApplyCoupon:

    def test_percentage_discount_capped(self):
        apply, *_ = _setup()
        dto = apply.handle(1, "save10")
        assert dto.coupon_code == "SAVE10"
        assert dto.discount == "3.00 EUR"
        assert dto.shipping == "5.90 EUR"
        assert dto.total == "52.90 EUR"

    def test_free_shipping(self):
        apply, *_ = _setup(subtotal="25.00")
        dto = apply.handle(1, "SHIPFREE")
        assert dto.discount == "0.00 EUR"
        assert dto.shipping == "0.00 EUR"
        assert dto.total == "25.00 EUR"

    def test_unknown_code(self):
        apply, *_ = _setup()
        with pytest.raises(CouponNotFoundError):
            apply.handle(1, "NOPE")

    def test_already_applied(self):
        apply, *_ = _setup()
        apply.handle(1, "SAVE10")
        with pytest.raises(CouponAlreadyAppliedError):
            apply.handle(1, "SAVE10")

    def test_another_coupon_replaces_the_first(self):
        apply, *_ = _setup()
        apply.handle(1, "SAVE10")
        assert apply.handle(1, "SHIPFREE").coupon_code == "SHIPFREE"

    def test_expired_coupon_refused(self, caplog):
        apply, _, _, cart_repo, _ = _setup()
        with pytest.raises(CouponNotApplicableError) as exc_info:
            apply.handle(1, "OLD")
        assert exc_info.value.code == "coupon_invalid"
        assert cart_repo.get_by_id(1).coupon is None
        assert "refused (coupon_invalid)" in caplog.text

    def test_minimum_amount(self):
        apply, *_ = _setup(subtotal="15.00")
        with pytest.raises(CouponNotApplicableError) as exc_info:
            apply.handle(1, "SHIPFREE")
        assert exc_info.value.code == "minimum_amount_not_met"

    def test_first_order_only_for_returning_user(self):
        apply, _, _, _, order_repo = _setup(owner=UserOwner(5))
        _past_order(order_repo, 5)
        with pytest.raises(CouponNotApplicableError) as exc_info:
            apply.handle(1, "WELCOME")
        assert exc_info.value.code == "first_order_only"

    def test_first_order_only_for_new_user(self):
        apply, *_ = _setup(owner=UserOwner(5))
        assert apply.handle(1, "WELCOME").coupon_code == "WELCOME"

    def test_per_user_limit(self):
        coupons = [make_coupon("ONCE", value="0.10", max_usages_per_user=1)]
        apply, _, _, _, order_repo = _setup(owner=UserOwner(5), coupons=coupons)
        _past_order(order_repo, 5, coupon_id=1)
        with pytest.raises(CouponNotApplicableError) as exc_info:
            apply.handle(1, "ONCE")
        assert exc_info.value.code == "user_limit_reached"


class TestRemoveCoupon:

    def test_remove(self):
        apply, remove, *_ = _setup()
        apply.handle(1, "SAVE10")
        dto = remove.handle(1)
        assert dto.coupon_code is None
        assert dto.discount == "0.00 EUR"

    def test_nothing_to_remove(self):
        _, remove, *_ = _setup()
        with pytest.raises(NoCouponAppliedError):
            remove.handle(1)


class TestCheckCoupon:

    def test_applicable(self):
        _, _, check, _, _ = _setup()
        result = check.handle(1, "save10")
        assert result.is_applicable
        assert result.discount == "3.00 EUR"
        assert result.description == "10% off"
        assert all(result.checks.values())

    def test_unknown(self):
        _, _, check, _, _ = _setup()
        result = check.handle(1, " nope ")
        assert not result.exists
        assert result.code == "NOPE"
        assert result.reason == "coupon_not_found"
        assert not result.is_applicable

    def test_reports_failing_check_without_raising(self):
        _, _, check, cart_repo, _ = _setup(subtotal="15.00")
        result = check.handle(1, "SHIPFREE")
        assert not result.is_applicable
        assert result.reason == "minimum_amount_not_met"
        assert result.checks["meets_minimum"] is False
        assert result.free_shipping
        assert result.discount is None
        assert cart_repo.get_by_id(1).coupon is None
