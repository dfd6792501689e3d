"""Unit tests for the Coupon aggregate: validity rules and discounts."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.coupon import Coupon, CouponType
from storefront.domain.model.value_objects import Money

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _make_coupon(type: CouponType = CouponType.PERCENTAGE, value: str = "0.10", **kwargs) -> Coupon:
    return Coupon(id=1, code="promo", site_id=1, type=type, value=Decimal(value), **kwargs)


class TestCouponCreation:

    def test_code_is_normalised(self):
        coupon = Coupon(id=1, code="  summer10 ", site_id=1, type=CouponType.PERCENTAGE)
        assert coupon.code == "SUMMER10"

    def test_blank_code_rejected(self):
        with pytest.raises(ValidationError, match="code is required"):
            Coupon(id=1, code=" ", site_id=1, type=CouponType.FIXED_AMOUNT)

    def test_percentage_above_one_rejected(self):
        with pytest.raises(ValidationError, match="fraction"):
            _make_coupon(value="10")

    def test_negative_value_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            _make_coupon(CouponType.FIXED_AMOUNT, "-5")


class TestCouponValidity:

    def test_valid_without_bounds(self):
        assert _make_coupon().is_valid(NOW)

    def test_invalid_before_window_opens(self):
        coupon = _make_coupon(valid_from=NOW + timedelta(seconds=1))
        assert not coupon.is_valid(NOW)
        assert coupon.is_expired(NOW)

    def test_invalid_after_window_closes(self):
        coupon = _make_coupon(valid_until=NOW - timedelta(seconds=1))
        assert not coupon.is_valid(NOW)

    def test_window_bounds_are_inclusive(self):
        coupon = _make_coupon(valid_from=NOW, valid_until=NOW)
        assert coupon.is_valid(NOW)

    def test_invalid_when_exhausted(self):
        coupon = _make_coupon(max_usages=3, usage_count=3)
        assert coupon.is_exhausted
        assert not coupon.is_valid(NOW)
        assert coupon.remaining_usages == 0

    def test_invalid_when_inactive_or_deleted(self):
        assert not _make_coupon(is_active=False).is_valid(NOW)
        assert not _make_coupon(is_deleted=True).is_valid(NOW)

    def test_unlimited_usages(self):
        coupon = _make_coupon(usage_count=10_000)
        assert not coupon.is_exhausted
        assert coupon.remaining_usages is None


class TestCouponEligibilityRules:

    def test_per_user_limit(self):
        coupon = _make_coupon(max_usages_per_user=2)
        assert coupon.can_user_use(1)
        assert not coupon.can_user_use(2)

    def test_no_per_user_limit(self):
        assert _make_coupon().can_user_use(99)

    def test_customer_type_allow_list(self):
        coupon = _make_coupon(allowed_customer_types=["B2B"])
        assert coupon.is_applicable_to_customer_type("B2B")
        assert not coupon.is_applicable_to_customer_type("B2C")

    def test_empty_allow_list_accepts_everyone(self):
        assert _make_coupon(allowed_customer_types=[]).is_applicable_to_customer_type("B2C")

    def test_minimum_amount(self):
        coupon = _make_coupon(minimum_amount=Decimal("30"))
        assert coupon.meets_minimum(Money.of("30.00"))
        assert not coupon.meets_minimum(Money.of("29.99"))


class TestCouponDiscount:

    def test_percentage_discount(self):
        assert _make_coupon(value="0.10").discount_for(Money.of("40.00")) == Money.of("4.00")

    def test_percentage_capped_by_maximum_discount(self):
        coupon = _make_coupon(value="0.10", maximum_discount=Decimal("3.00"))
        assert coupon.discount_for(Money.of("50.00")) == Money.of("3.00")

    def test_percentage_is_rounded_to_cent(self):
        coupon = _make_coupon(value="0.15")
        assert coupon.discount_for(Money.of("10.03")) == Money.of("1.50")

    def test_fixed_amount_discount(self):
        coupon = _make_coupon(CouponType.FIXED_AMOUNT, "5.00")
        assert coupon.discount_for(Money.of("40.00")) == Money.of("5.00")

    def test_fixed_amount_never_exceeds_subtotal(self):
        coupon = _make_coupon(CouponType.FIXED_AMOUNT, "50.00")
        assert coupon.discount_for(Money.of("12.00")) == Money.of("12.00")

    def test_full_percentage_never_exceeds_subtotal(self):
        coupon = _make_coupon(value="1")
        assert coupon.discount_for(Money.of("12.34")) == Money.of("12.34")

    def test_free_shipping_has_no_discount_amount(self):
        coupon = _make_coupon(CouponType.FREE_SHIPPING, "0")
        assert coupon.discount_for(Money.of("40.00")).is_zero
        assert coupon.offers_free_shipping

    def test_zero_when_minimum_not_met(self):
        coupon = _make_coupon(CouponType.FIXED_AMOUNT, "5", minimum_amount=Decimal("50"))
        assert coupon.discount_for(Money.of("49.99")).is_zero

    def test_discount_uses_subtotal_currency(self):
        coupon = _make_coupon(CouponType.FIXED_AMOUNT, "5")
        assert coupon.discount_for(Money.of("20", "USD")).currency == "USD"


class TestCouponUsage:

    def test_increment_usage(self):
        coupon = _make_coupon(max_usages=2)
        coupon.increment_usage()
        assert coupon.usage_count == 1

    def test_increment_beyond_cap_rejected(self):
        coupon = _make_coupon(max_usages=1, usage_count=1)
        with pytest.raises(ValidationError, match="no usages left"):
            coupon.increment_usage()

    def test_snapshot_freezes_display_fields(self):
        coupon = _make_coupon(value="0.10")
        assert coupon.to_snapshot() == {
            "code": "PROMO",
            "type": "percentage",
            "value": "0.10",
            "description": "10% off",
        }
