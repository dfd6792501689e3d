"""Unit tests for line checks and checkout preconditions."""

import pytest

from storefront.domain.exceptions import (
    EmptyCartError,
    ItemNotOrderableError,
    PriceChangedError,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.owner import GuestOwner
from storefront.domain.model.value_objects import Money
from storefront.domain.model.variant import PriceEntry, Variant
from storefront.domain.service.cart_validation import (
    INSUFFICIENT_STOCK,
    PRICE_CHANGED,
    VARIANT_UNAVAILABLE,
    assert_ready_for_checkout,
    current_price,
    line_issues,
)
from tests.fakes import NOW


def _make_variant(id: int = 1, price: str = "10.00", stock: int = 10) -> Variant:
    variant = Variant(id=id, sku=f"SKU-{id}", name="Std", product_id=id,
                      product_name=f"Product {id}", stock=stock)
    variant.set_price("EUR", "B2C", PriceEntry.flat(price))
    return variant


def _cart_with(*variants: Variant) -> Cart:
    cart = Cart.open(site_id=1, owner=GuestOwner("tok"), now=NOW)
    for i, variant in enumerate(variants, start=1):
        cart.add_variant(variant, 2, now=NOW).id = i
    return cart


def _reprice(variant: Variant, price: str) -> None:
    variant.set_price("EUR", "B2C", PriceEntry.flat(price))


class TestLineIssues:

    def test_clean_line(self):
        variant = _make_variant()
        cart = _cart_with(variant)
        assert line_issues(cart, cart.items[0], variant) == []

    def test_missing_variant(self):
        cart = _cart_with(_make_variant())
        assert line_issues(cart, cart.items[0], None) == [VARIANT_UNAVAILABLE]

    def test_inactive_variant_reports_only_unavailable(self):
        variant = _make_variant()
        cart = _cart_with(variant)
        variant.is_active = False
        variant.stock = 0
        assert line_issues(cart, cart.items[0], variant) == [VARIANT_UNAVAILABLE]

    def test_stock_and_price_reported_together(self):
        variant = _make_variant()
        cart = _cart_with(variant)
        variant.stock = 1
        _reprice(variant, "12.00")
        assert line_issues(cart, cart.items[0], variant) == [INSUFFICIENT_STOCK, PRICE_CHANGED]

    def test_current_price(self):
        variant = _make_variant()
        cart = _cart_with(variant)
        _reprice(variant, "11.00")
        assert current_price(cart, cart.items[0], variant) == Money.of("11.00")
        assert current_price(cart, cart.items[0], None) is None


class TestPriceTolerance:

    def test_drift_of_exactly_five_percent_accepted(self):
        variant = _make_variant(price="10.00")
        cart = _cart_with(variant)
        _reprice(variant, "10.50")
        assert_ready_for_checkout(cart, {1: variant})

    def test_drift_above_five_percent_rejected(self):
        variant = _make_variant(price="10.00")
        cart = _cart_with(variant)
        _reprice(variant, "10.51")
        with pytest.raises(PriceChangedError) as exc_info:
            assert_ready_for_checkout(cart, {1: variant})
        assert exc_info.value.item_id == 1

    def test_price_drop_counts_too(self):
        variant = _make_variant(price="10.00")
        cart = _cart_with(variant)
        _reprice(variant, "9.40")
        with pytest.raises(PriceChangedError):
            assert_ready_for_checkout(cart, {1: variant})


class TestCheckoutPreconditions:

    def test_empty_cart(self):
        with pytest.raises(EmptyCartError):
            assert_ready_for_checkout(_cart_with(), {})

    def test_vanished_variant(self):
        cart = _cart_with(_make_variant())
        with pytest.raises(ItemNotOrderableError):
            assert_ready_for_checkout(cart, {1: None})

    def test_out_of_stock(self):
        variant = _make_variant(stock=5)
        cart = _cart_with(variant)
        variant.stock = 1
        with pytest.raises(ItemNotOrderableError, match="Product 1 - Std"):
            assert_ready_for_checkout(cart, {1: variant})

    def test_orderability_checked_before_prices(self):
        drifting, missing = _make_variant(1), _make_variant(2)
        cart = _cart_with(drifting, missing)
        _reprice(drifting, "20.00")
        with pytest.raises(ItemNotOrderableError) as exc_info:
            assert_ready_for_checkout(cart, {1: drifting, 2: None})
        assert exc_info.value.item_id == 2
