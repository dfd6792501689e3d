"""Unit tests for the StockLedger domain service."""

import pytest

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.cart import Cart
from storefront.domain.model.order import Order
from storefront.domain.model.owner import UserOwner
from storefront.domain.model.variant import PriceEntry, Variant
from storefront.domain.service.stock_ledger import StockLedger
from tests.fakes import NOW, FakeVariantRepository


def _make_variant(id: int = 1, stock: int = 10) -> Variant:
    variant = Variant(id=id, sku=f"SKU-{id}", name="Std", product_id=id,
                      product_name="Tea", stock=stock)
    variant.set_price("EUR", "B2C", PriceEntry.flat("5.00"))
    return variant


def _make_order(*lines: tuple[Variant, int]) -> Order:
    cart = Cart.open(site_id=1, owner=UserOwner(1), now=NOW)
    for variant, quantity in lines:
        cart.add_variant(variant, quantity, now=NOW)
    return Order.create_from_cart(cart, "2026-03-00001", {}, {}, {}, now=NOW)


class TestSingleMovements:

    def test_decrement_then_increment_restores(self):
        repo = FakeVariantRepository([_make_variant(stock=10)])
        ledger = StockLedger(repo)
        assert ledger.decrement(1, 4)
        assert repo.get_by_id(1).stock == 6
        assert ledger.increment(1, 4)
        assert repo.get_by_id(1).stock == 10

    def test_decrement_refused_when_short(self):
        repo = FakeVariantRepository([_make_variant(stock=3)])
        assert not StockLedger(repo).decrement(1, 4)
        assert repo.get_by_id(1).stock == 3

    def test_unknown_variant(self):
        ledger = StockLedger(FakeVariantRepository())
        assert not ledger.decrement(99, 1)
        assert not ledger.increment(99, 1)

    def test_non_positive_quantity_rejected(self):
        ledger = StockLedger(FakeVariantRepository([_make_variant()]))
        with pytest.raises(ValidationError):
            ledger.decrement(1, 0)
        with pytest.raises(ValidationError):
            ledger.increment(1, -2)


class TestOrderMovements:

    def test_decrement_for_order(self):
        tea, mug = _make_variant(1, 10), _make_variant(2, 5)
        order = _make_order((tea, 2), (mug, 1))
        repo = FakeVariantRepository([tea, mug])

        failed = StockLedger(repo).decrement_for_order(order)

        assert failed == []
        assert tea.stock == 8
        assert mug.stock == 4

    def test_decrement_for_order_reports_failures(self, caplog):
        tea = _make_variant(1, 10)
        order = _make_order((tea, 3))
        tea.stock = 1
        repo = FakeVariantRepository([tea])

        failed = StockLedger(repo).decrement_for_order(order)

        assert failed == [1]
        assert tea.stock == 1
        assert "Stock integrity fault" in caplog.text

    def test_restore_for_order(self):
        tea = _make_variant(1, 10)
        order = _make_order((tea, 3))
        StockLedger(FakeVariantRepository([tea])).restore_for_order(order)
        assert tea.stock == 13

    def test_deleted_variant_is_left_alone(self, caplog):
        tea = _make_variant(1, 10)
        order = _make_order((tea, 3))
        tea.is_deleted = True
        ledger = StockLedger(FakeVariantRepository([tea]))

        assert ledger.decrement_for_order(order) == [1]
        ledger.restore_for_order(order)

        assert tea.stock == 10
        assert "missing or deleted" in caplog.text
