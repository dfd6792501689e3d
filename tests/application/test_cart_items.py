"""Integration tests for the cart line use cases (add, update, remove, clear, show)."""

from datetime import timedelta

import pytest

from storefront.application.add_cart_item import AddCartItemHandler
from storefront.application.clear_cart import ClearCartHandler
from storefront.application.remove_cart_item import RemoveCartItemHandler
from storefront.application.show_cart import ShowCartHandler
from storefront.application.update_cart_item import UpdateCartItemHandler
from storefront.domain.exceptions import (
    AccessDeniedError,
    CartExpiredError,
    CartItemNotFoundError,
    CartNotFoundError,
    InsufficientStockError,
    InvalidQuantityError,
    VariantNotFoundError,
    VariantUnavailableError,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.owner import GuestOwner, UserOwner
from tests.fakes import (
    NOW,
    FakeCartRepository,
    FakeUnitOfWork,
    FakeVariantRepository,
    fixed_clock,
    make_variant,
)


def _setup(owner=None, now=NOW):
    variants = FakeVariantRepository([
        make_variant(1, "10.00", stock=20, tiers=((5, "8.00"),)),
        make_variant(2, "4.50", stock=3),
        make_variant(3, "7.00", is_active=False),
    ])
    cart_repo = FakeCartRepository()
    cart_repo.save(Cart.open(site_id=1, owner=owner or GuestOwner("tok"), now=NOW))
    uow = FakeUnitOfWork(cart_repo, variants)
    clock = fixed_clock(now)
    handlers = {
        "add": AddCartItemHandler(cart_repo, variants, uow, clock),
        "update": UpdateCartItemHandler(cart_repo, variants, uow, clock),
        "remove": RemoveCartItemHandler(cart_repo, uow, clock),
        "clear": ClearCartHandler(cart_repo, uow, clock),
        "show": ShowCartHandler(cart_repo, clock),
    }
    return handlers, cart_repo, uow


class TestAddItem:

    def test_adds_line_with_totals(self):
        handlers, _, uow = _setup()
        dto = handlers["add"].handle(1, variant_id=1, quantity=2, custom_message="Gift")

        assert dto.lines_count == 1
        line = dto.items[0]
        assert line.id == 1
        assert line.unit_price == "10.00 EUR"
        assert line.line_total == "20.00 EUR"
        assert line.custom_message == "Gift"
        assert dto.subtotal == "20.00 EUR"
        assert dto.shipping == "5.90 EUR"
        assert dto.total == "25.90 EUR"
        assert dto.weight == 500
        assert uow.commits == 1

    def test_second_add_merges_and_reprices(self):
        handlers, _, _ = _setup()
        handlers["add"].handle(1, variant_id=1, quantity=3)
        dto = handlers["add"].handle(1, variant_id=1, quantity=2)

        assert dto.lines_count == 1
        assert dto.items[0].quantity == 5
        assert dto.items[0].unit_price == "8.00 EUR"
        assert dto.savings == "10.00 EUR"

    def test_unknown_variant(self):
        handlers, _, uow = _setup()
        with pytest.raises(VariantNotFoundError):
            handlers["add"].handle(1, variant_id=99, quantity=1)
        assert uow.rollbacks == 1

    def test_inactive_variant(self):
        handlers, _, _ = _setup()
        with pytest.raises(VariantUnavailableError):
            handlers["add"].handle(1, variant_id=3, quantity=1)

    def test_insufficient_stock_leaves_cart_unchanged(self):
        handlers, cart_repo, _ = _setup()
        with pytest.raises(InsufficientStockError):
            handlers["add"].handle(1, variant_id=2, quantity=4)
        assert cart_repo.get_by_id(1).is_empty

    def test_unknown_cart(self):
        handlers, _, _ = _setup()
        with pytest.raises(CartNotFoundError):
            handlers["add"].handle(42, variant_id=1, quantity=1)

    def test_foreign_requester_denied(self):
        handlers, _, _ = _setup(owner=UserOwner(1))
        with pytest.raises(AccessDeniedError):
            handlers["add"].handle(1, variant_id=1, quantity=1, requester=UserOwner(2))

    def test_expired_cart_refused(self):
        handlers, _, _ = _setup(now=NOW + timedelta(days=8))
        with pytest.raises(CartExpiredError):
            handlers["add"].handle(1, variant_id=1, quantity=1)


class TestUpdateItem:

    def test_update_reprices(self):
        handlers, _, _ = _setup()
        handlers["add"].handle(1, variant_id=1, quantity=1)
        dto = handlers["update"].handle(1, item_id=1, quantity=6)
        assert dto.items[0].quantity == 6
        assert dto.items[0].unit_price == "8.00 EUR"

    def test_quantity_checked_before_line_lookup(self):
        handlers, _, _ = _setup()
        with pytest.raises(InvalidQuantityError):
            handlers["update"].handle(1, item_id=99, quantity=0)

    def test_unknown_line(self):
        handlers, _, _ = _setup()
        with pytest.raises(CartItemNotFoundError):
            handlers["update"].handle(1, item_id=99, quantity=1)

    def test_stock_limit(self):
        handlers, cart_repo, _ = _setup()
        handlers["add"].handle(1, variant_id=2, quantity=1)
        with pytest.raises(InsufficientStockError):
            handlers["update"].handle(1, item_id=1, quantity=4)
        assert cart_repo.get_by_id(1).items[0].quantity == 1


class TestRemoveAndClear:

    def test_remove_line(self):
        handlers, _, _ = _setup()
        handlers["add"].handle(1, variant_id=1, quantity=1)
        handlers["add"].handle(1, variant_id=2, quantity=1)
        dto = handlers["remove"].handle(1, item_id=1)
        assert [line.variant_id for line in dto.items] == [2]

    def test_remove_unknown_line(self):
        handlers, _, _ = _setup()
        with pytest.raises(CartItemNotFoundError):
            handlers["remove"].handle(1, item_id=5)

    def test_clear(self):
        handlers, _, _ = _setup()
        handlers["add"].handle(1, variant_id=1, quantity=1)
        dto = handlers["clear"].handle(1)
        assert dto.is_empty
        assert dto.subtotal == "0.00 EUR"
        # Flat shipping still applies below the free-shipping threshold.
        assert dto.shipping == "5.90 EUR"
        assert dto.total == "5.90 EUR"


class TestShowCart:

    def test_show(self):
        handlers, _, _ = _setup()
        handlers["add"].handle(1, variant_id=2, quantity=2)
        dto = handlers["show"].handle(1, requester=GuestOwner("tok"))
        assert dto.items_count == 2
        assert dto.subtotal == "9.00 EUR"
        assert dto.expires_at == "2026-03-22 12:00 UTC"
