"""Integration tests for the ChangeOrderStatus use case and its named transitions."""

import pytest

from storefront.application.change_order_status import ChangeOrderStatusHandler
from storefront.domain.exceptions import (
    InvalidTransitionError,
    OrderNotCancellableError,
    OrderNotFoundError,
    OrderNotRefundableError,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.order import Order
from storefront.domain.model.order_status import ActorType, OrderStatus
from storefront.domain.model.owner import UserOwner
from tests.fakes import (
    NOW,
    FakeOrderRepository,
    FakeUnitOfWork,
    FakeVariantRepository,
    fixed_clock,
    make_variant,
)


def _setup(quantity: int = 3, stock: int = 10):
    """One PENDING order for ``quantity`` units of variant #1."""
    variant_repo = FakeVariantRepository([make_variant(1, "10.00", stock=stock)])
    order_repo = FakeOrderRepository()
    cart = Cart.open(site_id=1, owner=UserOwner(5), now=NOW)
    cart.add_variant(variant_repo.get_by_id(1), quantity, now=NOW)
    order_repo.save(Order.create_from_cart(cart, "2026-03-00001", {}, {}, {}, now=NOW))

    uow = FakeUnitOfWork(order_repo, variant_repo)
    handler = ChangeOrderStatusHandler(order_repo, variant_repo, uow, fixed_clock())
    return handler, order_repo, variant_repo


def _stock(variant_repo) -> int:
    return variant_repo.get_by_id(1).stock


def _ship(handler) -> None:
    handler.confirm_payment(1)
    handler.mark_as_processing(1, admin_id=2)
    handler.mark_as_shipped(1, tracking_number="TRK123", carrier="Colissimo", admin_id=2)


class TestNamedTransitions:

    def test_confirm_payment_decrements_stock(self):
        handler, _, variant_repo = _setup()
        dto = handler.confirm_payment(1, {"transaction_id": "tx_1"})

        assert dto.status == "confirmed"
        assert _stock(variant_repo) == 7
        entry = dto.history[0]
        assert entry.from_status == "pending"
        assert entry.notify_customer
        assert entry.description == "pending -> confirmed by system: Payment confirmed"

    def test_full_lifecycle_decrements_once(self):
        handler, order_repo, variant_repo = _setup()
        _ship(handler)
        handler.mark_as_delivered(1)
        dto = handler.mark_as_completed(1)

        assert dto.status == "completed"
        assert _stock(variant_repo) == 7
        assert len(dto.history) == 5
        assert order_repo.get_by_id(1).delivered_at == NOW

    def test_shipping_metadata_recorded(self):
        handler, order_repo, _ = _setup()
        _ship(handler)
        entry = order_repo.get_by_id(1).last_status_change
        assert entry.metadata_value("tracking_number") == "TRK123"
        assert entry.metadata_value("carrier") == "Colissimo"
        assert entry.is_admin_change
        assert entry.changed_by == 2

    def test_delivered_actor_defaults_to_system(self):
        handler, order_repo, _ = _setup()
        _ship(handler)
        handler.mark_as_delivered(1)
        assert order_repo.get_by_id(1).last_status_change.is_system_change

    def test_failed_payment(self):
        handler, _, variant_repo = _setup()
        dto = handler.mark_as_failed(1)
        assert dto.status == "failed"
        assert dto.history[0].description.endswith("Payment failed")
        assert _stock(variant_repo) == 10

    def test_hold_and_resume(self):
        handler, _, variant_repo = _setup()
        handler.confirm_payment(1)
        dto = handler.put_on_hold(1, "Address check", admin_id=3)
        assert dto.status == "on_hold"
        assert dto.history[-1].notify_customer
        assert _stock(variant_repo) == 7


class TestCancel:

    def test_pending_cancel_restores_stock(self):
        handler, order_repo, variant_repo = _setup()
        dto = handler.cancel_order(1, reason="Changed my mind", actor_id=5)
        assert dto.status == "cancelled"
        assert _stock(variant_repo) == 13
        order = order_repo.get_by_id(1)
        assert order.cancelled_at == NOW
        assert order.last_status_change.is_customer_change

    def test_confirmed_cancel_gives_units_back(self):
        handler, _, variant_repo = _setup()
        handler.confirm_payment(1)
        handler.cancel_order(1, actor_type=ActorType.ADMIN, actor_id=2)
        assert _stock(variant_repo) == 10

    def test_shipped_order_not_cancellable(self):
        handler, order_repo, variant_repo = _setup()
        _ship(handler)
        with pytest.raises(OrderNotCancellableError):
            handler.cancel_order(1)
        assert order_repo.get_by_id(1).status is OrderStatus.SHIPPED
        assert _stock(variant_repo) == 7


class TestRefund:

    def test_delivered_refund_restores_stock(self):
        handler, _, variant_repo = _setup()
        _ship(handler)
        handler.mark_as_delivered(1, admin_id=2)
        dto = handler.refund_order(1, reason="Damaged", admin_id=2)
        assert dto.status == "refunded"
        assert _stock(variant_repo) == 10

    def test_pending_not_refundable(self):
        handler, *_ = _setup()
        with pytest.raises(OrderNotRefundableError):
            handler.refund_order(1)

    def test_completed_is_terminal(self):
        handler, _, variant_repo = _setup()
        _ship(handler)
        handler.mark_as_delivered(1)
        handler.mark_as_completed(1)
        with pytest.raises(InvalidTransitionError):
            handler.refund_order(1)
        assert _stock(variant_repo) == 7


class TestGenericChange:

    def test_invalid_transition_rolls_back(self):
        handler, order_repo, variant_repo = _setup()
        with pytest.raises(InvalidTransitionError):
            handler.handle(1, OrderStatus.SHIPPED, changed_by=2, changed_by_type=ActorType.ADMIN)
        assert order_repo.get_by_id(1).status is OrderStatus.PENDING
        assert _stock(variant_repo) == 10

    def test_unknown_order(self):
        handler, *_ = _setup()
        with pytest.raises(OrderNotFoundError):
            handler.handle(99, OrderStatus.CONFIRMED)

    def test_integrity_fault_is_logged_not_raised(self, caplog):
        handler, order_repo, variant_repo = _setup(quantity=3, stock=10)
        variant_repo.get_by_id(1).stock = 1
        dto = handler.handle(1, OrderStatus.CONFIRMED)
        assert dto.status == "confirmed"
        assert _stock(variant_repo) == 1
        assert "Stock integrity fault" in caplog.text
