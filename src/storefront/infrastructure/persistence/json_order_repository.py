"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from storefront.domain.model.order import Order, OrderItem, OrderStatusHistory
from storefront.domain.model.order_status import ActorType, OrderStatus
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.json_store import JsonStore
from storefront.infrastructure.persistence.serialization import from_iso, iso

COLLECTION = "orders"


class JsonOrderRepository(OrderRepository):

    def __init__(self, store: JsonStore) -> None:
        self._store = store

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._store.load(COLLECTION):
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def get_by_reference(self, reference: str) -> Order | None:
        for raw in self._store.load(COLLECTION):
            if raw["reference"] == reference:
                return self._to_domain(raw)
        return None

    def last_reference_with_prefix(self, prefix: str) -> str | None:
        references = [
            raw["reference"]
            for raw in self._store.load(COLLECTION)
            if raw["reference"].startswith(prefix)
        ]
        return max(references, default=None)

    def list_by_user(self, user_id: int, limit: int = 20) -> list[Order]:
        records = [r for r in self._store.load(COLLECTION) if r["user_id"] == user_id]
        records.sort(key=lambda r: (r["created_at"], r["id"]), reverse=True)
        return [self._to_domain(raw) for raw in records[:limit]]

    def list_by_site(self, site_id: int, limit: int = 20) -> list[Order]:
        records = [r for r in self._store.load(COLLECTION) if r["site_id"] == site_id]
        records.sort(key=lambda r: (r["created_at"], r["id"]), reverse=True)
        return [self._to_domain(raw) for raw in records[:limit]]

    def list_created_between(
        self, start: datetime, end: datetime, site_id: int | None = None
    ) -> list[Order]:
        return [self._to_domain(raw) for raw in self._in_window(site_id, start, end)]

    def count_by_status(
        self,
        site_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[OrderStatus, int]:
        counts: dict[OrderStatus, int] = {}
        for raw in self._in_window(site_id, start, end):
            status = OrderStatus(raw["status"])
            counts[status] = counts.get(status, 0) + 1
        return counts

    def count_by_user(self, user_id: int, coupon_id: int | None = None) -> int:
        return sum(
            1
            for raw in self._store.load(COLLECTION)
            if raw["user_id"] == user_id
            and (coupon_id is None or raw.get("coupon_id") == coupon_id)
        )

    def save(self, order: Order) -> None:
        with self._store.lock:
            if order.id is None:
                order.id = self._store.next_id(COLLECTION)
            records = self._store.load(COLLECTION)
            for i, raw in enumerate(records):
                if raw["id"] == order.id:
                    records[i] = self._to_raw(order)
                    break
            else:
                records.append(self._to_raw(order))
            self._store.persist(COLLECTION, records)

    def _in_window(
        self,
        site_id: int | None,
        start: datetime | None,
        end: datetime | None,
    ) -> list[dict]:
        """Raw records matching the site and an inclusive creation window."""
        matched = []
        for raw in self._store.load(COLLECTION):
            if site_id is not None and raw["site_id"] != site_id:
                continue
            created_at = from_iso(raw["created_at"])
            if start is not None and created_at < start:
                continue
            if end is not None and created_at > end:
                continue
            matched.append(raw)
        return matched

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "reference": order.reference,
            "site_id": order.site_id,
            "user_id": order.user_id,
            "status": order.status.value,
            "currency": order.currency,
            "locale": order.locale,
            "customer_type": order.customer_type,
            "subtotal": str(order.subtotal.amount),
            "discount_amount": str(order.discount_amount.amount),
            "tax_rate": str(order.tax_rate),
            "tax_amount": str(order.tax_amount.amount),
            "shipping_cost": str(order.shipping_cost.amount),
            "grand_total": str(order.grand_total.amount),
            "shipping_address": dict(order.shipping_address),
            "billing_address": dict(order.billing_address),
            "customer_snapshot": dict(order.customer_snapshot),
            "applied_coupon": dict(order.applied_coupon) if order.applied_coupon else None,
            "coupon_id": order.coupon_id,
            "customer_message": order.customer_message,
            "metadata": dict(order.metadata),
            "created_at": iso(order.created_at),
            "validated_at": iso(order.validated_at),
            "cancelled_at": iso(order.cancelled_at),
            "delivered_at": iso(order.delivered_at),
            "items": [
                {
                    "variant_id": item.variant_id,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price.amount),
                    "tax_rate": str(item.tax_rate),
                    "tax_amount": str(item.tax_amount.amount),
                    "product_snapshot": dict(item.product_snapshot),
                    "savings_amount": (
                        str(item.savings_amount.amount) if item.savings_amount else None
                    ),
                    "custom_message": item.custom_message,
                }
                for item in order.items
            ],
            "status_history": [
                {
                    "from_status": entry.from_status.value if entry.from_status else None,
                    "to_status": entry.to_status.value,
                    "changed_by_type": entry.changed_by_type.value,
                    "changed_by": entry.changed_by,
                    "reason": entry.reason,
                    "metadata": dict(entry.metadata) if entry.metadata else None,
                    "notify_customer": entry.notify_customer,
                    "created_at": iso(entry.created_at),
                }
                for entry in order.status_history
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw["currency"]

        def money(value: str) -> Money:
            return Money(Decimal(value), currency)

        items = [
            OrderItem(
                variant_id=i["variant_id"],
                product_id=i["product_id"],
                quantity=i["quantity"],
                unit_price=money(i["unit_price"]),
                tax_rate=Decimal(i["tax_rate"]),
                tax_amount=money(i["tax_amount"]),
                product_snapshot=i.get("product_snapshot") or {},
                savings_amount=(
                    money(i["savings_amount"]) if i.get("savings_amount") is not None else None
                ),
                custom_message=i.get("custom_message"),
            )
            for i in raw["items"]
        ]
        history = [
            OrderStatusHistory(
                from_status=OrderStatus(h["from_status"]) if h["from_status"] else None,
                to_status=OrderStatus(h["to_status"]),
                changed_by_type=ActorType(h["changed_by_type"]),
                changed_by=h.get("changed_by"),
                reason=h.get("reason"),
                metadata=h.get("metadata"),
                notify_customer=h.get("notify_customer", False),
                created_at=from_iso(h["created_at"]),
            )
            for h in raw.get("status_history", [])
        ]
        return Order(
            id=raw["id"],
            reference=raw["reference"],
            site_id=raw["site_id"],
            user_id=raw["user_id"],
            items=items,
            subtotal=money(raw["subtotal"]),
            discount_amount=money(raw["discount_amount"]),
            tax_rate=Decimal(raw["tax_rate"]),
            tax_amount=money(raw["tax_amount"]),
            shipping_cost=money(raw["shipping_cost"]),
            grand_total=money(raw["grand_total"]),
            shipping_address=raw.get("shipping_address") or {},
            billing_address=raw.get("billing_address") or {},
            customer_snapshot=raw.get("customer_snapshot") or {},
            currency=currency,
            locale=raw.get("locale", "fr"),
            customer_type=raw.get("customer_type", "B2C"),
            status=OrderStatus(raw["status"]),
            applied_coupon=raw.get("applied_coupon"),
            coupon_id=raw.get("coupon_id"),
            customer_message=raw.get("customer_message"),
            metadata=raw.get("metadata") or {},
            status_history=history,
            created_at=from_iso(raw["created_at"]),
            validated_at=from_iso(raw.get("validated_at")),
            cancelled_at=from_iso(raw.get("cancelled_at")),
            delivered_at=from_iso(raw.get("delivered_at")),
        )
