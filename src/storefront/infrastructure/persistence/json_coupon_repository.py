"""JSON-file-backed implementation of CouponRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from storefront.domain.model.coupon import Coupon, CouponType
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.infrastructure.persistence.json_store import JsonStore
from storefront.infrastructure.persistence.serialization import (
    dec,
    from_dec,
    from_iso,
    iso,
)

COLLECTION = "coupons"


class JsonCouponRepository(CouponRepository):

    def __init__(self, store: JsonStore) -> None:
        self._store = store

    # --- CouponRepository interface -------------------------------------------

    def get_by_id(self, coupon_id: int) -> Coupon | None:
        for raw in self._store.load(COLLECTION):
            if raw["id"] == coupon_id:
                return self._to_domain(raw)
        return None

    def get_by_code(self, code: str, site_id: int) -> Coupon | None:
        wanted = code.strip().upper()
        for raw in self._store.load(COLLECTION):
            if raw["site_id"] == site_id and raw["code"].upper() == wanted:
                return self._to_domain(raw)
        return None

    def list_active(self, site_id: int, now: datetime) -> list[Coupon]:
        coupons = [
            self._to_domain(raw)
            for raw in self._store.load(COLLECTION)
            if raw["site_id"] == site_id
        ]
        active = [c for c in coupons if c.is_valid(now)]
        active.sort(key=lambda c: c.id, reverse=True)
        return active

    def save(self, coupon: Coupon) -> None:
        with self._store.lock:
            if coupon.id is None:
                coupon.id = self._store.next_id(COLLECTION)
            records = self._store.load(COLLECTION)
            for i, raw in enumerate(records):
                if raw["id"] == coupon.id:
                    records[i] = self._to_raw(coupon)
                    break
            else:
                records.append(self._to_raw(coupon))
            self._store.persist(COLLECTION, records)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(coupon: Coupon) -> dict:
        return {
            "id": coupon.id,
            "code": coupon.code,
            "site_id": coupon.site_id,
            "type": coupon.type.value,
            "value": str(coupon.value),
            "minimum_amount": dec(coupon.minimum_amount),
            "maximum_discount": dec(coupon.maximum_discount),
            "valid_from": iso(coupon.valid_from),
            "valid_until": iso(coupon.valid_until),
            "max_usages": coupon.max_usages,
            "max_usages_per_user": coupon.max_usages_per_user,
            "usage_count": coupon.usage_count,
            "first_order_only": coupon.first_order_only,
            "allowed_customer_types": coupon.allowed_customer_types,
            "public_message": coupon.public_message,
            "is_active": coupon.is_active,
            "is_deleted": coupon.is_deleted,
            "created_at": iso(coupon.created_at),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Coupon:
        return Coupon(
            id=raw["id"],
            code=raw["code"],
            site_id=raw["site_id"],
            type=CouponType(raw["type"]),
            value=Decimal(raw.get("value", "0")),
            minimum_amount=from_dec(raw.get("minimum_amount")),
            maximum_discount=from_dec(raw.get("maximum_discount")),
            valid_from=from_iso(raw.get("valid_from")),
            valid_until=from_iso(raw.get("valid_until")),
            max_usages=raw.get("max_usages"),
            max_usages_per_user=raw.get("max_usages_per_user"),
            usage_count=raw.get("usage_count", 0),
            first_order_only=raw.get("first_order_only", False),
            allowed_customer_types=raw.get("allowed_customer_types"),
            public_message=raw.get("public_message"),
            is_active=raw.get("is_active", True),
            is_deleted=raw.get("is_deleted", False),
            created_at=from_iso(raw.get("created_at")),
        )
