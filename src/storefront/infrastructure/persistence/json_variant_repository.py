"""JSON-file-backed implementation of VariantRepository."""

from __future__ import annotations

from decimal import Decimal

from storefront.domain.model.variant import PriceEntry, PriceTier, Variant
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.infrastructure.persistence.json_store import JsonStore

COLLECTION = "variants"


class JsonVariantRepository(VariantRepository):

    def __init__(self, store: JsonStore) -> None:
        self._store = store

    # --- VariantRepository interface ------------------------------------------

    def get_by_id(self, variant_id: int) -> Variant | None:
        for raw in self._store.load(COLLECTION):
            if raw["id"] == variant_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Variant]:
        return [self._to_domain(raw) for raw in self._store.load(COLLECTION)]

    def save(self, variant: Variant) -> None:
        with self._store.lock:
            records = self._store.load(COLLECTION)
            for i, raw in enumerate(records):
                if raw["id"] == variant.id:
                    records[i] = self._to_raw(variant)
                    break
            else:
                records.append(self._to_raw(variant))
            self._store.persist(COLLECTION, records)

    def decrement_stock(self, variant_id: int, quantity: int) -> bool:
        # Check and subtract under the store lock: no other writer can
        # slip in between.  Soft-deleted variants never move.
        with self._store.lock:
            records = self._store.load(COLLECTION)
            for i, raw in enumerate(records):
                if raw["id"] == variant_id:
                    if raw.get("is_deleted") or raw["stock"] < quantity:
                        return False
                    records[i] = {**raw, "stock": raw["stock"] - quantity}
                    self._store.persist(COLLECTION, records)
                    return True
            return False

    def increment_stock(self, variant_id: int, quantity: int) -> bool:
        with self._store.lock:
            records = self._store.load(COLLECTION)
            for i, raw in enumerate(records):
                if raw["id"] == variant_id:
                    if raw.get("is_deleted"):
                        return False
                    records[i] = {**raw, "stock": raw["stock"] + quantity}
                    self._store.persist(COLLECTION, records)
                    return True
            return False

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(variant: Variant) -> dict:
        return {
            "id": variant.id,
            "sku": variant.sku,
            "name": variant.name,
            "product_id": variant.product_id,
            "product_name": variant.product_name,
            "prices": [
                {
                    "currency": currency,
                    "customer_type": customer_type,
                    "base": str(entry.base),
                    "tiers": [
                        {"min_quantity": t.min_quantity, "price": str(t.price)}
                        for t in entry.tiers
                    ],
                }
                for (currency, customer_type), entry in variant.prices.items()
            ],
            "stock": variant.stock,
            "low_stock_threshold": variant.low_stock_threshold,
            "safety_stock": variant.safety_stock,
            "weight": variant.weight,
            "image": variant.image,
            "is_active": variant.is_active,
            "is_deleted": variant.is_deleted,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Variant:
        prices = {
            (p["currency"].upper(), p["customer_type"]): PriceEntry(
                base=Decimal(p["base"]),
                tiers=tuple(
                    PriceTier(t["min_quantity"], Decimal(t["price"]))
                    for t in p.get("tiers", [])
                ),
            )
            for p in raw.get("prices", [])
        }
        return Variant(
            id=raw["id"],
            sku=raw["sku"],
            name=raw["name"],
            product_id=raw["product_id"],
            product_name=raw["product_name"],
            prices=prices,
            stock=raw.get("stock", 0),
            low_stock_threshold=raw.get("low_stock_threshold", 5),
            safety_stock=raw.get("safety_stock", 0),
            weight=raw.get("weight"),
            image=raw.get("image"),
            is_active=raw.get("is_active", True),
            is_deleted=raw.get("is_deleted", False),
        )
