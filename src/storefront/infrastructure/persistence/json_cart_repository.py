"""JSON-file-backed implementation of CartRepository.

Lines are stored inside their cart.  Line IDs are unique across all
carts so a line can be addressed on its own.  The applied coupon is
stored by ID and re-read on load.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from storefront.domain.model.cart import Cart, CartItem
from storefront.domain.model.owner import GuestOwner, Owner, UserOwner
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.infrastructure.persistence.json_store import JsonStore
from storefront.infrastructure.persistence.serialization import from_iso, iso

COLLECTION = "carts"


class JsonCartRepository(CartRepository):

    def __init__(self, store: JsonStore, coupon_repo: CouponRepository) -> None:
        self._store = store
        self._coupon_repo = coupon_repo

    # --- CartRepository interface ---------------------------------------------

    def get_by_id(self, cart_id: int) -> Cart | None:
        for raw in self._store.load(COLLECTION):
            if raw["id"] == cart_id:
                return self._to_domain(raw)
        return None

    def get_by_item_id(self, item_id: int) -> Cart | None:
        for raw in self._store.load(COLLECTION):
            if any(i["id"] == item_id for i in raw["items"]):
                return self._to_domain(raw)
        return None

    def get_by_owner(self, site_id: int, owner: Owner) -> Cart | None:
        wanted = self._owner_to_raw(owner)
        for raw in self._store.load(COLLECTION):
            if raw["site_id"] == site_id and raw["owner"] == wanted:
                return self._to_domain(raw)
        return None

    def save(self, cart: Cart) -> None:
        with self._store.lock:
            records = self._store.load(COLLECTION)
            if cart.id is None:
                cart.id = self._store.next_id(COLLECTION)

            next_item_id = self._next_item_id(records)
            for item in cart.items:
                if item.id is None:
                    item.id = next_item_id
                    next_item_id += 1

            for i, raw in enumerate(records):
                if raw["id"] == cart.id:
                    records[i] = self._to_raw(cart)
                    break
            else:
                records.append(self._to_raw(cart))
            self._store.persist(COLLECTION, records)

    def delete(self, cart: Cart) -> None:
        with self._store.lock:
            records = [r for r in self._store.load(COLLECTION) if r["id"] != cart.id]
            self._store.persist(COLLECTION, records)

    def list_expired(self, now: datetime) -> list[Cart]:
        return [
            self._to_domain(raw)
            for raw in self._store.load(COLLECTION)
            if raw["expires_at"] and from_iso(raw["expires_at"]) < now
        ]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _owner_to_raw(owner: Owner) -> dict:
        if isinstance(owner, UserOwner):
            return {"type": "user", "user_id": owner.user_id}
        return {"type": "guest", "token": owner.token}

    @staticmethod
    def _owner_to_domain(raw: dict) -> Owner:
        if raw["type"] == "user":
            return UserOwner(raw["user_id"])
        return GuestOwner(raw["token"])

    def _to_raw(self, cart: Cart) -> dict:
        return {
            "id": cart.id,
            "site_id": cart.site_id,
            "owner": self._owner_to_raw(cart.owner),
            "currency": cart.currency,
            "customer_type": cart.customer_type,
            "locale": cart.locale,
            "coupon_id": cart.coupon.id if cart.coupon else None,
            "created_at": iso(cart.created_at),
            "last_activity_at": iso(cart.last_activity_at),
            "expires_at": iso(cart.expires_at),
            "items": [
                {
                    "id": item.id,
                    "variant_id": item.variant_id,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "price_at_add": str(item.price_at_add.amount),
                    "savings_at_add": (
                        str(item.savings_at_add.amount) if item.savings_at_add else None
                    ),
                    "product_snapshot": item.product_snapshot,
                    "custom_message": item.custom_message,
                    "added_at": iso(item.added_at),
                }
                for item in cart.items
            ],
        }

    def _to_domain(self, raw: dict) -> Cart:
        currency = raw["currency"]
        coupon = None
        if raw.get("coupon_id") is not None:
            coupon = self._coupon_repo.get_by_id(raw["coupon_id"])
        items = [
            CartItem(
                id=i["id"],
                variant_id=i["variant_id"],
                product_id=i["product_id"],
                quantity=i["quantity"],
                price_at_add=Money(Decimal(i["price_at_add"]), currency),
                product_snapshot=i.get("product_snapshot") or {},
                savings_at_add=(
                    Money(Decimal(i["savings_at_add"]), currency)
                    if i.get("savings_at_add") is not None
                    else None
                ),
                custom_message=i.get("custom_message"),
                added_at=from_iso(i["added_at"]),
            )
            for i in raw["items"]
        ]
        return Cart(
            id=raw["id"],
            site_id=raw["site_id"],
            owner=self._owner_to_domain(raw["owner"]),
            currency=currency,
            customer_type=raw.get("customer_type", "B2C"),
            locale=raw.get("locale", "fr"),
            items=items,
            coupon=coupon,
            created_at=from_iso(raw["created_at"]),
            last_activity_at=from_iso(raw["last_activity_at"]),
            expires_at=from_iso(raw.get("expires_at")),
        )

    # --- Helpers --------------------------------------------------------------

    @staticmethod
    def _next_item_id(records: list[dict]) -> int:
        ids = [i["id"] for r in records for i in r["items"] if i["id"] is not None]
        return max(ids, default=0) + 1
