"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  All repositories share
one JsonStore so a unit of work spans every collection.
"""

from __future__ import annotations

from pathlib import Path

from storefront.infrastructure.persistence.json_cart_repository import (
    JsonCartRepository,
)
from storefront.infrastructure.persistence.json_coupon_repository import (
    JsonCouponRepository,
)
from storefront.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from storefront.infrastructure.persistence.json_store import JsonStore, JsonUnitOfWork
from storefront.infrastructure.persistence.json_variant_repository import (
    JsonVariantRepository,
)
from storefront.utils import settings

_store: JsonStore | None = None


def configure_store(data_dir: Path) -> JsonStore:
    """Point every repository at ``data_dir`` (replaces the current store)."""
    global _store
    _store = JsonStore(data_dir)
    return _store


def json_store() -> JsonStore:
    if _store is None:
        return configure_store(settings.DATA_DIR)
    return _store


def unit_of_work() -> JsonUnitOfWork:
    return JsonUnitOfWork(json_store())


def variant_repository() -> JsonVariantRepository:
    return JsonVariantRepository(json_store())


def coupon_repository() -> JsonCouponRepository:
    return JsonCouponRepository(json_store())


def cart_repository() -> JsonCartRepository:
    return JsonCartRepository(json_store(), coupon_repository())


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(json_store())
