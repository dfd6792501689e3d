"""Application service: List Catalog Variants use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.model.variant import PriceEntry
from storefront.domain.repository.variant_repository import VariantRepository


@dataclass(frozen=True)
class VariantLineDTO:
    id: int
    sku: str
    name: str
    stock: int
    available: int
    stock_status: str
    prices: dict[str, str]  # "EUR/B2C" -> "10.00 (10+: 9.00)"
    is_active: bool


class ListVariantsHandler:

    def __init__(self, variant_repo: VariantRepository) -> None:
        self._variant_repo = variant_repo

    def handle(self, include_inactive: bool = False) -> list[VariantLineDTO]:
        variants = self._variant_repo.list_all()
        return [
            VariantLineDTO(
                id=v.id,
                sku=v.sku,
                name=v.full_name,
                stock=v.stock,
                available=v.available_stock,
                stock_status=v.stock_status,
                prices={
                    f"{currency}/{ctype}": self._describe(entry)
                    for (currency, ctype), entry in sorted(v.prices.items())
                },
                is_active=v.is_active and not v.is_deleted,
            )
            for v in variants
            if include_inactive or (v.is_active and not v.is_deleted)
        ]

    @staticmethod
    def _describe(entry: PriceEntry) -> str:
        text = f"{entry.base:.2f}"
        if entry.is_tiered:
            tiers = ", ".join(f"{t.min_quantity}+: {t.price:.2f}" for t in entry.tiers)
            text += f" ({tiers})"
        return text
