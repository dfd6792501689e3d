"""Abstract repository for the Variant aggregate.

Defined in the domain layer so the domain never depends on
infrastructure.  The two stock methods are the only way stock changes:
implementations must make ``decrement_stock`` a single conditional write
so concurrent callers can never oversell.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.variant import Variant


class VariantRepository(ABC):

    @abstractmethod
    def get_by_id(self, variant_id: int) -> Variant | None:
        """Return a variant by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Variant]:
        """Return every variant in the catalog."""

    @abstractmethod
    def save(self, variant: Variant) -> None:
        """Persist a new or updated variant."""

    @abstractmethod
    def decrement_stock(self, variant_id: int, quantity: int) -> bool:
        """Subtract ``quantity`` only if at least that much is in stock.

        Returns False (and changes nothing) when stock is insufficient or
        the variant does not exist or is soft-deleted.
        """

    @abstractmethod
    def increment_stock(self, variant_id: int, quantity: int) -> bool:
        """Add ``quantity`` back.  Returns False if the variant is missing or deleted."""
