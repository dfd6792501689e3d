"""Abstract repository for the Cart aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.cart import Cart
from storefront.domain.model.owner import Owner


class CartRepository(ABC):

    @abstractmethod
    def get_by_id(self, cart_id: int) -> Cart | None:
        """Return a cart by its ID, or None if not found."""

    @abstractmethod
    def get_by_item_id(self, item_id: int) -> Cart | None:
        """Return the cart that holds the given line, or None."""

    @abstractmethod
    def get_by_owner(self, site_id: int, owner: Owner) -> Cart | None:
        """Return the owner's cart on a site, or None."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist a new or updated cart, assigning IDs to new lines."""

    @abstractmethod
    def delete(self, cart: Cart) -> None:
        """Remove a cart and its lines."""

    @abstractmethod
    def list_expired(self, now: datetime) -> list[Cart]:
        """Return every cart whose ``expires_at`` is before ``now``."""
