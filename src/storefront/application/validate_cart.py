"""Application service: Validate Cart use case (query).

Reports, line by line, what would block a checkout right now without
raising: the shopper sees every problem at once instead of the first.
"""

from __future__ import annotations

from storefront.application.cart_access import load_valid_cart
from storefront.application.dto import CartLineCheckDTO, CartValidationDTO
from storefront.domain.model.owner import Owner
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.cart_validation import current_price, line_issues
from storefront.utils.clock import Clock, utcnow


class ValidateCartHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        variant_repo: VariantRepository,
        clock: Clock = utcnow,
    ) -> None:
        self._cart_repo = cart_repo
        self._variant_repo = variant_repo
        self._clock = clock

    def handle(self, cart_id: int, requester: Owner | None = None) -> CartValidationDTO:
        cart = load_valid_cart(self._cart_repo, cart_id, self._clock(), requester)

        lines: list[CartLineCheckDTO] = []
        for item in cart.items:
            variant = (
                self._variant_repo.get_by_id(item.variant_id)
                if item.variant_id is not None
                else None
            )
            price = current_price(cart, item, variant)
            lines.append(
                CartLineCheckDTO(
                    item_id=item.id,  # type: ignore[arg-type]
                    display_name=item.display_name,
                    issues=line_issues(cart, item, variant),
                    current_price=str(price) if price else None,
                )
            )

        return CartValidationDTO(
            cart_id=cart.id,  # type: ignore[arg-type]
            is_valid_for_checkout=not cart.is_empty and all(not line.issues for line in lines),
            lines=lines,
        )
