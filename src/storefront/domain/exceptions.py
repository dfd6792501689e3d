"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer (or any other driver) can catch them uniformly.  Every
concrete failure carries a stable ``code`` that a controller can map to a
transport-level status without parsing messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "domain_error"


# --- Families -----------------------------------------------------------------


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    code = "validation_error"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = "entity_not_found"


class ConflictError(DomainException):
    """The request conflicts with the current state of an aggregate."""

    code = "conflict"


class AccessDeniedError(DomainException):
    """The requester does not own the resource it is acting on."""

    code = "access_denied"


# --- Catalog / cart mutations -------------------------------------------------


class VariantNotFoundError(EntityNotFoundError):
    code = "variant_not_found"


class CartNotFoundError(EntityNotFoundError):
    code = "cart_not_found"


class CartItemNotFoundError(EntityNotFoundError):
    code = "item_not_found"


class OrderNotFoundError(EntityNotFoundError):
    code = "order_not_found"


class CouponNotFoundError(EntityNotFoundError):
    code = "coupon_not_found"


class VariantUnavailableError(ValidationError):
    code = "variant_unavailable"


class InsufficientStockError(ValidationError):
    code = "insufficient_stock"


class PriceUnavailableError(ValidationError):
    code = "price_not_available"


class InvalidQuantityError(ValidationError):
    code = "invalid_quantity"


class CartExpiredError(ValidationError):
    code = "cart_expired"


# --- Coupons ------------------------------------------------------------------


class CouponNotApplicableError(ValidationError):
    """A coupon exists but cannot be used on this cart.

    ``code`` is refined per instance (``coupon_invalid``,
    ``minimum_amount_not_met`` ...) so callers can tell the reasons apart.
    """

    code = "coupon_not_applicable"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class CouponAlreadyAppliedError(ConflictError):
    code = "coupon_already_applied"


class NoCouponAppliedError(ValidationError):
    code = "no_coupon_applied"


# --- Checkout -----------------------------------------------------------------


class EmptyCartError(ValidationError):
    code = "empty_cart"


class CartLineError(ValidationError):
    """A checkout precondition failed on a specific cart line."""

    def __init__(self, message: str, item_id: int | None = None) -> None:
        super().__init__(message)
        self.item_id = item_id


class ItemNotOrderableError(CartLineError):
    code = "item_not_orderable"


class PriceChangedError(CartLineError):
    code = "price_changed"


class ReferenceGenerationError(DomainException):
    code = "reference_generation_failed"


# --- Order state machine ------------------------------------------------------


class InvalidTransitionError(ConflictError):
    code = "invalid_status_transition"


class OrderNotCancellableError(ConflictError):
    code = "order_not_cancellable"


class OrderNotRefundableError(ConflictError):
    code = "order_not_refundable"
