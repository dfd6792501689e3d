"""Money: the one value object every price, discount and total goes through.

Amounts are Decimals in a named currency.  A Money can never be negative,
and two amounts in different currencies can never be combined.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering

from storefront.domain.exceptions import ValidationError

DEFAULT_CURRENCY = "EUR"
CENT = Decimal("0.01")
_ZERO = Decimal("0")


@total_ordering
@dataclass(frozen=True)
class Money:
    """Non-negative Decimal amount tagged with an ISO currency code.

    Intermediate results (``price * tax_rate``) may carry more than two
    decimals; call ``rounded()`` where a stored amount must be cent-exact.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < _ZERO:
            raise ValidationError(f"Money amount cannot be negative, got {self.amount}")

    # --- Construction ---------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Build from anything Decimal can parse via ``str()``."""
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        return Money(value, currency.upper())

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(_ZERO, currency.upper())

    # --- Arithmetic -----------------------------------------------------------

    def __add__(self, other: Money) -> Money:
        return Money(self.amount + self._amount_of(other), self.currency)

    def __sub__(self, other: Money) -> Money:
        result = self.amount - self._amount_of(other)
        if result < _ZERO:
            raise ValidationError(f"Cannot subtract {other} from {self}")
        return Money(result, self.currency)

    def minus_floor_zero(self, other: Money) -> Money:
        """Subtract, clamping at zero instead of raising."""
        return Money(max(_ZERO, self.amount - self._amount_of(other)), self.currency)

    def __mul__(self, factor: int | Decimal) -> Money:
        # bool is an int subclass; floats would reintroduce binary rounding.
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise TypeError(
                f"Can only multiply Money by int or Decimal, got {type(factor).__name__}"
            )
        return Money(self.amount * factor, self.currency)

    def rounded(self) -> Money:
        """Round half-up to the cent."""
        return Money(self.amount.quantize(CENT, rounding=ROUND_HALF_UP), self.currency)

    def __lt__(self, other: Money) -> bool:
        return self.amount < self._amount_of(other)

    @property
    def is_zero(self) -> bool:
        return self.amount == _ZERO

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    def _amount_of(self, other: Money) -> Decimal:
        if self.currency != other.currency:
            raise ValidationError(f"Cannot combine {self.currency} with {other.currency}")
        return other.amount
