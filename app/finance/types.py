"""
Value types for ledger operations.

Types:
    Money: Exact monetary amount in minor units (cents) with currency

Usage:
    from finance.types import Money

    amount = Money(cents=10000, currency="BRL")
    print(amount)  # "100.00 BRL"

    paid = Money(4000, "BRL")
    outstanding = amount - paid  # Money(cents=6000, currency='BRL')

    Money.from_decimal(Decimal("59.90"), "brl")  # Money(cents=5990, currency='BRL')
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

CENTS_PER_UNIT = 100


@dataclass(frozen=True)
class Money:
    """
    Represents a monetary amount.

    Amounts are integer minor units so arithmetic and comparisons are
    exact. Floats are rejected at construction. The currency is a
    3-letter ISO 4217 code, normalized to upper case.

    Attributes:
        cents: Amount in the smallest currency unit (may be negative)
        currency: ISO 4217 currency code (default: 'BRL')

    Raises:
        TypeError: If cents is not an int
        ValueError: If currency is not a 3-letter code, or when combining
            amounts in different currencies
    """

    cents: int
    currency: str = "BRL"

    def __post_init__(self) -> None:
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise TypeError(
                f"Money cents must be an int, got {type(self.cents).__name__}"
            )
        code = (self.currency or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Invalid currency code: {self.currency!r}")
        object.__setattr__(self, "currency", code)

    # ==========================================================================
    # Constructors
    # ==========================================================================

    @classmethod
    def zero(cls, currency: str = "BRL") -> Money:
        """Return a zero amount in the given currency."""
        return cls(cents=0, currency=currency)

    @classmethod
    def from_decimal(cls, value: Decimal | str | int, currency: str = "BRL") -> Money:
        """
        Build Money from a decimal amount in major units.

        Args:
            value: Amount such as Decimal("59.90") or "59.90"
            currency: ISO 4217 currency code

        Returns:
            Money with the exact number of cents

        Raises:
            TypeError: If value is a float
            ValueError: If value is not a number or has more than two
                fractional digits
        """
        if isinstance(value, float):
            raise TypeError("Money.from_decimal does not accept floats")
        try:
            amount = Decimal(value)
        except (InvalidOperation, TypeError) as e:
            raise ValueError(f"Invalid decimal amount: {value!r}") from e
        if not amount.is_finite():
            raise ValueError(f"Invalid decimal amount: {value!r}")

        cents = amount * CENTS_PER_UNIT
        if cents != cents.to_integral_value():
            raise ValueError(f"Amount {value!r} has more than two decimal places")
        return cls(cents=int(cents), currency=currency)

    # ==========================================================================
    # Conversions
    # ==========================================================================

    def to_decimal(self) -> Decimal:
        """Return the amount in major units as a two-place Decimal."""
        return (Decimal(self.cents) / CENTS_PER_UNIT).quantize(Decimal("0.01"))

    def __str__(self) -> str:
        """Format as '1234.56 BRL' without going through floating point."""
        sign = "-" if self.cents < 0 else ""
        units, cents = divmod(abs(self.cents), CENTS_PER_UNIT)
        return f"{sign}{units}.{cents:02d} {self.currency}"

    def __repr__(self) -> str:
        return f"Money(cents={self.cents}, currency={self.currency!r})"

    # ==========================================================================
    # Predicates
    # ==========================================================================

    @property
    def is_zero(self) -> bool:
        return self.cents == 0

    @property
    def is_positive(self) -> bool:
        return self.cents > 0

    @property
    def is_negative(self) -> bool:
        return self.cents < 0

    # ==========================================================================
    # Arithmetic
    # ==========================================================================

    def _check_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {operation} Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(cents=self.cents + other.cents, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(cents=self.cents - other.cents, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(cents=-self.cents, currency=self.currency)

    def __abs__(self) -> Money:
        return Money(cents=abs(self.cents), currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.cents < other.cents

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.cents <= other.cents

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.cents > other.cents

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.cents >= other.cents


def sum_money(amounts, currency: str = "BRL") -> Money:
    """
    Sum an iterable of Money values.

    Args:
        amounts: Iterable of Money in the same currency
        currency: Currency of the result when amounts is empty

    Returns:
        The exact total
    """
    total: Money | None = None
    for amount in amounts:
        total = amount if total is None else total + amount
    return total if total is not None else Money.zero(currency)
