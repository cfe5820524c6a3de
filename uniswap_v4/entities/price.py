"""Exact prices between two currencies."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from fractions import Fraction

from uniswap_v4.entities.currency import Currency, CurrencyAmount
from uniswap_v4.errors import InvalidCurrency


@dataclass(frozen=True)
class Price:
    """Price of ``base_currency`` in units of ``quote_currency``.

    The raw ratio is ``numerator / denominator`` in smallest units (e.g. wei
    of quote per wei of base). ``adjusted`` rescales it by the currencies'
    decimals so it reads in human units.
    """

    base_currency: Currency
    quote_currency: Currency
    denominator: int
    numerator: int

    def __post_init__(self) -> None:
        if self.denominator == 0:
            raise ZeroDivisionError("Price denominator cannot be zero")

    @classmethod
    def from_amounts(cls, base_amount: CurrencyAmount, quote_amount: CurrencyAmount) -> Price:
        """Price implied by exchanging base_amount for quote_amount."""
        return cls(
            base_amount.currency,
            quote_amount.currency,
            base_amount.quotient,
            quote_amount.quotient,
        )

    @property
    def raw(self) -> Fraction:
        return Fraction(self.numerator, self.denominator)

    @property
    def scalar(self) -> Fraction:
        return Fraction(10**self.base_currency.decimals, 10**self.quote_currency.decimals)

    @property
    def adjusted(self) -> Fraction:
        """Price in human units (quote per one whole base)."""
        return self.raw * self.scalar

    def invert(self) -> Price:
        return Price(self.quote_currency, self.base_currency, self.numerator, self.denominator)

    def multiply(self, other: Price) -> Price:
        """Chain two prices: (A in B) * (B in C) = A in C."""
        if other.base_currency != self.quote_currency:
            raise InvalidCurrency(
                f"Cannot chain prices: {self.quote_currency} != {other.base_currency}"
            )
        return Price(
            self.base_currency,
            other.quote_currency,
            self.denominator * other.denominator,
            self.numerator * other.numerator,
        )

    def quote_exact(self, amount: CurrencyAmount) -> Fraction:
        """Exact quote-currency value of a base-currency amount."""
        if amount.currency != self.base_currency:
            raise InvalidCurrency(
                f"Amount in {amount.currency}, price base is {self.base_currency}"
            )
        return self.raw * amount.quotient

    def quote(self, amount: CurrencyAmount) -> CurrencyAmount:
        """Quote-currency value of a base-currency amount, rounded down."""
        exact = self.quote_exact(amount)
        return CurrencyAmount(self.quote_currency, exact.numerator // exact.denominator)

    def to_significant(self, significant_digits: int = 6) -> str:
        """Adjusted price rounded to a number of significant digits."""
        adjusted = self.adjusted
        with localcontext() as ctx:
            ctx.prec = significant_digits
            value = Decimal(adjusted.numerator) / Decimal(adjusted.denominator)
        return format(value.normalize(), "f")

    def __repr__(self) -> str:
        return f"Price({self.base_currency!r} -> {self.quote_currency!r}: {self.to_significant()})"


__all__ = ["Price"]
