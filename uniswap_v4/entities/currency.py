"""Currencies and raw currency amounts.

A currency is either a Token (an ERC-20 at a 20-byte address) or the chain's
NativeCurrency. The native currency is the distinguished case of the
variant: it has no contract, is represented on the wire by the zero address,
and therefore always sorts before every token. Pool identity depends on
this ordering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal, localcontext

from uniswap_v4.constants import MAINNET_CHAIN_ID, WETH_ADDRESS
from uniswap_v4.errors import InvalidCurrency
from uniswap_v4.types import ADDRESS_ZERO, UINT256_MAX, normalize_address

# Enough digits for any uint256 amount at any decimals
_DECIMAL_PRECISION = 160


def _validate_decimals(decimals: int) -> None:
    if not 0 <= decimals < 256:
        raise ValueError(f"Decimals must be in [0, 255], got {decimals}")


@dataclass(frozen=True)
class Token:
    """An ERC-20 token identified by chain and address.

    Equality and hashing use only chain_id and address; symbol and name are
    display metadata.
    """

    chain_id: int
    address: str
    decimals: int
    symbol: str | None = field(default=None, compare=False)
    name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        try:
            address = normalize_address(self.address, validate=True)
        except ValueError as err:
            raise InvalidCurrency(str(err)) from err
        if address == ADDRESS_ZERO:
            raise InvalidCurrency("Zero address is reserved for the native currency")
        _validate_decimals(self.decimals)
        object.__setattr__(self, "address", address)

    @property
    def is_native(self) -> bool:
        return False

    @property
    def wrapped(self) -> Token:
        return self

    def sorts_before(self, other: Currency) -> bool:
        """True if this currency is currency0 in a pool with ``other``."""
        return _sorts_before(self, other)

    def __repr__(self) -> str:
        return f"Token({self.symbol or self.address}, chain={self.chain_id})"


@dataclass(frozen=True)
class NativeCurrency:
    """The chain's native asset (e.g. ether), with its canonical wrapped token."""

    chain_id: int
    wrapped: Token = field(compare=False)
    decimals: int = 18
    symbol: str = field(default="ETH", compare=False)
    name: str = field(default="Ether", compare=False)

    def __post_init__(self) -> None:
        _validate_decimals(self.decimals)
        if self.wrapped.chain_id != self.chain_id:
            raise InvalidCurrency("Wrapped token must live on the native currency's chain")

    @property
    def is_native(self) -> bool:
        return True

    @property
    def address(self) -> str:
        """Wire address of the native currency (the zero address)."""
        return ADDRESS_ZERO

    def sorts_before(self, other: Currency) -> bool:
        """True if this currency is currency0 in a pool with ``other``."""
        return _sorts_before(self, other)

    def __repr__(self) -> str:
        return f"NativeCurrency({self.symbol}, chain={self.chain_id})"


Currency = Token | NativeCurrency


def _sorts_before(a: Currency, b: Currency) -> bool:
    if a.chain_id != b.chain_id:
        raise InvalidCurrency(f"Currencies on different chains: {a.chain_id} != {b.chain_id}")
    if a.is_native:
        if b.is_native:
            raise InvalidCurrency("Cannot order a currency against itself")
        return True
    if b.is_native:
        return False
    if a.address == b.address:
        raise InvalidCurrency(f"Cannot order a currency against itself: {a.address}")
    return int(a.address, 16) < int(b.address, 16)


def sort_currencies(a: Currency, b: Currency) -> tuple[Currency, Currency]:
    """Return the pair ordered as (currency0, currency1)."""
    return (a, b) if a.sorts_before(b) else (b, a)


def ether(chain_id: int = MAINNET_CHAIN_ID, wrapped: Token | None = None) -> NativeCurrency:
    """Native ether, wrapped by WETH on mainnet unless another token is given."""
    if wrapped is None:
        if chain_id != MAINNET_CHAIN_ID:
            raise InvalidCurrency(f"No default wrapped native token for chain {chain_id}")
        wrapped = Token(chain_id, WETH_ADDRESS, 18, "WETH", "Wrapped Ether")
    return NativeCurrency(chain_id, wrapped)


@dataclass(frozen=True)
class CurrencyAmount:
    """A non-negative raw amount of a currency, in its smallest unit.

    Attributes:
        currency: Currency the amount is denominated in
        quotient: Raw integer amount (uint256)
    """

    currency: Currency
    quotient: int

    def __post_init__(self) -> None:
        if not 0 <= self.quotient <= UINT256_MAX:
            raise ValueError(f"Currency amount must fit uint256, got {self.quotient}")

    @classmethod
    def from_exact(cls, currency: Currency, amount: Decimal | str | int) -> CurrencyAmount:
        """Create from a human amount (e.g. "1.5" WETH), rounding down to the smallest unit."""
        with localcontext() as ctx:
            ctx.prec = _DECIMAL_PRECISION
            raw = (Decimal(amount) * (Decimal(10) ** currency.decimals)).to_integral_value(
                rounding=ROUND_FLOOR
            )
        return cls(currency, int(raw))

    def _check_same_currency(self, other: CurrencyAmount) -> None:
        if other.currency != self.currency:
            raise InvalidCurrency(f"Currency mismatch: {self.currency} vs {other.currency}")

    def add(self, other: CurrencyAmount) -> CurrencyAmount:
        self._check_same_currency(other)
        return CurrencyAmount(self.currency, self.quotient + other.quotient)

    def subtract(self, other: CurrencyAmount) -> CurrencyAmount:
        self._check_same_currency(other)
        return CurrencyAmount(self.currency, self.quotient - other.quotient)

    def to_exact(self) -> Decimal:
        """Amount in human units (quotient / 10^decimals)."""
        with localcontext() as ctx:
            ctx.prec = _DECIMAL_PRECISION
            return Decimal(self.quotient) / (Decimal(10) ** self.currency.decimals)

    @property
    def wrapped(self) -> CurrencyAmount:
        """Same amount denominated in the wrapped currency."""
        if not self.currency.is_native:
            return self
        return CurrencyAmount(self.currency.wrapped, self.quotient)

    def __str__(self) -> str:
        symbol = self.currency.symbol or self.currency.address
        return f"{self.to_exact()} {symbol}"


__all__ = [
    "Token",
    "NativeCurrency",
    "Currency",
    "CurrencyAmount",
    "sort_currencies",
    "ether",
]
