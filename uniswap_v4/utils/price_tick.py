"""Conversions between ticks, Q64.96 sqrt prices and human-readable prices.

Raw prices are ratios of smallest units (wei per wei). Human prices are
quoted per whole unit and therefore depend on both currencies' decimals.
"""

from __future__ import annotations

import math
from decimal import Decimal
from fractions import Fraction

from uniswap_v4.entities.currency import Currency
from uniswap_v4.entities.price import Price
from uniswap_v4.errors import InvalidRange
from uniswap_v4.math.fixed_point import Q192
from uniswap_v4.math.tick_math import get_sqrt_ratio_at_tick, get_tick_at_sqrt_ratio


def encode_sqrt_ratio_x96(amount1: int, amount0: int) -> int:
    """Q64.96 sqrt of amount1 / amount0, rounded down.

    Raises:
        InvalidRange: If either amount is not positive
    """
    if amount0 <= 0 or amount1 <= 0:
        raise InvalidRange(f"Cannot encode sqrt ratio of {amount1} / {amount0}")
    return math.isqrt((amount1 << 192) // amount0)


def tick_to_price(base_currency: Currency, quote_currency: Currency, tick: int) -> Price:
    """Price of base_currency in quote_currency at a tick.

    Raises:
        InvalidRange: If tick is outside the protocol bounds
    """
    return sqrt_price_x96_to_price(get_sqrt_ratio_at_tick(tick), base_currency, quote_currency)


def price_to_closest_tick(price: Price) -> int:
    """Greatest tick whose price is <= ``price`` (in currency0 terms).

    Raises:
        InvalidRange: If the price maps outside the protocol bounds
    """
    base, quote = price.base_currency, price.quote_currency
    ordered = base.sorts_before(quote)

    if ordered:
        sqrt_ratio_x96 = encode_sqrt_ratio_x96(price.numerator, price.denominator)
    else:
        sqrt_ratio_x96 = encode_sqrt_ratio_x96(price.denominator, price.numerator)

    tick = get_tick_at_sqrt_ratio(sqrt_ratio_x96)
    # encode_sqrt_ratio_x96 rounds down, so the true tick may be one higher
    next_tick_price = tick_to_price(base, quote, tick + 1).raw
    if ordered:
        if not price.raw < next_tick_price:
            tick += 1
    elif not price.raw > next_tick_price:
        tick += 1
    return tick


def sqrt_price_x96_to_price(
    sqrt_price_x96: int, base_currency: Currency, quote_currency: Currency
) -> Price:
    """Price of base_currency in quote_currency for a pool sqrt price."""
    ratio_x192 = sqrt_price_x96 * sqrt_price_x96
    if base_currency.sorts_before(quote_currency):
        return Price(base_currency, quote_currency, Q192, ratio_x192)
    return Price(base_currency, quote_currency, ratio_x192, Q192)


def price_from_human(
    base_currency: Currency, quote_currency: Currency, value: Decimal | str | int
) -> Price:
    """Price from a human quote (e.g. 2000 USDC per WETH), exact."""
    human = Fraction(Decimal(value))
    if human <= 0:
        raise InvalidRange(f"Price must be positive, got {value}")
    raw = human * Fraction(10**quote_currency.decimals, 10**base_currency.decimals)
    return Price(base_currency, quote_currency, raw.denominator, raw.numerator)


def human_price_to_closest_tick(
    base_currency: Currency, quote_currency: Currency, value: Decimal | str | int
) -> int:
    """Closest tick at or below a human-readable price."""
    return price_to_closest_tick(price_from_human(base_currency, quote_currency, value))


__all__ = [
    "encode_sqrt_ratio_x96",
    "tick_to_price",
    "price_to_closest_tick",
    "sqrt_price_x96_to_price",
    "price_from_human",
    "human_price_to_closest_tick",
]
