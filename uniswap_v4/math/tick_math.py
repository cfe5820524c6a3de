"""Conversion between ticks and Q64.96 square-root prices.

``get_sqrt_ratio_at_tick`` is the protocol's bit-by-bit algorithm: the
ratio 1.0001^(-|tick|/2) is built in Q128.128 from precomputed factors,
inverted for positive ticks and rounded up to Q64.96. The inverse returns
the greatest tick whose sqrt ratio is <= the input, which is exactly how
the on-chain TickMath defines it.
"""

from __future__ import annotations

import math

from uniswap_v4.errors import InvalidRange
from uniswap_v4.types import UINT256_MAX

MIN_TICK = -887272
MAX_TICK = -MIN_TICK

# get_sqrt_ratio_at_tick(MIN_TICK) and get_sqrt_ratio_at_tick(MAX_TICK)
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

# sqrt(1.0001)^-(2^i) in Q128.128 for bit i of |tick|, i >= 1
_TICK_FACTORS = (
    (0x2, 0xFFF97272373D413259A46990580E213A),
    (0x4, 0xFFF2E50F5F656932EF12357CF3C7FDCC),
    (0x8, 0xFFE5CACA7E10E4E61C3624EAA0941CD0),
    (0x10, 0xFFCB9843D60F6159C9DB58835C926644),
    (0x20, 0xFF973B41FA98C081472E6896DFB254C0),
    (0x40, 0xFF2EA16466C96A3843EC78B326B52861),
    (0x80, 0xFE5DEE046A99A2A811C461F1969C3053),
    (0x100, 0xFCBE86C7900A88AEDCFFC83B479AA3A4),
    (0x200, 0xF987A7253AC413176F2B074CF7815E54),
    (0x400, 0xF3392B0822B70005940C7A398E4B70F3),
    (0x800, 0xE7159475A2C29B7443B29C7FA6E889D9),
    (0x1000, 0xD097F3BDFD2022B8845AD8F792AA5825),
    (0x2000, 0xA9F746462D870FDF8A65DC1F90E061E5),
    (0x4000, 0x70D869A156D2A1B890BB3DF62BAF32F7),
    (0x8000, 0x31BE135F97D08FD981231505542FCFA6),
    (0x10000, 0x9AA508B5B7A84E1C677DE54F3E99BC9),
    (0x20000, 0x5D6AF8DEDB81196699C329225EE604),
    (0x40000, 0x2216E584F5FA1EA926041BEDFE98),
    (0x80000, 0x48A170391F7DC42444E8FA2),
)

_LOG_SQRT_10001 = math.log(1.0001) / 2


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """Return sqrt(1.0001^tick) * 2^96, rounded up.

    Args:
        tick: Tick index in [MIN_TICK, MAX_TICK]

    Returns:
        Q64.96 square-root price

    Raises:
        InvalidRange: If tick is outside the protocol bounds
    """
    if not MIN_TICK <= tick <= MAX_TICK:
        raise InvalidRange(f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")

    abs_tick = abs(tick)
    if abs_tick & 0x1:
        ratio = 0xFFFCB933BD6FAD37AA2D162D1A594001
    else:
        ratio = 0x100000000000000000000000000000000
    for bit, factor in _TICK_FACTORS:
        if abs_tick & bit:
            ratio = (ratio * factor) >> 128

    if tick > 0:
        ratio = UINT256_MAX // ratio

    # Q128.128 -> Q64.96, rounding up so the inverse is exact
    return (ratio >> 32) + (1 if ratio & 0xFFFFFFFF else 0)


def get_tick_at_sqrt_ratio(sqrt_ratio_x96: int) -> int:
    """Return the greatest tick whose sqrt ratio is <= sqrt_ratio_x96.

    A floating-point estimate is corrected against get_sqrt_ratio_at_tick,
    so the result is exact regardless of float error.

    Args:
        sqrt_ratio_x96: Q64.96 square-root price in [MIN_SQRT_RATIO, MAX_SQRT_RATIO)

    Raises:
        InvalidRange: If the sqrt ratio is outside the protocol bounds
    """
    if not MIN_SQRT_RATIO <= sqrt_ratio_x96 < MAX_SQRT_RATIO:
        raise InvalidRange(
            f"Sqrt ratio {sqrt_ratio_x96} outside [{MIN_SQRT_RATIO}, {MAX_SQRT_RATIO})"
        )

    estimate = math.floor((math.log(sqrt_ratio_x96) - 96 * math.log(2)) / _LOG_SQRT_10001)
    tick = max(MIN_TICK, min(MAX_TICK, estimate))

    while tick > MIN_TICK and get_sqrt_ratio_at_tick(tick) > sqrt_ratio_x96:
        tick -= 1
    while tick < MAX_TICK and get_sqrt_ratio_at_tick(tick + 1) <= sqrt_ratio_x96:
        tick += 1
    return tick


__all__ = [
    "MIN_TICK",
    "MAX_TICK",
    "MIN_SQRT_RATIO",
    "MAX_SQRT_RATIO",
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
]
