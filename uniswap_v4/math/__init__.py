"""Protocol-exact integer math.

All functions operate on Python ints and reproduce the on-chain rounding
direction of TickMath, SqrtPriceMath, SwapMath, FullMath and
LiquidityAmounts.
"""

from .fixed_point import (
    Q96,
    Q128,
    Q192,
    RESOLUTION,
    UQ64x96,
    div_rounding_up,
    mul_div,
    mul_div_rounding_up,
)
from .liquidity_math import (
    add_delta,
    max_liquidity_for_amount0_imprecise,
    max_liquidity_for_amount0_precise,
    max_liquidity_for_amount1,
    max_liquidity_for_amounts,
)
from .sqrt_price_math import (
    get_amount0_delta,
    get_amount0_delta_signed,
    get_amount1_delta,
    get_amount1_delta_signed,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)
from .swap_math import compute_swap_step
from .tick import nearest_usable_tick, validate_tick_range
from .tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)

__all__ = [
    # Fixed point
    "Q96",
    "Q128",
    "Q192",
    "RESOLUTION",
    "UQ64x96",
    "mul_div",
    "mul_div_rounding_up",
    "div_rounding_up",
    # Tick math
    "MIN_TICK",
    "MAX_TICK",
    "MIN_SQRT_RATIO",
    "MAX_SQRT_RATIO",
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
    "nearest_usable_tick",
    "validate_tick_range",
    # Sqrt price math
    "get_amount0_delta",
    "get_amount1_delta",
    "get_amount0_delta_signed",
    "get_amount1_delta_signed",
    "get_next_sqrt_price_from_input",
    "get_next_sqrt_price_from_output",
    # Swap math
    "compute_swap_step",
    # Liquidity
    "add_delta",
    "max_liquidity_for_amount0_imprecise",
    "max_liquidity_for_amount0_precise",
    "max_liquidity_for_amount1",
    "max_liquidity_for_amounts",
]
