"""Liquidity arithmetic and amount-to-liquidity conversions (LiquidityAmounts)."""

from __future__ import annotations

from uniswap_v4.errors import InsufficientLiquidity
from uniswap_v4.math.fixed_point import Q96
from uniswap_v4.types import UINT128_MAX


def add_delta(x: int, y: int) -> int:
    """Apply a signed liquidity delta to unsigned liquidity.

    Raises:
        InsufficientLiquidity: If the result is negative or overflows uint128
    """
    result = x + y
    if result < 0:
        raise InsufficientLiquidity(f"Liquidity underflow: {x} + ({y})")
    if result > UINT128_MAX:
        raise OverflowError(f"Liquidity overflows uint128: {x} + {y}")
    return result


def max_liquidity_for_amount0_imprecise(
    sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, amount0: int
) -> int:
    """Liquidity for amount0 with the intermediate rounding the periphery contract uses."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    intermediate = (sqrt_ratio_a_x96 * sqrt_ratio_b_x96) // Q96
    return (amount0 * intermediate) // (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)


def max_liquidity_for_amount0_precise(
    sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, amount0: int
) -> int:
    """Liquidity for amount0 computed without intermediate rounding."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    numerator = amount0 * sqrt_ratio_a_x96 * sqrt_ratio_b_x96
    denominator = Q96 * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)
    return numerator // denominator


def max_liquidity_for_amount1(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, amount1: int) -> int:
    """Liquidity for amount1: amount1 * 2^96 / (sqrtB - sqrtA)."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return (amount1 * Q96) // (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)


def max_liquidity_for_amounts(
    sqrt_ratio_current_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount0: int,
    amount1: int,
    use_full_precision: bool,
) -> int:
    """Maximum liquidity mintable with the given amounts at the current price.

    Below the range only amount0 matters, above it only amount1, and inside
    the range the smaller of the two liquidities wins.

    Args:
        sqrt_ratio_current_x96: Pool sqrt price
        sqrt_ratio_a_x96: Sqrt price at one range bound
        sqrt_ratio_b_x96: Sqrt price at the other range bound
        amount0: Available currency0
        amount1: Available currency1
        use_full_precision: Use the precise amount0 formula instead of the
            one that matches the periphery contract's rounding
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    for_amount0 = (
        max_liquidity_for_amount0_precise
        if use_full_precision
        else max_liquidity_for_amount0_imprecise
    )

    if sqrt_ratio_current_x96 <= sqrt_ratio_a_x96:
        return for_amount0(sqrt_ratio_a_x96, sqrt_ratio_b_x96, amount0)
    if sqrt_ratio_current_x96 < sqrt_ratio_b_x96:
        liquidity0 = for_amount0(sqrt_ratio_current_x96, sqrt_ratio_b_x96, amount0)
        liquidity1 = max_liquidity_for_amount1(sqrt_ratio_a_x96, sqrt_ratio_current_x96, amount1)
        return min(liquidity0, liquidity1)
    return max_liquidity_for_amount1(sqrt_ratio_a_x96, sqrt_ratio_b_x96, amount1)


__all__ = [
    "add_delta",
    "max_liquidity_for_amount0_imprecise",
    "max_liquidity_for_amount0_precise",
    "max_liquidity_for_amount1",
    "max_liquidity_for_amounts",
]
