"""Amount deltas and next-price computations over a Q64.96 sqrt price.

Mirrors SqrtPriceMath. Every function states its rounding direction: amounts
the caller pays are rounded up, amounts the caller receives are rounded down.
"""

from __future__ import annotations

from uniswap_v4.errors import InsufficientLiquidity, InvalidRange
from uniswap_v4.math.fixed_point import (
    Q96,
    RESOLUTION,
    div_rounding_up,
    mul_div,
    mul_div_rounding_up,
)
from uniswap_v4.types import UINT160_MAX, UINT256_MAX


def _get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next sqrt price after adding/removing amount0, rounded up."""
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << RESOLUTION
    product = amount * sqrt_price_x96

    if add:
        if product <= UINT256_MAX:
            denominator = numerator1 + product
            if denominator <= UINT256_MAX:
                return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)
        # Overflow path: liquidity / (liquidity / sqrtP + amount)
        return div_rounding_up(numerator1, numerator1 // sqrt_price_x96 + amount)

    if product > UINT256_MAX or numerator1 <= product:
        raise InsufficientLiquidity("Output amount0 exceeds available liquidity")
    result = mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 - product)
    if result > UINT160_MAX:
        raise InvalidRange(f"Sqrt price overflows uint160: {result}")
    return result


def _get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next sqrt price after adding/removing amount1, rounded down."""
    if add:
        quotient = mul_div(amount, Q96, liquidity)
        result = sqrt_price_x96 + quotient
        if result > UINT160_MAX:
            raise InvalidRange(f"Sqrt price overflows uint160: {result}")
        return result

    quotient = mul_div_rounding_up(amount, Q96, liquidity)
    if sqrt_price_x96 <= quotient:
        raise InsufficientLiquidity("Output amount1 exceeds available liquidity")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int, liquidity: int, amount_in: int, zero_for_one: bool
) -> int:
    """Next sqrt price given an input amount of currency0 or currency1.

    Rounds so the price never moves past what amount_in pays for.
    """
    if sqrt_price_x96 <= 0:
        raise InvalidRange("Sqrt price must be positive")
    if liquidity <= 0:
        raise InsufficientLiquidity("Liquidity must be positive")
    if zero_for_one:
        return _get_next_sqrt_price_from_amount0_rounding_up(
            sqrt_price_x96, liquidity, amount_in, True
        )
    return _get_next_sqrt_price_from_amount1_rounding_down(
        sqrt_price_x96, liquidity, amount_in, True
    )


def get_next_sqrt_price_from_output(
    sqrt_price_x96: int, liquidity: int, amount_out: int, zero_for_one: bool
) -> int:
    """Next sqrt price given an output amount of currency0 or currency1.

    Rounds so the price always moves at least far enough to pay amount_out.
    """
    if sqrt_price_x96 <= 0:
        raise InvalidRange("Sqrt price must be positive")
    if liquidity <= 0:
        raise InsufficientLiquidity("Liquidity must be positive")
    if zero_for_one:
        return _get_next_sqrt_price_from_amount1_rounding_down(
            sqrt_price_x96, liquidity, amount_out, False
        )
    return _get_next_sqrt_price_from_amount0_rounding_up(
        sqrt_price_x96, liquidity, amount_out, False
    )


def get_amount0_delta(
    sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int, round_up: bool
) -> int:
    """Amount of currency0 between two sqrt prices: L * (sqrtB - sqrtA) / (sqrtA * sqrtB).

    Args:
        sqrt_ratio_a_x96: One sqrt price bound (order does not matter)
        sqrt_ratio_b_x96: Other sqrt price bound
        liquidity: Unsigned liquidity
        round_up: Round the result up (amount owed) or down (amount paid out)
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 <= 0:
        raise InvalidRange("Sqrt price must be positive")

    numerator1 = liquidity << RESOLUTION
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96

    if round_up:
        return div_rounding_up(
            mul_div_rounding_up(numerator1, numerator2, sqrt_ratio_b_x96), sqrt_ratio_a_x96
        )
    return mul_div(numerator1, numerator2, sqrt_ratio_b_x96) // sqrt_ratio_a_x96


def get_amount1_delta(
    sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int, round_up: bool
) -> int:
    """Amount of currency1 between two sqrt prices: L * (sqrtB - sqrtA)."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)
    return mul_div(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)


def get_amount0_delta_signed(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """Signed currency0 delta: positive liquidity is owed (rounded up), negative is paid (down)."""
    if liquidity < 0:
        return -get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, -liquidity, False)
    return get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, True)


def get_amount1_delta_signed(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """Signed currency1 delta: positive liquidity is owed (rounded up), negative is paid (down)."""
    if liquidity < 0:
        return -get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, -liquidity, False)
    return get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, True)


__all__ = [
    "get_next_sqrt_price_from_input",
    "get_next_sqrt_price_from_output",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_amount0_delta_signed",
    "get_amount1_delta_signed",
]
