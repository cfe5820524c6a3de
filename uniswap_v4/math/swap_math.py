"""Single swap step within one initialized-tick interval (SwapMath)."""

from __future__ import annotations

from uniswap_v4.constants import MAX_LP_FEE
from uniswap_v4.math.fixed_point import mul_div, mul_div_rounding_up
from uniswap_v4.math.sqrt_price_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)


def compute_swap_step(
    sqrt_ratio_current_x96: int,
    sqrt_ratio_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int,
) -> tuple[int, int, int, int]:
    """Swap as far as possible towards the target price.

    The direction is implied by the prices: moving down is currency0 in,
    currency1 out. ``amount_remaining >= 0`` means exact input, negative
    means exact output of ``-amount_remaining``.

    Args:
        sqrt_ratio_current_x96: Current Q64.96 sqrt price
        sqrt_ratio_target_x96: Price the step may not cross
        liquidity: Usable liquidity within the step
        amount_remaining: Remaining input (>= 0) or negated remaining output
        fee_pips: LP fee in hundredths of a bip

    Returns:
        Tuple of (sqrt_ratio_next_x96, amount_in, amount_out, fee_amount);
        amount_in excludes the fee
    """
    zero_for_one = sqrt_ratio_current_x96 >= sqrt_ratio_target_x96
    exact_in = amount_remaining >= 0

    amount_in = 0
    amount_out = 0

    if exact_in:
        amount_remaining_less_fee = mul_div(amount_remaining, MAX_LP_FEE - fee_pips, MAX_LP_FEE)
        if zero_for_one:
            amount_in = get_amount0_delta(
                sqrt_ratio_target_x96, sqrt_ratio_current_x96, liquidity, True
            )
        else:
            amount_in = get_amount1_delta(
                sqrt_ratio_current_x96, sqrt_ratio_target_x96, liquidity, True
            )
        if amount_remaining_less_fee >= amount_in:
            sqrt_ratio_next_x96 = sqrt_ratio_target_x96
        else:
            sqrt_ratio_next_x96 = get_next_sqrt_price_from_input(
                sqrt_ratio_current_x96, liquidity, amount_remaining_less_fee, zero_for_one
            )
    else:
        if zero_for_one:
            amount_out = get_amount1_delta(
                sqrt_ratio_target_x96, sqrt_ratio_current_x96, liquidity, False
            )
        else:
            amount_out = get_amount0_delta(
                sqrt_ratio_current_x96, sqrt_ratio_target_x96, liquidity, False
            )
        if -amount_remaining >= amount_out:
            sqrt_ratio_next_x96 = sqrt_ratio_target_x96
        else:
            sqrt_ratio_next_x96 = get_next_sqrt_price_from_output(
                sqrt_ratio_current_x96, liquidity, -amount_remaining, zero_for_one
            )

    reached_target = sqrt_ratio_target_x96 == sqrt_ratio_next_x96

    if zero_for_one:
        if not (reached_target and exact_in):
            amount_in = get_amount0_delta(
                sqrt_ratio_next_x96, sqrt_ratio_current_x96, liquidity, True
            )
        if not (reached_target and not exact_in):
            amount_out = get_amount1_delta(
                sqrt_ratio_next_x96, sqrt_ratio_current_x96, liquidity, False
            )
    else:
        if not (reached_target and exact_in):
            amount_in = get_amount1_delta(
                sqrt_ratio_current_x96, sqrt_ratio_next_x96, liquidity, True
            )
        if not (reached_target and not exact_in):
            amount_out = get_amount0_delta(
                sqrt_ratio_current_x96, sqrt_ratio_next_x96, liquidity, False
            )

    # Exact output never pays out more than requested
    if not exact_in and amount_out > -amount_remaining:
        amount_out = -amount_remaining

    if exact_in and sqrt_ratio_next_x96 != sqrt_ratio_target_x96:
        # Price stopped inside the step: the whole remainder beyond amount_in is fee
        fee_amount = amount_remaining - amount_in
    elif fee_pips == MAX_LP_FEE:
        fee_amount = amount_in
    else:
        fee_amount = mul_div_rounding_up(amount_in, fee_pips, MAX_LP_FEE - fee_pips)

    return sqrt_ratio_next_x96, amount_in, amount_out, fee_amount


__all__ = ["compute_swap_step"]
