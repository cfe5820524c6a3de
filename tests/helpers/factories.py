"""Factory functions for creating test objects.

Usage:
    from tests.helpers import make_pool
    # or
    from tests.helpers.factories import make_pool, make_position

    pool = make_pool(USDC_TOKEN, WETH_TOKEN)
"""

from uniswap_v4.constants import FeeAmount
from uniswap_v4.entities.currency import Currency
from uniswap_v4.entities.pool import Pool
from uniswap_v4.entities.position import Position
from uniswap_v4.entities.tick_data import Tick
from uniswap_v4.math.fixed_point import Q96
from uniswap_v4.math.tick import nearest_usable_tick
from uniswap_v4.math.tick_math import MAX_TICK, MIN_TICK, get_sqrt_ratio_at_tick
from uniswap_v4.types import ADDRESS_ZERO
from tests.helpers.constants import DEFAULT_LIQUIDITY, USDC_TOKEN, WETH_TOKEN


def full_range_ticks(tick_spacing: int, liquidity: int) -> list[Tick]:
    """Two ticks at the widest usable range holding ``liquidity``."""
    return [
        Tick(nearest_usable_tick(MIN_TICK, tick_spacing), liquidity, liquidity),
        Tick(nearest_usable_tick(MAX_TICK, tick_spacing), liquidity, -liquidity),
    ]


def make_pool(
    currency_a: Currency = USDC_TOKEN,
    currency_b: Currency = WETH_TOKEN,
    fee: int = FeeAmount.MEDIUM,
    tick_spacing: int = 60,
    liquidity: int = DEFAULT_LIQUIDITY,
    tick: int = 0,
    hooks: str = ADDRESS_ZERO,
    with_ticks: bool = True,
    **state: int | None,
) -> Pool:
    """Create a pool at ``tick`` with full-range liquidity.

    Args:
        currency_a: One pool currency (default: USDC)
        currency_b: The other pool currency (default: WETH)
        fee: LP fee in pips (default: 3000)
        tick_spacing: Tick spacing (default: 60)
        liquidity: In-range liquidity (default: 1e18)
        tick: Current tick; the price is set exactly at the tick (default: 0)
        hooks: Hook address (default: none)
        with_ticks: Attach a full-range tick list (default: True)
        **state: Extra pool state (fee growth, lp_fee)

    Returns:
        Pool instance ready for testing
    """
    sqrt_price = Q96 if tick == 0 else get_sqrt_ratio_at_tick(tick)
    ticks = full_range_ticks(tick_spacing, liquidity) if with_ticks else None
    return Pool.create(
        currency_a,
        currency_b,
        fee,
        tick_spacing,
        hooks,
        sqrt_price,
        liquidity,
        tick,
        ticks=ticks,
        **state,
    )


def make_position(
    pool: Pool | None = None,
    tick_lower: int = -600,
    tick_upper: int = 600,
    liquidity: int = 1_000_000,
) -> Position:
    """Create a position; defaults to a symmetric range on the USDC/WETH pool."""
    return Position(pool or make_pool(), tick_lower, tick_upper, liquidity)


__all__ = ["full_range_ticks", "make_pool", "make_position"]
