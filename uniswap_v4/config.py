"""Tunable defaults for trade search and state reads."""

from dataclasses import dataclass

from uniswap_v4.constants import POOL_MANAGER_ADDRESS


@dataclass(frozen=True)
class BestTradeOptions:
    """Limits for the recursive best-trade search.

    Attributes:
        max_num_results: Number of trades to keep (default: 3)
        max_hops: Maximum pools per route (default: 3)
    """

    max_num_results: int = 3
    max_hops: int = 3

    def __post_init__(self) -> None:
        if self.max_num_results <= 0:
            raise ValueError(f"max_num_results must be positive, got {self.max_num_results}")
        if self.max_hops <= 0:
            raise ValueError(f"max_hops must be positive, got {self.max_hops}")


@dataclass(frozen=True)
class LensConfig:
    """Storage layout of the PoolManager read through extsload.

    Attributes:
        pool_manager: PoolManager address
        pools_slot: Storage slot of the ``pools`` mapping
        fee_growth_global0_offset: Offset of feeGrowthGlobal0X128 in Pool.State
        fee_growth_global1_offset: Offset of feeGrowthGlobal1X128 in Pool.State
        liquidity_offset: Offset of liquidity in Pool.State
        ticks_offset: Offset of the ``ticks`` mapping in Pool.State
        tick_bitmap_offset: Offset of the ``tickBitmap`` mapping in Pool.State
        positions_offset: Offset of the ``positions`` mapping in Pool.State
    """

    pool_manager: str = POOL_MANAGER_ADDRESS
    pools_slot: int = 6
    fee_growth_global0_offset: int = 1
    fee_growth_global1_offset: int = 2
    liquidity_offset: int = 3
    ticks_offset: int = 4
    tick_bitmap_offset: int = 5
    positions_offset: int = 6


# Default configuration instances
DEFAULT_BEST_TRADE_OPTIONS = BestTradeOptions()
DEFAULT_LENS_CONFIG = LensConfig()

__all__ = [
    "BestTradeOptions",
    "LensConfig",
    "DEFAULT_BEST_TRADE_OPTIONS",
    "DEFAULT_LENS_CONFIG",
]
