"""Planner specialised for position-manager liquidity actions."""

from __future__ import annotations

from uniswap_v4.constants import EMPTY_BYTES
from uniswap_v4.entities.currency import Currency
from uniswap_v4.entities.pool import PoolKey
from uniswap_v4.planner.actions import (
    BurnPositionParams,
    DecreaseLiquidityParams,
    IncreaseLiquidityParams,
    MintPositionParams,
    SettlePairParams,
    SweepParams,
    TakePairParams,
    UnwrapParams,
    WrapParams,
)
from uniswap_v4.planner.planner import V4Planner, currency_address


class V4PositionPlanner(V4Planner):
    """V4Planner with helpers for the position lifecycle.

    Actions on existing positions take the position's PoolKey so the
    planner can account for both currencies of the pool.
    """

    def add_mint(
        self,
        pool_key: PoolKey,
        tick_lower: int,
        tick_upper: int,
        liquidity: int,
        amount0_max: int,
        amount1_max: int,
        owner: str,
        hook_data: bytes = EMPTY_BYTES,
    ) -> V4PositionPlanner:
        self.add_action(
            MintPositionParams(
                pool_key,
                tick_lower,
                tick_upper,
                liquidity,
                amount0_max,
                amount1_max,
                owner,
                hook_data,
            )
        )
        return self

    def add_increase(
        self,
        pool_key: PoolKey,
        token_id: int,
        liquidity: int,
        amount0_max: int,
        amount1_max: int,
        hook_data: bytes = EMPTY_BYTES,
    ) -> V4PositionPlanner:
        self.add_action(
            IncreaseLiquidityParams(token_id, liquidity, amount0_max, amount1_max, hook_data),
            (pool_key.currency0, pool_key.currency1),
        )
        return self

    def add_decrease(
        self,
        pool_key: PoolKey,
        token_id: int,
        liquidity: int,
        amount0_min: int,
        amount1_min: int,
        hook_data: bytes = EMPTY_BYTES,
    ) -> V4PositionPlanner:
        """Decrease liquidity; a zero decrease collects accrued fees."""
        self.add_action(
            DecreaseLiquidityParams(token_id, liquidity, amount0_min, amount1_min, hook_data),
            (pool_key.currency0, pool_key.currency1),
        )
        return self

    def add_burn(
        self,
        pool_key: PoolKey,
        token_id: int,
        amount0_min: int,
        amount1_min: int,
        hook_data: bytes = EMPTY_BYTES,
    ) -> V4PositionPlanner:
        self.add_action(
            BurnPositionParams(token_id, amount0_min, amount1_min, hook_data),
            (pool_key.currency0, pool_key.currency1),
        )
        return self

    def add_settle_pair(
        self, currency0: Currency | str, currency1: Currency | str
    ) -> V4PositionPlanner:
        self.add_action(
            SettlePairParams(currency_address(currency0), currency_address(currency1))
        )
        return self

    def add_take_pair(
        self, currency0: Currency | str, currency1: Currency | str, recipient: str
    ) -> V4PositionPlanner:
        self.add_action(
            TakePairParams(currency_address(currency0), currency_address(currency1), recipient)
        )
        return self

    def add_sweep(self, currency: Currency | str, recipient: str) -> V4PositionPlanner:
        self.add_action(SweepParams(currency_address(currency), recipient))
        return self

    def add_wrap(self, amount: int) -> V4PositionPlanner:
        self.add_action(WrapParams(amount))
        return self

    def add_unwrap(self, amount: int) -> V4PositionPlanner:
        self.add_action(UnwrapParams(amount))
        return self


__all__ = ["V4PositionPlanner"]
