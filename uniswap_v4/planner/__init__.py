"""Action planning and encoding for the V4 router and position manager."""

from uniswap_v4.planner.actions import (
    ACTION_PARAMS,
    ActionParams,
    Actions,
    BurnPositionParams,
    ClearOrTakeParams,
    CloseCurrencyParams,
    DecreaseLiquidityParams,
    IncreaseLiquidityParams,
    MintPositionParams,
    SettleAllParams,
    SettlePairParams,
    SettleParams,
    SwapExactInParams,
    SwapExactInSingleParams,
    SwapExactOutParams,
    SwapExactOutSingleParams,
    SweepParams,
    TakeAllParams,
    TakePairParams,
    TakeParams,
    TakePortionParams,
    UnwrapParams,
    WrapParams,
)
from uniswap_v4.planner.actions_parser import parse_action, parse_calldata
from uniswap_v4.planner.planner import CurrencyDelta, PlannerState, V4Planner, currency_address
from uniswap_v4.planner.position_planner import V4PositionPlanner

__all__ = [
    # Actions
    "Actions",
    "ActionParams",
    "ACTION_PARAMS",
    "IncreaseLiquidityParams",
    "DecreaseLiquidityParams",
    "MintPositionParams",
    "BurnPositionParams",
    "SwapExactInSingleParams",
    "SwapExactInParams",
    "SwapExactOutSingleParams",
    "SwapExactOutParams",
    "SettleParams",
    "SettleAllParams",
    "SettlePairParams",
    "TakeParams",
    "TakeAllParams",
    "TakePortionParams",
    "TakePairParams",
    "CloseCurrencyParams",
    "ClearOrTakeParams",
    "SweepParams",
    "WrapParams",
    "UnwrapParams",
    # Parsing
    "parse_action",
    "parse_calldata",
    # Planners
    "CurrencyDelta",
    "PlannerState",
    "V4Planner",
    "V4PositionPlanner",
    "currency_address",
]
