"""Uniswap V4 SDK - Python Implementation."""

from uniswap_v4.entities import (
    CurrencyAmount,
    NativeCurrency,
    Pool,
    PoolKey,
    Position,
    Price,
    Route,
    Token,
    Trade,
    TradeType,
    ether,
)
from uniswap_v4.errors import V4Error
from uniswap_v4.planner import Actions, V4Planner, V4PositionPlanner

__version__ = "0.1.0"
__all__ = [
    "Actions",
    "CurrencyAmount",
    "NativeCurrency",
    "Pool",
    "PoolKey",
    "Position",
    "Price",
    "Route",
    "Token",
    "Trade",
    "TradeType",
    "V4Error",
    "V4Planner",
    "V4PositionPlanner",
    "ether",
    "__version__",
]
