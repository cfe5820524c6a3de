"""Currencies, pools, positions, routes and trades."""

from uniswap_v4.entities.currency import (
    Currency,
    CurrencyAmount,
    NativeCurrency,
    Token,
    ether,
    sort_currencies,
)
from uniswap_v4.entities.price import Price
from uniswap_v4.entities.tick_data import (
    NoTickDataProvider,
    Tick,
    TickDataProvider,
    TickListDataProvider,
)
from uniswap_v4.entities.pool import DYNAMIC_FEE, LPFee, Pool, PoolKey
from uniswap_v4.entities.position import PermitBatch, PermitDetails, Position
from uniswap_v4.entities.route import Route
from uniswap_v4.entities.trade import Swap, Trade, TradeType, trade_comparator

__all__ = [
    # Currencies
    "Currency",
    "CurrencyAmount",
    "NativeCurrency",
    "Token",
    "ether",
    "sort_currencies",
    "Price",
    # Pools
    "DYNAMIC_FEE",
    "LPFee",
    "Pool",
    "PoolKey",
    "Tick",
    "TickDataProvider",
    "NoTickDataProvider",
    "TickListDataProvider",
    # Positions
    "Position",
    "PermitBatch",
    "PermitDetails",
    # Routing
    "Route",
    "Swap",
    "Trade",
    "TradeType",
    "trade_comparator",
]
