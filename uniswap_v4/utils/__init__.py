"""Hook permission flags, price/tick conversion and route path encoding."""

from uniswap_v4.utils.hook import HookOption, HookPermissions, has_permission, permissions
from uniswap_v4.utils.path import PathKey, encode_route_to_path
from uniswap_v4.utils.price_tick import (
    encode_sqrt_ratio_x96,
    price_to_closest_tick,
    sqrt_price_x96_to_price,
    tick_to_price,
)

__all__ = [
    "HookOption",
    "HookPermissions",
    "has_permission",
    "permissions",
    "PathKey",
    "encode_route_to_path",
    "encode_sqrt_ratio_x96",
    "price_to_closest_tick",
    "sqrt_price_x96_to_price",
    "tick_to_price",
]
