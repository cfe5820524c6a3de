"""Hook permission flags encoded in the low bits of a hook address.

The PoolManager decides which callbacks to invoke by looking at the lowest
14 bits of the hook contract's address, so permissions can be decoded
offline from the address alone.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import IntEnum

from uniswap_v4.types import normalize_address

# Only the lowest 14 bits carry permissions
ALL_HOOK_MASK = (1 << 14) - 1


class HookOption(IntEnum):
    """Bit position of each hook permission."""

    AFTER_REMOVE_LIQUIDITY_RETURNS_DELTA = 0
    AFTER_ADD_LIQUIDITY_RETURNS_DELTA = 1
    AFTER_SWAP_RETURNS_DELTA = 2
    BEFORE_SWAP_RETURNS_DELTA = 3
    AFTER_DONATE = 4
    BEFORE_DONATE = 5
    AFTER_SWAP = 6
    BEFORE_SWAP = 7
    AFTER_REMOVE_LIQUIDITY = 8
    BEFORE_REMOVE_LIQUIDITY = 9
    AFTER_ADD_LIQUIDITY = 10
    BEFORE_ADD_LIQUIDITY = 11
    AFTER_INITIALIZE = 12
    BEFORE_INITIALIZE = 13


@dataclass(frozen=True)
class HookPermissions:
    """Decoded permission bits; field names match HookOption member names lowercased."""

    after_remove_liquidity_returns_delta: bool = False
    after_add_liquidity_returns_delta: bool = False
    after_swap_returns_delta: bool = False
    before_swap_returns_delta: bool = False
    after_donate: bool = False
    before_donate: bool = False
    after_swap: bool = False
    before_swap: bool = False
    after_remove_liquidity: bool = False
    before_remove_liquidity: bool = False
    after_add_liquidity: bool = False
    before_add_liquidity: bool = False
    after_initialize: bool = False
    before_initialize: bool = False

    def enabled(self) -> list[HookOption]:
        """Options whose bit is set, in bit order."""
        return [HookOption[f.name.upper()] for f in fields(self) if getattr(self, f.name)]

    def to_flags(self) -> int:
        """Re-encode as the 14-bit flag value."""
        return sum(1 << option for option in self.enabled())


def _flags(address: str) -> int:
    return int(normalize_address(address, validate=True), 16) & ALL_HOOK_MASK


def permissions(address: str) -> HookPermissions:
    """Decode every permission bit of a hook address.

    Raises:
        ValueError: If address is not a valid address
    """
    flags = _flags(address)
    return HookPermissions(
        **{option.name.lower(): bool(flags & (1 << option)) for option in HookOption}
    )


def has_permission(address: str, option: HookOption) -> bool:
    return bool(_flags(address) & (1 << option))


def has_initialize_permissions(address: str) -> bool:
    return has_permission(address, HookOption.BEFORE_INITIALIZE) or has_permission(
        address, HookOption.AFTER_INITIALIZE
    )


def has_liquidity_permissions(address: str) -> bool:
    # Return-delta flags only apply when the matching after hook is set
    return any(
        has_permission(address, option)
        for option in (
            HookOption.BEFORE_ADD_LIQUIDITY,
            HookOption.AFTER_ADD_LIQUIDITY,
            HookOption.BEFORE_REMOVE_LIQUIDITY,
            HookOption.AFTER_REMOVE_LIQUIDITY,
        )
    )


def has_swap_permissions(address: str) -> bool:
    """True if the hook runs around swaps and may change their outcome."""
    return has_permission(address, HookOption.BEFORE_SWAP) or has_permission(
        address, HookOption.AFTER_SWAP
    )


def has_donate_permissions(address: str) -> bool:
    return has_permission(address, HookOption.BEFORE_DONATE) or has_permission(
        address, HookOption.AFTER_DONATE
    )


__all__ = [
    "ALL_HOOK_MASK",
    "HookOption",
    "HookPermissions",
    "permissions",
    "has_permission",
    "has_initialize_permissions",
    "has_liquidity_permissions",
    "has_swap_permissions",
    "has_donate_permissions",
]
