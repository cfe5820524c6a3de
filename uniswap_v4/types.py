"""Shared value validation for addresses and fixed-width integers.

The helpers here are used at construction time by entities and action
parameters so that malformed inputs fail before any math or encoding runs.
The pydantic annotated types are used by the snapshot models.
"""

from __future__ import annotations

from decimal import Decimal
from fractions import Fraction
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

UINT256_MAX = 2**256 - 1
UINT160_MAX = 2**160 - 1
UINT128_MAX = 2**128 - 1

ADDRESS_ZERO = "0x0000000000000000000000000000000000000000"


def validate_uint(value: int, bits: int, name: str = "value") -> int:
    """Check that value fits an unsigned integer of the given width.

    Args:
        value: Integer to check
        bits: Bit width (e.g. 24, 128, 256)
        name: Field name used in the error message

    Returns:
        The value unchanged

    Raises:
        ValueError: If value is not an int or is out of range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} cannot be negative: {value}")
    if value >= 1 << bits:
        raise ValueError(f"{name} overflows uint{bits}: {value}")
    return value


def validate_int(value: int, bits: int, name: str = "value") -> int:
    """Check that value fits a signed two's complement integer of the given width."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {type(value).__name__}")
    bound = 1 << (bits - 1)
    if not -bound <= value < bound:
        raise ValueError(f"{name} overflows int{bits}: {value}")
    return value


def _parse_uint256(value: Any) -> int:
    """Accept ints, decimal strings and 0x-hex strings for uint256 fields."""
    if isinstance(value, str):
        try:
            value = int(value, 16) if value.startswith("0x") else int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal or hex integer string: '{value}'") from err
    return validate_uint(value, 256, "Uint256")


def _parse_int256(value: Any) -> int:
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as err:
            raise ValueError(f"Int256 must be a decimal integer string: '{value}'") from err
    return validate_int(value, 256, "Int256")


# Ethereum address (40 hex chars after 0x prefix), lowercased after validation
Address = Annotated[
    str,
    Field(pattern=r"^0x[a-fA-F0-9]{40}$"),
    BeforeValidator(lambda v: v.lower() if isinstance(v, str) else v),
]

# 256-bit unsigned integer, accepted as int or string, stored as int
Uint256 = Annotated[
    int,
    BeforeValidator(_parse_uint256),
    Field(description="256-bit unsigned integer"),
]

# 256-bit signed integer, accepted as int or decimal string
Int256 = Annotated[
    int,
    BeforeValidator(_parse_int256),
    Field(description="256-bit signed integer"),
]


def validate_slippage(tolerance: Fraction | Decimal | int | str) -> Fraction:
    """Convert a slippage tolerance to an exact fraction in [0, 1).

    Raises:
        ValueError: If the tolerance is negative or >= 1
    """
    value = Fraction(tolerance)
    if not 0 <= value < 1:
        raise ValueError(f"Slippage tolerance must be in [0, 1), got {tolerance}")
    return value


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase.

    Args:
        address: An Ethereum address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses.

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid Ethereum address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address.

    Args:
        address: String to validate

    Returns:
        True if valid Ethereum address format
    """
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def address_to_bytes(address: str) -> bytes:
    """Convert a 0x-prefixed address to its 20 raw bytes for ABI encoding."""
    return bytes.fromhex(normalize_address(address, validate=True)[2:])


__all__ = [
    "UINT256_MAX",
    "UINT160_MAX",
    "UINT128_MAX",
    "ADDRESS_ZERO",
    "Address",
    "Uint256",
    "Int256",
    "validate_uint",
    "validate_int",
    "validate_slippage",
    "normalize_address",
    "is_valid_address",
    "address_to_bytes",
]
