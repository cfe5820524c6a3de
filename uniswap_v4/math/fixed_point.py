"""Binary fixed-point helpers matching the protocol's FullMath and FixedPoint96.

Solidity keeps intermediate products in 512 bits and truncates the result
to 256 bits; Python ints are unbounded, so the helpers here compute the
exact product and then check that the result still fits a uint256.
"""

from __future__ import annotations

from fractions import Fraction
from typing import ClassVar

from uniswap_v4.types import UINT256_MAX

__all__ = [
    # Classes
    "UQ64x96",
    # Functions
    "mul_div",
    "mul_div_rounding_up",
    "div_rounding_up",
    # Constants
    "RESOLUTION",
    "Q96",
    "Q128",
    "Q192",
]

# =============================================================================
# Constants
# =============================================================================

RESOLUTION = 96
Q96 = 1 << 96
Q128 = 1 << 128
Q192 = 1 << 192


# =============================================================================
# FullMath
# =============================================================================


def mul_div(a: int, b: int, denominator: int) -> int:
    """Compute floor(a * b / denominator) with a uint256 result.

    Raises:
        ZeroDivisionError: If denominator is zero
        OverflowError: If the result does not fit a uint256
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div by zero")
    result = (a * b) // denominator
    if result > UINT256_MAX:
        raise OverflowError(f"mul_div result overflows uint256: {a} * {b} / {denominator}")
    return result


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """Compute ceil(a * b / denominator) with a uint256 result.

    Raises:
        ZeroDivisionError: If denominator is zero
        OverflowError: If the result does not fit a uint256
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div_rounding_up by zero")
    result = -((-a * b) // denominator)
    if result > UINT256_MAX:
        raise OverflowError(
            f"mul_div_rounding_up result overflows uint256: {a} * {b} / {denominator}"
        )
    return result


def div_rounding_up(a: int, b: int) -> int:
    """Compute ceil(a / b) for non-negative a (UnsafeMath.divRoundingUp)."""
    if b == 0:
        raise ZeroDivisionError("div_rounding_up by zero")
    return -(-a // b)


# =============================================================================
# Q64.96 wrapper
# =============================================================================


class UQ64x96:
    """Unsigned Q64.96 fixed-point number stored as int.

    Square-root prices are stored this way on-chain: the raw value is the
    real number scaled by 2^96. Arithmetic helpers make the rounding
    direction explicit instead of relying on the ``//`` operator.
    Example: 1.0 is stored as 2**96
    """

    ONE: ClassVar[int] = Q96

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(self, value: int) -> None:
        """Create from raw scaled value."""
        if value < 0:
            raise ValueError(f"UQ64x96 requires non-negative input, got {value}")
        self.value = value

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int) -> UQ64x96:
        """Create from numerator / denominator, rounded down."""
        return cls(mul_div(numerator, cls.ONE, denominator))

    @classmethod
    def from_int(cls, i: int) -> UQ64x96:
        """Create from integer (will be scaled by 2^96)."""
        return cls(i * cls.ONE)

    def to_fraction(self) -> Fraction:
        """Exact rational value."""
        return Fraction(self.value, self.ONE)

    def squared(self) -> Fraction:
        """Square as an exact rational (price from a sqrt price)."""
        return Fraction(self.value * self.value, Q192)

    def mul_down(self, other: UQ64x96) -> UQ64x96:
        """Multiply with floor rounding: (a * b) // 2^96"""
        return UQ64x96(mul_div(self.value, other.value, self.ONE))

    def mul_up(self, other: UQ64x96) -> UQ64x96:
        """Multiply with ceiling rounding."""
        return UQ64x96(mul_div_rounding_up(self.value, other.value, self.ONE))

    def div_down(self, other: UQ64x96) -> UQ64x96:
        """Divide with floor rounding: (a * 2^96) // b"""
        if other.value == 0:
            raise ZeroDivisionError("UQ64x96 division by zero")
        return UQ64x96(mul_div(self.value, self.ONE, other.value))

    def div_up(self, other: UQ64x96) -> UQ64x96:
        """Divide with ceiling rounding."""
        if other.value == 0:
            raise ZeroDivisionError("UQ64x96 division by zero")
        return UQ64x96(mul_div_rounding_up(self.value, self.ONE, other.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UQ64x96):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, UQ64x96):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, UQ64x96):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, UQ64x96):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, UQ64x96):
            return NotImplemented
        return self.value >= other.value

    def __repr__(self) -> str:
        return f"UQ64x96({self.value})"

    def __int__(self) -> int:
        return self.value
