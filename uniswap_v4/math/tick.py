"""Tick spacing helpers."""

from __future__ import annotations

from uniswap_v4.constants import MAX_TICK_SPACING, MIN_TICK_SPACING
from uniswap_v4.errors import InvalidRange
from uniswap_v4.math.tick_math import MAX_TICK, MIN_TICK


def nearest_usable_tick(tick: int, tick_spacing: int) -> int:
    """Closest tick to ``tick`` that is a multiple of ``tick_spacing`` and within bounds.

    Ties round towards positive infinity.

    Raises:
        InvalidRange: If tick or tick_spacing is out of bounds
    """
    if not MIN_TICK_SPACING <= tick_spacing <= MAX_TICK_SPACING:
        raise InvalidRange(f"Tick spacing {tick_spacing} outside [1, {MAX_TICK_SPACING}]")
    if not MIN_TICK <= tick <= MAX_TICK:
        raise InvalidRange(f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")

    quotient, remainder = divmod(tick, tick_spacing)
    rounded = (quotient + (1 if 2 * remainder >= tick_spacing else 0)) * tick_spacing
    if rounded < MIN_TICK:
        return rounded + tick_spacing
    if rounded > MAX_TICK:
        return rounded - tick_spacing
    return rounded


def validate_tick_range(tick_lower: int, tick_upper: int, tick_spacing: int) -> None:
    """Check a position range against bounds, ordering and spacing.

    Raises:
        InvalidRange: If the range is not usable for a position
    """
    if tick_lower >= tick_upper:
        raise InvalidRange(f"tick_lower {tick_lower} must be below tick_upper {tick_upper}")
    if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
        raise InvalidRange(f"Ticks [{tick_lower}, {tick_upper}] outside [{MIN_TICK}, {MAX_TICK}]")
    if tick_lower % tick_spacing or tick_upper % tick_spacing:
        raise InvalidRange(
            f"Ticks [{tick_lower}, {tick_upper}] not aligned to spacing {tick_spacing}"
        )


__all__ = ["nearest_usable_tick", "validate_tick_range"]
