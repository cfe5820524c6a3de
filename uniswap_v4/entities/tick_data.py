"""Tick data sources consumed by the pool swap simulation.

The pool never fetches ticks itself. It asks a TickDataProvider for the
next initialized tick within one bitmap word and for the liquidity stored
at a tick. Providers bound to live state (see ``extensions.lens``) satisfy
the same protocol.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from uniswap_v4.errors import DataSourceFailure, InvalidRange
from uniswap_v4.math.tick_math import MAX_TICK, MIN_TICK
from uniswap_v4.types import validate_int, validate_uint


@dataclass(frozen=True)
class Tick:
    """State stored at an initialized tick.

    Attributes:
        index: Tick index
        liquidity_gross: Total liquidity referencing this tick
        liquidity_net: Liquidity added when crossing left to right (signed)
        fee_growth_outside0_x128: Currency0 fee growth on the other side of the tick
        fee_growth_outside1_x128: Currency1 fee growth on the other side of the tick
    """

    index: int
    liquidity_gross: int
    liquidity_net: int
    fee_growth_outside0_x128: int = 0
    fee_growth_outside1_x128: int = 0

    def __post_init__(self) -> None:
        if not MIN_TICK <= self.index <= MAX_TICK:
            raise InvalidRange(f"Tick {self.index} outside [{MIN_TICK}, {MAX_TICK}]")
        validate_uint(self.liquidity_gross, 128, "liquidity_gross")
        validate_int(self.liquidity_net, 128, "liquidity_net")


class TickDataProvider(Protocol):
    """Source of initialized-tick data for one pool."""

    def get_tick(self, index: int) -> Tick:
        """Return the tick at ``index``.

        Raises:
            DataSourceFailure: If the tick cannot be read
        """
        ...

    def next_initialized_tick_within_one_word(
        self, tick: int, lte: bool, tick_spacing: int
    ) -> tuple[int, bool]:
        """Return the next initialized tick in the word containing ``tick``.

        Args:
            tick: Current tick
            lte: Search at or below ``tick`` (True) or strictly above it (False)
            tick_spacing: Pool tick spacing

        Returns:
            Tuple of (tick_next, initialized); when nothing is initialized in
            the word, tick_next is the word boundary and initialized is False
        """
        ...


class NoTickDataProvider:
    """Provider for pools constructed without tick data.

    Any attempt to cross ticks fails, so only quantities that do not need
    tick data (prices, position amounts) are available on such pools.
    """

    ERROR_MESSAGE = "No tick data provider was given"

    def get_tick(self, index: int) -> Tick:
        raise DataSourceFailure(self.ERROR_MESSAGE)

    def next_initialized_tick_within_one_word(
        self, tick: int, lte: bool, tick_spacing: int
    ) -> tuple[int, bool]:
        raise DataSourceFailure(self.ERROR_MESSAGE)


class TickListDataProvider:
    """In-memory provider over a sorted list of initialized ticks.

    The list is validated on construction: ticks must be sorted, aligned to
    the pool's tick spacing, and their net liquidity must sum to zero.
    """

    def __init__(self, ticks: Iterable[Tick], tick_spacing: int) -> None:
        """Initialize provider.

        Args:
            ticks: Initialized ticks
            tick_spacing: Pool tick spacing

        Raises:
            InvalidRange: If the ticks are unsorted, unaligned or unbalanced
        """
        self.ticks = sorted(ticks, key=lambda t: t.index)
        self.tick_spacing = tick_spacing
        self._indexes = [t.index for t in self.ticks]
        self._validate()

    def _validate(self) -> None:
        if self.tick_spacing <= 0:
            raise InvalidRange(f"Tick spacing must be positive, got {self.tick_spacing}")
        if len(set(self._indexes)) != len(self._indexes):
            raise InvalidRange("Duplicate ticks in tick list")
        for tick in self.ticks:
            if tick.index % self.tick_spacing:
                raise InvalidRange(f"Tick {tick.index} not aligned to spacing {self.tick_spacing}")
        if sum(t.liquidity_net for t in self.ticks) != 0:
            raise InvalidRange("Tick list net liquidity does not sum to zero")

    def get_tick(self, index: int) -> Tick:
        position = bisect_right(self._indexes, index) - 1
        if position < 0 or self._indexes[position] != index:
            raise DataSourceFailure(f"Tick {index} is not initialized")
        return self.ticks[position]

    def _is_below_smallest(self, tick: int) -> bool:
        return not self.ticks or tick < self._indexes[0]

    def _is_at_or_above_largest(self, tick: int) -> bool:
        return not self.ticks or tick >= self._indexes[-1]

    def _next_initialized_tick(self, tick: int, lte: bool) -> Tick:
        if lte:
            if self._is_at_or_above_largest(tick):
                return self.ticks[-1]
            # Largest initialized tick <= tick
            return self.ticks[bisect_right(self._indexes, tick) - 1]
        if self._is_below_smallest(tick):
            return self.ticks[0]
        # Smallest initialized tick > tick
        return self.ticks[bisect_right(self._indexes, tick)]

    def next_initialized_tick_within_one_word(
        self, tick: int, lte: bool, tick_spacing: int
    ) -> tuple[int, bool]:
        compressed = tick // tick_spacing

        if lte:
            word_pos = compressed >> 8
            minimum = (word_pos << 8) * tick_spacing
            if self._is_below_smallest(tick):
                return minimum, False
            index = self._next_initialized_tick(tick, lte).index
            next_tick = max(minimum, index)
            return next_tick, next_tick == index

        word_pos = (compressed + 1) >> 8
        maximum = (((word_pos + 1) << 8) - 1) * tick_spacing
        if self._is_at_or_above_largest(tick):
            return maximum, False
        index = self._next_initialized_tick(tick, lte).index
        next_tick = min(maximum, index)
        return next_tick, next_tick == index


__all__ = [
    "Tick",
    "TickDataProvider",
    "NoTickDataProvider",
    "TickListDataProvider",
]
