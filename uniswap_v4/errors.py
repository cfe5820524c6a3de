"""Error types raised by the SDK.

All errors derive from V4Error. Structural validation errors also derive
from ValueError so callers that validate user input with ``except
ValueError`` keep working.
"""

from __future__ import annotations

from collections.abc import Iterable


class V4Error(Exception):
    """Base class for all SDK errors."""

    pass


class InvalidRange(V4Error, ValueError):
    """Tick, sqrt price or price outside the protocol bounds."""

    pass


class MalformedKey(V4Error, ValueError):
    """Pool key violates ordering, fee or tick spacing rules."""

    pass


class MalformedRoute(V4Error, ValueError):
    """Route pools do not chain from input to output."""

    pass


class InvalidCurrency(V4Error, ValueError):
    """Currency is not part of the pool, route or amount it is used with."""

    pass


class InvalidAction(V4Error, ValueError):
    """Unknown action code or parameters that fail the action's schema."""

    pass


class InsufficientLiquidity(V4Error):
    """Swap cannot be filled with the available liquidity."""

    pass


class UnsupportedHook(V4Error):
    """Pool hook or dynamic fee prevents local swap simulation."""

    pass


class DataSourceFailure(V4Error):
    """Tick-data source or lens failed to return usable data."""

    pass


class PlannerFinalized(V4Error):
    """Planner was modified after its payload was emitted."""

    pass


class UnsettledCurrency(V4Error):
    """Planner finalized with currencies whose delta is still open.

    Attributes:
        currencies: Addresses of the unresolved currencies, in first-touched order
    """

    def __init__(self, currencies: Iterable[str]) -> None:
        self.currencies = list(currencies)
        super().__init__(f"Unsettled currency deltas: {', '.join(self.currencies)}")


__all__ = [
    "V4Error",
    "InvalidRange",
    "MalformedKey",
    "MalformedRoute",
    "InvalidCurrency",
    "InvalidAction",
    "InsufficientLiquidity",
    "UnsupportedHook",
    "DataSourceFailure",
    "PlannerFinalized",
    "UnsettledCurrency",
]
