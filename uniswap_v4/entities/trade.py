"""Trades over one or more routes.

A trade is a set of swaps, each a route with its input and output amounts,
all exchanging the same input currency for the same output currency.
Amounts come from Pool swap simulation; no amount is ever estimated.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from functools import cached_property, cmp_to_key

import structlog

from uniswap_v4.config import DEFAULT_BEST_TRADE_OPTIONS, BestTradeOptions
from uniswap_v4.entities.currency import Currency, CurrencyAmount
from uniswap_v4.entities.pool import Pool
from uniswap_v4.entities.price import Price
from uniswap_v4.entities.route import Route
from uniswap_v4.errors import InsufficientLiquidity, InvalidCurrency, MalformedRoute
from uniswap_v4.types import validate_slippage

logger = structlog.get_logger()


class TradeType(Enum):
    """Which side of the trade is fixed."""

    EXACT_INPUT = "exact_input"
    EXACT_OUTPUT = "exact_output"


@dataclass(frozen=True)
class Swap:
    """One route of a trade with its simulated amounts."""

    route: Route
    input_amount: CurrencyAmount
    output_amount: CurrencyAmount


def _simulate(route: Route, amount: CurrencyAmount, trade_type: TradeType) -> Swap:
    """Walk the route's pools and return the swap with both amounts filled in."""
    if trade_type is TradeType.EXACT_INPUT:
        if amount.currency != route.input:
            raise InvalidCurrency(f"Amount in {amount.currency}, route input is {route.input}")
        current = CurrencyAmount(route.path_input, amount.quotient)
        for pool in route.pools:
            current, _ = pool.get_output_amount(current)
        return Swap(route, amount, CurrencyAmount(route.output, current.quotient))

    if amount.currency != route.output:
        raise InvalidCurrency(f"Amount in {amount.currency}, route output is {route.output}")
    current = CurrencyAmount(route.path_output, amount.quotient)
    for pool in reversed(route.pools):
        current, _ = pool.get_input_amount(current)
    return Swap(route, CurrencyAmount(route.input, current.quotient), amount)


def split_amount(amount: int, weights: Sequence[int | Fraction]) -> list[int]:
    """Distribute ``amount`` proportionally to ``weights``, rounding down.

    The rounding remainder goes to the last share so the shares always sum
    to ``amount``.

    Raises:
        ValueError: If there are no weights or any weight is not positive
    """
    if not weights:
        raise ValueError("At least one weight is required")
    if any(weight <= 0 for weight in weights):
        raise ValueError(f"Weights must be positive, got {list(weights)}")
    total = sum(Fraction(weight) for weight in weights)
    shares = [int(amount * Fraction(weight) / total) for weight in weights[:-1]]
    shares.append(amount - sum(shares))
    return shares


class Trade:
    """A validated set of swaps sharing input and output currencies.

    Construct trades with ``exact_in``, ``exact_out``, ``from_route``,
    ``from_routes`` or ``from_split``; the constructor itself does not
    simulate anything.
    """

    def __init__(self, swaps: Sequence[Swap], trade_type: TradeType) -> None:
        """Validate swaps.

        Raises:
            MalformedRoute: If there are no swaps, currencies differ between
                swaps, or a pool is used by more than one swap
        """
        if not swaps:
            raise MalformedRoute("Trade requires at least one swap")
        input_currency = swaps[0].input_amount.currency
        output_currency = swaps[0].output_amount.currency
        for swap in swaps:
            if swap.route.input.wrapped != input_currency.wrapped:
                raise MalformedRoute("Trade routes have different input currencies")
            if swap.route.output.wrapped != output_currency.wrapped:
                raise MalformedRoute("Trade routes have different output currencies")

        pool_ids = [pool.pool_id for swap in swaps for pool in swap.route.pools]
        if len(pool_ids) != len(set(pool_ids)):
            raise MalformedRoute("Trade routes share a pool")

        self.swaps: tuple[Swap, ...] = tuple(swaps)
        self.trade_type = trade_type

    def __repr__(self) -> str:
        return (
            f"Trade({self.trade_type.value}, {self.input_amount} -> {self.output_amount}, "
            f"routes={len(self.swaps)})"
        )

    # --- Construction ---

    @classmethod
    def from_route(cls, route: Route, amount: CurrencyAmount, trade_type: TradeType) -> Trade:
        """Simulate a single-route trade.

        Args:
            route: Route to trade along
            amount: Input amount (exact input) or output amount (exact output)
            trade_type: Which side ``amount`` fixes
        """
        return cls([_simulate(route, amount, trade_type)], trade_type)

    @classmethod
    def from_routes(
        cls, routes: Sequence[tuple[CurrencyAmount, Route]], trade_type: TradeType
    ) -> Trade:
        """Simulate a split trade with an explicit amount per route."""
        return cls([_simulate(route, amount, trade_type) for amount, route in routes], trade_type)

    @classmethod
    def from_split(
        cls,
        routes: Sequence[Route],
        weights: Sequence[int | Fraction],
        amount: CurrencyAmount,
        trade_type: TradeType,
    ) -> Trade:
        """Simulate a split trade, distributing ``amount`` by ``weights``.

        Raises:
            ValueError: If routes and weights differ in length
        """
        if len(routes) != len(weights):
            raise ValueError(f"{len(routes)} routes but {len(weights)} weights")
        shares = split_amount(amount.quotient, weights)
        return cls.from_routes(
            [
                (CurrencyAmount(amount.currency, share), route)
                for share, route in zip(shares, routes)
            ],
            trade_type,
        )

    @classmethod
    def exact_in(cls, route: Route, amount_in: CurrencyAmount) -> Trade:
        return cls.from_route(route, amount_in, TradeType.EXACT_INPUT)

    @classmethod
    def exact_out(cls, route: Route, amount_out: CurrencyAmount) -> Trade:
        return cls.from_route(route, amount_out, TradeType.EXACT_OUTPUT)

    @classmethod
    def create_unchecked_trade(
        cls,
        route: Route,
        input_amount: CurrencyAmount,
        output_amount: CurrencyAmount,
        trade_type: TradeType,
    ) -> Trade:
        """Build a trade from amounts computed elsewhere (e.g. an on-chain quoter)."""
        return cls([Swap(route, input_amount, output_amount)], trade_type)

    # --- Derived values ---

    @property
    def route(self) -> Route:
        """The only route of a single-route trade.

        Raises:
            ValueError: If the trade has several routes
        """
        if len(self.swaps) != 1:
            raise ValueError("Trade has multiple routes")
        return self.swaps[0].route

    @cached_property
    def input_amount(self) -> CurrencyAmount:
        currency = self.swaps[0].input_amount.currency
        return CurrencyAmount(currency, sum(swap.input_amount.quotient for swap in self.swaps))

    @cached_property
    def output_amount(self) -> CurrencyAmount:
        currency = self.swaps[0].output_amount.currency
        return CurrencyAmount(currency, sum(swap.output_amount.quotient for swap in self.swaps))

    @cached_property
    def execution_price(self) -> Price:
        """Volume-weighted price: total output per total input."""
        return Price.from_amounts(self.input_amount, self.output_amount)

    @cached_property
    def price_impact(self) -> Fraction:
        """Relative shortfall of the output versus trading at every route's mid price."""
        spot_output = sum(
            (swap.route.mid_price.quote_exact(swap.input_amount) for swap in self.swaps),
            Fraction(0),
        )
        if spot_output == 0:
            return Fraction(0)
        return (spot_output - self.output_amount.quotient) / spot_output

    # --- Slippage ---

    def minimum_amount_out(
        self, slippage_tolerance: Fraction, amount_out: CurrencyAmount | None = None
    ) -> CurrencyAmount:
        """Least output acceptable at the given tolerance.

        Exact-output trades return the output unchanged. Exact-input trades
        return floor(output * (1 - tolerance)).
        """
        tolerance = validate_slippage(slippage_tolerance)
        if amount_out is None:
            amount_out = self.output_amount
        if self.trade_type is TradeType.EXACT_OUTPUT:
            return amount_out
        minimum = math.floor(amount_out.quotient * (1 - tolerance))
        return CurrencyAmount(amount_out.currency, minimum)

    def maximum_amount_in(
        self, slippage_tolerance: Fraction, amount_in: CurrencyAmount | None = None
    ) -> CurrencyAmount:
        """Most input payable at the given tolerance.

        Exact-input trades return the input unchanged. Exact-output trades
        return ceil(input * (1 + tolerance)).
        """
        tolerance = validate_slippage(slippage_tolerance)
        if amount_in is None:
            amount_in = self.input_amount
        if self.trade_type is TradeType.EXACT_INPUT:
            return amount_in
        maximum = math.ceil(amount_in.quotient * (1 + tolerance))
        return CurrencyAmount(amount_in.currency, maximum)

    def worst_execution_price(self, slippage_tolerance: Fraction) -> Price:
        """Execution price if slippage consumes the whole tolerance."""
        return Price.from_amounts(
            self.maximum_amount_in(slippage_tolerance),
            self.minimum_amount_out(slippage_tolerance),
        )

    # --- Search ---

    @classmethod
    def best_trade_exact_in(
        cls,
        pools: Sequence[Pool],
        currency_amount_in: CurrencyAmount,
        currency_out: Currency,
        options: BestTradeOptions = DEFAULT_BEST_TRADE_OPTIONS,
    ) -> list[Trade]:
        """Best exact-input trades over every route of at most ``max_hops`` pools.

        Pools that cannot absorb the amount are skipped. Results are ordered
        best first and limited to ``max_num_results``.
        """
        best: list[Trade] = []
        cls._search_exact_in(
            list(pools),
            currency_amount_in,
            currency_out,
            options.max_hops,
            [],
            currency_amount_in,
            best,
        )
        best.sort(key=cmp_to_key(trade_comparator))
        logger.debug(
            "best_trade_exact_in",
            pools=len(pools),
            results=len(best[: options.max_num_results]),
        )
        return best[: options.max_num_results]

    @classmethod
    def _search_exact_in(
        cls,
        pools: list[Pool],
        currency_amount_in: CurrencyAmount,
        currency_out: Currency,
        max_hops: int,
        current_pools: list[Pool],
        amount_in: CurrencyAmount,
        best: list[Trade],
    ) -> None:
        for i, pool in enumerate(pools):
            if not pool.involves_currency(amount_in.currency):
                continue
            try:
                amount_out, _ = pool.get_output_amount(amount_in)
            except InsufficientLiquidity:
                continue

            if amount_out.currency == currency_out:
                route = Route([*current_pools, pool], currency_amount_in.currency, currency_out)
                best.append(cls.from_route(route, currency_amount_in, TradeType.EXACT_INPUT))
            elif max_hops > 1 and len(pools) > 1:
                cls._search_exact_in(
                    pools[:i] + pools[i + 1 :],
                    currency_amount_in,
                    currency_out,
                    max_hops - 1,
                    [*current_pools, pool],
                    amount_out,
                    best,
                )

    @classmethod
    def best_trade_exact_out(
        cls,
        pools: Sequence[Pool],
        currency_in: Currency,
        currency_amount_out: CurrencyAmount,
        options: BestTradeOptions = DEFAULT_BEST_TRADE_OPTIONS,
    ) -> list[Trade]:
        """Best exact-output trades over every route of at most ``max_hops`` pools."""
        best: list[Trade] = []
        cls._search_exact_out(
            list(pools),
            currency_in,
            currency_amount_out,
            options.max_hops,
            [],
            currency_amount_out,
            best,
        )
        best.sort(key=cmp_to_key(trade_comparator))
        logger.debug(
            "best_trade_exact_out",
            pools=len(pools),
            results=len(best[: options.max_num_results]),
        )
        return best[: options.max_num_results]

    @classmethod
    def _search_exact_out(
        cls,
        pools: list[Pool],
        currency_in: Currency,
        currency_amount_out: CurrencyAmount,
        max_hops: int,
        current_pools: list[Pool],
        amount_out: CurrencyAmount,
        best: list[Trade],
    ) -> None:
        for i, pool in enumerate(pools):
            if not pool.involves_currency(amount_out.currency):
                continue
            try:
                amount_in, _ = pool.get_input_amount(amount_out)
            except InsufficientLiquidity:
                continue

            if amount_in.currency == currency_in:
                route = Route([pool, *current_pools], currency_in, currency_amount_out.currency)
                best.append(cls.from_route(route, currency_amount_out, TradeType.EXACT_OUTPUT))
            elif max_hops > 1 and len(pools) > 1:
                cls._search_exact_out(
                    pools[:i] + pools[i + 1 :],
                    currency_in,
                    currency_amount_out,
                    max_hops - 1,
                    [pool, *current_pools],
                    amount_in,
                    best,
                )


def trade_comparator(a: Trade, b: Trade) -> int:
    """Order trades best first: more output, then less input, then fewer hops.

    Raises:
        InvalidCurrency: If the trades exchange different currencies
    """
    if a.input_amount.currency != b.input_amount.currency:
        raise InvalidCurrency("Cannot compare trades with different input currencies")
    if a.output_amount.currency != b.output_amount.currency:
        raise InvalidCurrency("Cannot compare trades with different output currencies")

    if a.output_amount.quotient != b.output_amount.quotient:
        return 1 if a.output_amount.quotient < b.output_amount.quotient else -1
    if a.input_amount.quotient != b.input_amount.quotient:
        return -1 if a.input_amount.quotient < b.input_amount.quotient else 1
    a_hops = sum(len(swap.route.currency_path) for swap in a.swaps)
    b_hops = sum(len(swap.route.currency_path) for swap in b.swaps)
    return a_hops - b_hops


__all__ = [
    "TradeType",
    "Swap",
    "Trade",
    "trade_comparator",
    "split_amount",
]
