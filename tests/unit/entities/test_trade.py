"""Tests for trades, slippage bounds and best-trade search."""

import math
from fractions import Fraction

import pytest

from uniswap_v4.config import BestTradeOptions
from uniswap_v4.constants import FeeAmount
from uniswap_v4.entities.currency import CurrencyAmount
from uniswap_v4.entities.route import Route
from uniswap_v4.entities.trade import Trade, TradeType, split_amount, trade_comparator
from uniswap_v4.errors import InvalidCurrency, MalformedRoute
from tests.helpers.constants import DAI_TOKEN, ETHER, USDC_TOKEN, WETH_TOKEN
from tests.helpers.factories import make_pool


@pytest.fixture
def cheap_usdc_weth_pool():
    """Second USDC/WETH pool with a 0.05% fee."""
    return make_pool(USDC_TOKEN, WETH_TOKEN, fee=FeeAmount.LOW, tick_spacing=10)


class TestSplitAmount:
    """Tests for proportional amount splitting."""

    def test_remainder_goes_last(self):
        """Rounding dust goes to the last share."""
        assert split_amount(10, [1, 1, 1]) == [3, 3, 4]

    def test_weights_as_fractions(self):
        """Fractional weights split proportionally."""
        assert split_amount(100, [Fraction(1, 4), Fraction(3, 4)]) == [25, 75]

    def test_sum_preserved(self):
        """Shares always add up to the amount."""
        shares = split_amount(10**18 + 7, [3, 5, 11])
        assert sum(shares) == 10**18 + 7

    def test_no_weights(self):
        """Splitting needs at least one weight."""
        with pytest.raises(ValueError):
            split_amount(10, [])

    def test_non_positive_weight(self):
        """Weights must be positive."""
        with pytest.raises(ValueError):
            split_amount(10, [1, 0])


class TestExactIn:
    """Tests for exact-input trades."""

    def test_single_hop(self, usdc_weth_route, usdc_weth_pool):
        """A one-pool exact-input trade outputs what the pool quotes."""
        amount_in = CurrencyAmount(USDC_TOKEN, 10**9)
        trade = Trade.exact_in(usdc_weth_route, amount_in)
        expected, _ = usdc_weth_pool.get_output_amount(amount_in)

        assert trade.trade_type is TradeType.EXACT_INPUT
        assert trade.input_amount == amount_in
        assert trade.output_amount == expected
        assert trade.route is usdc_weth_route

    def test_multi_hop(self, dai_usdc_weth_route, dai_usdc_pool, usdc_weth_pool):
        """Each hop consumes the previous hop's output."""
        amount_in = CurrencyAmount(DAI_TOKEN, 10**15)
        trade = Trade.exact_in(dai_usdc_weth_route, amount_in)

        usdc, _ = dai_usdc_pool.get_output_amount(amount_in)
        weth, _ = usdc_weth_pool.get_output_amount(usdc)
        assert trade.output_amount == weth

    def test_price_impact_positive(self, usdc_weth_route):
        """Price impact of a real swap lies in (0, 1)."""
        trade = Trade.exact_in(usdc_weth_route, CurrencyAmount(USDC_TOKEN, 10**15))
        assert trade.price_impact > 0
        assert trade.price_impact < 1

    def test_minimum_amount_out(self, usdc_weth_route, slippage):
        """minimum out = floor(out * (1 - tolerance))."""
        trade = Trade.exact_in(usdc_weth_route, CurrencyAmount(USDC_TOKEN, 10**9))
        minimum = trade.minimum_amount_out(slippage)
        assert minimum.quotient == math.floor(trade.output_amount.quotient * (1 - slippage))
        assert minimum.quotient <= trade.output_amount.quotient

    def test_maximum_amount_in_unchanged(self, usdc_weth_route, slippage):
        """Exact input trades spend exactly their input."""
        trade = Trade.exact_in(usdc_weth_route, CurrencyAmount(USDC_TOKEN, 10**9))
        assert trade.maximum_amount_in(slippage) == trade.input_amount

    def test_zero_slippage(self, usdc_weth_route):
        """Zero tolerance keeps the full output as the minimum."""
        trade = Trade.exact_in(usdc_weth_route, CurrencyAmount(USDC_TOKEN, 10**9))
        assert trade.minimum_amount_out(Fraction(0)) == trade.output_amount

    @pytest.mark.parametrize("tolerance", [Fraction(1), Fraction(-1, 100)])
    def test_invalid_slippage(self, usdc_weth_route, tolerance):
        """Tolerances outside [0, 1) are rejected."""
        trade = Trade.exact_in(usdc_weth_route, CurrencyAmount(USDC_TOKEN, 10**9))
        with pytest.raises(ValueError):
            trade.minimum_amount_out(tolerance)

    def test_amount_in_wrong_currency(self, usdc_weth_route):
        """The input amount must be in the route's input currency."""
        with pytest.raises(InvalidCurrency):
            Trade.exact_in(usdc_weth_route, CurrencyAmount(WETH_TOKEN, 10**9))

    def test_native_input(self, usdc_weth_pool):
        """Ether is quoted through the WETH pool."""
        route = Route([usdc_weth_pool], ETHER, USDC_TOKEN)
        trade = Trade.exact_in(route, CurrencyAmount(ETHER, 10**15))
        assert trade.input_amount.currency == ETHER
        assert trade.output_amount.currency == USDC_TOKEN
        assert trade.output_amount.quotient > 0

    def test_execution_price(self, usdc_weth_route):
        """The execution price is output over input."""
        trade = Trade.exact_in(usdc_weth_route, CurrencyAmount(USDC_TOKEN, 10**9))
        price = trade.execution_price
        assert price.raw == Fraction(trade.output_amount.quotient, 10**9)
        assert trade.worst_execution_price(Fraction(1, 100)).raw <= price.raw


class TestExactOut:
    """Tests for exact-output trades."""

    def test_single_hop(self, usdc_weth_route, usdc_weth_pool):
        """A one-pool exact-output trade costs what the pool quotes."""
        amount_out = CurrencyAmount(WETH_TOKEN, 10**9)
        trade = Trade.exact_out(usdc_weth_route, amount_out)
        expected, _ = usdc_weth_pool.get_input_amount(amount_out)

        assert trade.trade_type is TradeType.EXACT_OUTPUT
        assert trade.output_amount == amount_out
        assert trade.input_amount == expected

    def test_multi_hop(self, dai_usdc_weth_route, dai_usdc_pool, usdc_weth_pool):
        """Hops are simulated backwards from the output."""
        amount_out = CurrencyAmount(WETH_TOKEN, 10**6)
        trade = Trade.exact_out(dai_usdc_weth_route, amount_out)

        usdc, _ = usdc_weth_pool.get_input_amount(amount_out)
        dai, _ = dai_usdc_pool.get_input_amount(usdc)
        assert trade.input_amount == dai

    def test_maximum_amount_in(self, usdc_weth_route, slippage):
        """maximum in = ceil(in * (1 + tolerance))."""
        trade = Trade.exact_out(usdc_weth_route, CurrencyAmount(WETH_TOKEN, 10**9))
        maximum = trade.maximum_amount_in(slippage)
        assert maximum.quotient == math.ceil(trade.input_amount.quotient * (1 + slippage))
        assert maximum.quotient >= trade.input_amount.quotient

    def test_minimum_amount_out_unchanged(self, usdc_weth_route, slippage):
        """Exact output trades receive exactly their output."""
        trade = Trade.exact_out(usdc_weth_route, CurrencyAmount(WETH_TOKEN, 10**9))
        assert trade.minimum_amount_out(slippage) == trade.output_amount

    def test_amount_out_wrong_currency(self, usdc_weth_route):
        """The output amount must be in the route's output currency."""
        with pytest.raises(InvalidCurrency):
            Trade.exact_out(usdc_weth_route, CurrencyAmount(USDC_TOKEN, 10**9))


class TestSplitTrades:
    """Tests for trades over several routes."""

    def test_from_split(self, usdc_weth_pool, cheap_usdc_weth_pool):
        """A split trade sums the amounts of its swaps."""
        routes = [
            Route([usdc_weth_pool], USDC_TOKEN, WETH_TOKEN),
            Route([cheap_usdc_weth_pool], USDC_TOKEN, WETH_TOKEN),
        ]
        trade = Trade.from_split(
            routes, [1, 3], CurrencyAmount(USDC_TOKEN, 10**9), TradeType.EXACT_INPUT
        )
        assert [swap.input_amount.quotient for swap in trade.swaps] == [250_000_000, 750_000_000]
        assert trade.input_amount.quotient == 10**9
        assert trade.output_amount.quotient == sum(s.output_amount.quotient for s in trade.swaps)

    def test_route_property_requires_single_route(self, usdc_weth_pool, cheap_usdc_weth_pool):
        """The route property is only defined for one swap."""
        routes = [
            Route([usdc_weth_pool], USDC_TOKEN, WETH_TOKEN),
            Route([cheap_usdc_weth_pool], USDC_TOKEN, WETH_TOKEN),
        ]
        trade = Trade.from_split(
            routes, [1, 1], CurrencyAmount(USDC_TOKEN, 10**6), TradeType.EXACT_INPUT
        )
        with pytest.raises(ValueError):
            _ = trade.route

    def test_weights_must_match_routes(self, usdc_weth_route):
        """Each route needs exactly one weight."""
        with pytest.raises(ValueError):
            Trade.from_split(
                [usdc_weth_route], [1, 1], CurrencyAmount(USDC_TOKEN, 10), TradeType.EXACT_INPUT
            )

    def test_shared_pool_rejected(self, usdc_weth_route):
        """Two swaps through the same pool would see stale state."""
        amount = CurrencyAmount(USDC_TOKEN, 10**6)
        with pytest.raises(MalformedRoute):
            Trade.from_routes(
                [(amount, usdc_weth_route), (amount, usdc_weth_route)], TradeType.EXACT_INPUT
            )

    def test_empty_trade(self):
        """A trade needs at least one swap."""
        with pytest.raises(MalformedRoute):
            Trade([], TradeType.EXACT_INPUT)

    def test_create_unchecked_trade(self, usdc_weth_route):
        """Unchecked trades keep the given amounts without simulating."""
        trade = Trade.create_unchecked_trade(
            usdc_weth_route,
            CurrencyAmount(USDC_TOKEN, 100),
            CurrencyAmount(WETH_TOKEN, 99),
            TradeType.EXACT_INPUT,
        )
        assert trade.output_amount.quotient == 99


class TestBestTrade:
    """Tests for the recursive best-trade search."""

    def test_exact_in_prefers_cheaper_pool(
        self, usdc_weth_pool, dai_usdc_pool, cheap_usdc_weth_pool
    ):
        """The best exact-input trade goes through the better-priced pool."""
        pools = [usdc_weth_pool, dai_usdc_pool, cheap_usdc_weth_pool]
        trades = Trade.best_trade_exact_in(pools, CurrencyAmount(DAI_TOKEN, 10**15), WETH_TOKEN)

        assert len(trades) == 2
        assert trades[0].output_amount.quotient > trades[1].output_amount.quotient
        assert trades[0].route.pools == (dai_usdc_pool, cheap_usdc_weth_pool)

    def test_exact_in_respects_max_hops(self, usdc_weth_pool, dai_usdc_pool):
        """Routes longer than max_hops are not considered."""
        trades = Trade.best_trade_exact_in(
            [usdc_weth_pool, dai_usdc_pool],
            CurrencyAmount(DAI_TOKEN, 10**15),
            WETH_TOKEN,
            BestTradeOptions(max_hops=1),
        )
        assert trades == []

    def test_exact_in_max_results(self, usdc_weth_pool, cheap_usdc_weth_pool):
        """No more than max_num_results trades are returned."""
        trades = Trade.best_trade_exact_in(
            [usdc_weth_pool, cheap_usdc_weth_pool],
            CurrencyAmount(USDC_TOKEN, 10**6),
            WETH_TOKEN,
            BestTradeOptions(max_num_results=1),
        )
        assert len(trades) == 1
        assert trades[0].route.pools == (cheap_usdc_weth_pool,)

    def test_exact_out_prefers_cheaper_pool(self, usdc_weth_pool, cheap_usdc_weth_pool):
        """The best exact-output trade needs the smallest input."""
        trades = Trade.best_trade_exact_out(
            [usdc_weth_pool, cheap_usdc_weth_pool],
            USDC_TOKEN,
            CurrencyAmount(WETH_TOKEN, 10**6),
        )
        assert len(trades) == 2
        assert trades[0].input_amount.quotient < trades[1].input_amount.quotient
        assert trades[0].route.pools == (cheap_usdc_weth_pool,)

    def test_exact_out_multi_hop(self, usdc_weth_pool, dai_usdc_pool):
        """Exact-output search finds routes through an intermediate currency."""
        trades = Trade.best_trade_exact_out(
            [usdc_weth_pool, dai_usdc_pool], DAI_TOKEN, CurrencyAmount(WETH_TOKEN, 10**6)
        )
        assert len(trades) == 1
        assert trades[0].route.currency_path == (DAI_TOKEN, USDC_TOKEN, WETH_TOKEN)

    def test_comparator_rejects_mixed_currencies(self, usdc_weth_route, dai_usdc_pool):
        """Trades with different currencies cannot be compared."""
        a = Trade.exact_in(usdc_weth_route, CurrencyAmount(USDC_TOKEN, 10**6))
        b = Trade.exact_in(
            Route([dai_usdc_pool], DAI_TOKEN, USDC_TOKEN), CurrencyAmount(DAI_TOKEN, 10**6)
        )
        with pytest.raises(InvalidCurrency):
            trade_comparator(a, b)
