"""Tests for PoolKey identity and Pool swap simulation."""

import pytest

from uniswap_v4.constants import DYNAMIC_FEE_FLAG, FeeAmount
from uniswap_v4.entities.currency import CurrencyAmount
from uniswap_v4.entities.pool import DYNAMIC_FEE, LPFee, Pool, PoolKey
from uniswap_v4.entities.position import Position
from uniswap_v4.entities.tick_data import Tick
from uniswap_v4.errors import (
    DataSourceFailure,
    InsufficientLiquidity,
    InvalidCurrency,
    InvalidRange,
    MalformedKey,
    UnsupportedHook,
)
from uniswap_v4.math.fixed_point import Q96
from uniswap_v4.math.tick_math import get_sqrt_ratio_at_tick
from uniswap_v4.types import ADDRESS_ZERO, UINT256_MAX
from tests.helpers.constants import (
    BEFORE_ADD_LIQUIDITY_HOOK,
    BEFORE_SWAP_HOOK,
    DAI_TOKEN,
    ETHER,
    USDC,
    USDC_TOKEN,
    WETH,
    WETH_TOKEN,
)
from tests.helpers.factories import make_pool


def narrow_pool(liquidity: int = 10**6, tick: int = 0, **state) -> Pool:
    """USDC/WETH pool whose only liquidity sits in [-60, 60]."""
    ticks = [
        Tick(-60, liquidity, liquidity, *state.pop("lower_outside", (0, 0))),
        Tick(60, liquidity, -liquidity, *state.pop("upper_outside", (0, 0))),
    ]
    in_range = liquidity if -60 <= tick < 60 else 0
    return Pool.create(
        USDC_TOKEN,
        WETH_TOKEN,
        FeeAmount.MEDIUM,
        60,
        ADDRESS_ZERO,
        get_sqrt_ratio_at_tick(tick),
        in_range,
        tick,
        ticks=ticks,
        **state,
    )


# =============================================================================
# PoolKey
# =============================================================================


class TestLPFee:
    """Tests for the static/dynamic fee variant."""

    def test_static_round_trip(self):
        """Static fees encode as their pips value."""
        assert LPFee.from_encoded(3000).pips == 3000
        assert LPFee.static(3000).encoded == 3000

    def test_dynamic_flag(self):
        """The 0x800000 wire value decodes to the dynamic variant."""
        fee = LPFee.from_encoded(DYNAMIC_FEE_FLAG)
        assert fee.is_dynamic
        assert fee == DYNAMIC_FEE
        assert fee.encoded == DYNAMIC_FEE_FLAG

    def test_fee_above_max_rejected(self):
        """Static fees cannot exceed 100%."""
        with pytest.raises(MalformedKey):
            LPFee.static(1_000_001)


class TestPoolKey:
    """Tests for PoolKey validation and pool ids."""

    def test_unsorted_currencies_rejected(self):
        """currency0 must sort strictly below currency1."""
        with pytest.raises(MalformedKey):
            PoolKey(WETH, USDC, 3000, 60)

    def test_equal_currencies_rejected(self):
        """A key needs two distinct currencies."""
        with pytest.raises(MalformedKey):
            PoolKey(USDC, USDC, 3000, 60)

    @pytest.mark.parametrize("tick_spacing", [0, -1, 32768])
    def test_tick_spacing_bounds(self, tick_spacing):
        """Tick spacing must be in [1, 32767]."""
        with pytest.raises(MalformedKey):
            PoolKey(USDC, WETH, 3000, tick_spacing)

    def test_dynamic_fee_requires_hook(self):
        """A dynamic fee without a hook is malformed."""
        with pytest.raises(MalformedKey):
            PoolKey(USDC, WETH, DYNAMIC_FEE_FLAG, 60)

    def test_dynamic_fee_with_hook(self):
        """A dynamic fee is accepted with a hook address."""
        key = PoolKey(USDC, WETH, DYNAMIC_FEE_FLAG, 60, BEFORE_ADD_LIQUIDITY_HOOK)
        assert key.fee.is_dynamic

    def test_malformed_hook_address(self):
        """The hook must be a 20-byte address."""
        with pytest.raises(MalformedKey):
            PoolKey(USDC, WETH, 3000, 60, "0x1234")

    def test_from_currencies_sorts(self):
        """Currencies are sorted into currency0 and currency1."""
        key = PoolKey.from_currencies(WETH_TOKEN, USDC_TOKEN, 3000, 60)
        assert key.currency0 == USDC
        assert key.currency1 == WETH

    def test_native_is_currency0(self):
        """The native currency always becomes currency0."""
        key = PoolKey.from_currencies(USDC_TOKEN, ETHER, 3000, 60)
        assert key.currency0 == ADDRESS_ZERO

    def test_pool_id_order_independent(self):
        """The id depends on the key, not on the argument order."""
        a = Pool.get_pool_id(USDC_TOKEN, WETH_TOKEN, 3000, 60)
        b = Pool.get_pool_id(WETH_TOKEN, USDC_TOKEN, 3000, 60)
        assert a == b
        assert a.startswith("0x")
        assert len(a) == 66

    def test_pool_id_depends_on_every_field(self):
        """Changing fee, spacing or hook changes the id."""
        base = Pool.get_pool_id(USDC_TOKEN, WETH_TOKEN, 3000, 60)
        assert Pool.get_pool_id(USDC_TOKEN, WETH_TOKEN, 500, 60) != base
        assert Pool.get_pool_id(USDC_TOKEN, WETH_TOKEN, 3000, 10) != base
        assert Pool.get_pool_id(USDC_TOKEN, WETH_TOKEN, 3000, 60, BEFORE_SWAP_HOOK) != base

    def test_hook_permissions(self):
        """Permissions are read from the hook address bits."""
        key = PoolKey(USDC, WETH, 3000, 60, BEFORE_SWAP_HOOK)
        assert key.hook_permissions.before_swap
        assert not key.hook_permissions.after_swap


# =============================================================================
# Pool construction and prices
# =============================================================================


class TestPoolConstruction:
    """Tests for Pool invariants checked at construction."""

    def test_price_must_lie_in_tick(self):
        """The sqrt price must be within [sqrt(tick), sqrt(tick + 1)]."""
        with pytest.raises(InvalidRange):
            Pool.create(USDC_TOKEN, WETH_TOKEN, 3000, 60, ADDRESS_ZERO, Q96, 0, 100)

    def test_currencies_must_match_key(self):
        """Pool currencies must be the ones the key names."""
        key = PoolKey.from_currencies(USDC_TOKEN, WETH_TOKEN, 3000, 60)
        with pytest.raises(MalformedKey):
            Pool(key, DAI_TOKEN, WETH_TOKEN, Q96, 0, 0)

    def test_liquidity_overflow(self):
        """Liquidity must fit in a uint128."""
        with pytest.raises(ValueError):
            Pool.create(USDC_TOKEN, WETH_TOKEN, 3000, 60, ADDRESS_ZERO, Q96, 2**128, 0)

    def test_currency_prices_at_tick_zero(self, usdc_weth_pool):
        """At tick zero both prices are one."""
        assert usdc_weth_pool.currency0_price.raw == 1
        assert usdc_weth_pool.currency1_price.raw == 1
        assert usdc_weth_pool.price_of(WETH_TOKEN).base_currency == WETH_TOKEN

    def test_price_of_foreign_currency(self, usdc_weth_pool):
        """Pricing a currency outside the pool raises."""
        with pytest.raises(InvalidCurrency):
            usdc_weth_pool.price_of(DAI_TOKEN)

    def test_other_currency(self, usdc_weth_pool):
        """The counterpart of each pool currency."""
        assert usdc_weth_pool.other_currency(USDC_TOKEN) == WETH_TOKEN
        assert usdc_weth_pool.other_currency(WETH_TOKEN) == USDC_TOKEN
        with pytest.raises(InvalidCurrency):
            usdc_weth_pool.other_currency(DAI_TOKEN)


# =============================================================================
# Swaps
# =============================================================================


class TestGetOutputAmount:
    """Tests for exact-input swap simulation."""

    def test_usdc_for_weth(self, usdc_weth_pool):
        """1000 USDC in returns a positive amount below the input (fee and impact)."""
        amount_in = CurrencyAmount(USDC_TOKEN, 10**9)
        amount_out, pool_after = usdc_weth_pool.get_output_amount(amount_in)

        assert amount_out.currency == WETH_TOKEN
        assert 0 < amount_out.quotient < 10**9
        # 0.3% fee caps the output below 99.7% of the input at price 1
        assert amount_out.quotient <= 997 * 10**6

    def test_pool_after_moves_price(self, usdc_weth_pool):
        """Selling currency0 pushes the price down; the original pool is unchanged."""
        _, pool_after = usdc_weth_pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 10**15))
        assert pool_after.sqrt_price_x96 < usdc_weth_pool.sqrt_price_x96
        assert pool_after.tick_current < 0
        assert usdc_weth_pool.sqrt_price_x96 == Q96
        assert pool_after.pool_id == usdc_weth_pool.pool_id

    def test_one_for_zero(self, usdc_weth_pool):
        """Selling currency1 pushes the price up."""
        _, pool_after = usdc_weth_pool.get_output_amount(CurrencyAmount(WETH_TOKEN, 10**15))
        assert pool_after.sqrt_price_x96 > usdc_weth_pool.sqrt_price_x96

    def test_zero_input(self, usdc_weth_pool):
        """A zero input returns nothing and leaves the price alone."""
        amount_out, pool_after = usdc_weth_pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 0))
        assert amount_out.quotient == 0
        assert pool_after.sqrt_price_x96 == usdc_weth_pool.sqrt_price_x96

    def test_foreign_currency(self, usdc_weth_pool):
        """Swapping a currency outside the pool raises."""
        with pytest.raises(InvalidCurrency):
            usdc_weth_pool.get_output_amount(CurrencyAmount(DAI_TOKEN, 1))

    def test_exhausted_liquidity(self):
        """A swap larger than the pool can absorb raises without a price limit."""
        with pytest.raises(InsufficientLiquidity):
            narrow_pool().get_output_amount(CurrencyAmount(USDC_TOKEN, 10**30))

    def test_price_limit_allows_partial_fill(self):
        """With a price limit the swap stops at the limit instead of raising."""
        limit = get_sqrt_ratio_at_tick(-30)
        amount_out, pool_after = narrow_pool().get_output_amount(
            CurrencyAmount(USDC_TOKEN, 10**30), limit
        )
        assert amount_out.quotient > 0
        assert pool_after.sqrt_price_x96 == limit

    def test_price_limit_wrong_side(self, usdc_weth_pool):
        """A limit on the wrong side of the price raises."""
        with pytest.raises(InvalidRange):
            usdc_weth_pool.get_output_amount(
                CurrencyAmount(USDC_TOKEN, 1), get_sqrt_ratio_at_tick(60)
            )

    def test_crosses_initialized_tick(self):
        """Leaving the range drops in-range liquidity to zero."""
        pool = narrow_pool(liquidity=10**18)
        limit = get_sqrt_ratio_at_tick(-120)
        _, pool_after = pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 10**30), limit)
        assert pool_after.liquidity == 0
        assert pool_after.tick_current < -60

    def test_swap_hook_unsupported(self):
        """Pools with swap hooks cannot be quoted."""
        pool = make_pool(hooks=BEFORE_SWAP_HOOK)
        with pytest.raises(UnsupportedHook):
            pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 10**6))

    def test_liquidity_hook_supported(self):
        """Hooks without swap permissions do not affect quoting."""
        pool = make_pool(hooks=BEFORE_ADD_LIQUIDITY_HOOK)
        plain = make_pool()
        amount = CurrencyAmount(USDC_TOKEN, 10**6)
        assert pool.get_output_amount(amount)[0] == plain.get_output_amount(amount)[0]

    def test_unresolved_dynamic_fee(self):
        """A dynamic fee without a current lp_fee cannot be quoted."""
        pool = make_pool(fee=DYNAMIC_FEE_FLAG, hooks=BEFORE_ADD_LIQUIDITY_HOOK)
        with pytest.raises(UnsupportedHook):
            pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 10**6))

    def test_resolved_dynamic_fee(self):
        """A dynamic-fee pool quotes like a static pool charging its current lp_fee."""
        dynamic = make_pool(fee=DYNAMIC_FEE_FLAG, hooks=BEFORE_ADD_LIQUIDITY_HOOK, lp_fee=3000)
        static = make_pool()
        amount = CurrencyAmount(USDC_TOKEN, 10**6)
        assert dynamic.get_output_amount(amount)[0] == static.get_output_amount(amount)[0]

    def test_missing_tick_data(self):
        """Without tick data a swap leaving the word fails."""
        pool = make_pool(with_ticks=False)
        with pytest.raises(DataSourceFailure):
            pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 10**6))

    def test_failing_provider_wrapped(self, usdc_weth_pool):
        """Unexpected provider errors surface as DataSourceFailure."""

        class BrokenProvider:
            def get_tick(self, index):
                raise ConnectionError("node down")

            def next_initialized_tick_within_one_word(self, tick, lte, tick_spacing):
                raise ConnectionError("node down")

        pool = Pool.create(
            USDC_TOKEN, WETH_TOKEN, 3000, 60, ADDRESS_ZERO, Q96, 10**18, 0, BrokenProvider()
        )
        with pytest.raises(DataSourceFailure):
            pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 10**6))

    @pytest.mark.parametrize(
        ("currency_in", "stuck_tick"), [(WETH_TOKEN, 0), (USDC_TOKEN, 600)]
    )
    def test_stuck_provider_terminates(self, currency_in, stuck_tick):
        """A provider that never moves in the swap direction ends the swap with an error."""

        class StuckProvider:
            def get_tick(self, index):
                return Tick(index, 0, 0)

            def next_initialized_tick_within_one_word(self, tick, lte, tick_spacing):
                return stuck_tick, True

        pool = Pool.create(
            USDC_TOKEN, WETH_TOKEN, 3000, 60, ADDRESS_ZERO, Q96, 10**18, 0, StuckProvider()
        )
        with pytest.raises(DataSourceFailure, match="Tick data source returned"):
            pool.get_output_amount(CurrencyAmount(currency_in, 10**6))

    def test_provider_domain_errors_pass_through(self):
        """Package errors raised by a provider are not rewrapped."""

        class StrictProvider:
            def get_tick(self, index):
                raise InvalidRange(f"tick {index} out of snapshot")

            def next_initialized_tick_within_one_word(self, tick, lte, tick_spacing):
                raise InvalidRange(f"tick {tick} out of snapshot")

        pool = Pool.create(
            USDC_TOKEN, WETH_TOKEN, 3000, 60, ADDRESS_ZERO, Q96, 10**18, 0, StrictProvider()
        )
        with pytest.raises(InvalidRange, match="out of snapshot") as excinfo:
            pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 10**6))
        assert not isinstance(excinfo.value, DataSourceFailure)


class TestGetInputAmount:
    """Tests for exact-output swap simulation."""

    def test_input_exceeds_output(self, usdc_weth_pool):
        """At price 1 with a fee, the input must exceed the output."""
        amount_in, _ = usdc_weth_pool.get_input_amount(CurrencyAmount(WETH_TOKEN, 10**9))
        assert amount_in.currency == USDC_TOKEN
        assert amount_in.quotient > 10**9

    def test_input_buys_at_least_the_output(self, usdc_weth_pool):
        """Selling the quoted input returns at least the requested output."""
        target = CurrencyAmount(WETH_TOKEN, 10**9)
        amount_in, _ = usdc_weth_pool.get_input_amount(target)
        amount_out, _ = usdc_weth_pool.get_output_amount(amount_in)
        assert amount_out.quotient >= target.quotient

    def test_unfillable_output(self):
        """An output beyond the pool's reserves raises."""
        with pytest.raises(InsufficientLiquidity):
            narrow_pool().get_input_amount(CurrencyAmount(WETH_TOKEN, 10**12))

    def test_unfillable_output_with_limit(self):
        """Exact output fails when the price limit stops it short."""
        limit = get_sqrt_ratio_at_tick(-1)
        with pytest.raises(InsufficientLiquidity):
            narrow_pool(liquidity=10**18).get_input_amount(
                CurrencyAmount(WETH_TOKEN, 10**17), limit
            )


# =============================================================================
# Fee growth
# =============================================================================


class TestFeeGrowthInside:
    """Tests for fee growth inside a tick range."""

    def test_price_in_range(self):
        """inside = global - below - above."""
        pool = narrow_pool(
            fee_growth_global0_x128=100,
            fee_growth_global1_x128=200,
            lower_outside=(10, 20),
            upper_outside=(5, 50),
        )
        assert pool.get_fee_growth_inside(-60, 60) == (85, 130)

    def test_price_below_range(self):
        """Below the range the lower tick's outside value flips."""
        pool = narrow_pool(
            tick=-120,
            fee_growth_global0_x128=100,
            fee_growth_global1_x128=100,
            lower_outside=(10, 10),
            upper_outside=(5, 5),
        )
        assert pool.get_fee_growth_inside(-60, 60) == (5, 5)

    def test_wraps_modulo_2_256(self):
        """Fee growth differences wrap like uint256 arithmetic."""
        pool = narrow_pool(lower_outside=(10, 0), upper_outside=(5, 0))
        inside0, inside1 = pool.get_fee_growth_inside(-60, 60)
        assert inside0 == UINT256_MAX - 14
        assert inside1 == 0

    def test_uninitialized_tick(self):
        """Fee growth needs both range ticks to be initialized."""
        with pytest.raises(DataSourceFailure):
            narrow_pool().get_fee_growth_inside(-120, 60)

    def test_position_fees_owed(self):
        """Fees owed scale fee growth by liquidity / 2^128."""
        pool = narrow_pool(
            fee_growth_global0_x128=100,
            fee_growth_global1_x128=100,
            lower_outside=(10, 10),
            upper_outside=(5, 5),
        )
        position = Position(pool, -60, 60, 2**127)
        assert position.fees_owed(0, 0) == (42, 42)
