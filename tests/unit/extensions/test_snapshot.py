"""Tests for JSON pool snapshots."""

import pytest
from pydantic import ValidationError

from uniswap_v4.entities.currency import CurrencyAmount, NativeCurrency, Token
from uniswap_v4.entities.tick_data import NoTickDataProvider
from uniswap_v4.errors import DataSourceFailure, InvalidRange
from uniswap_v4.extensions.snapshot import CurrencySnapshot, PoolSnapshot
from uniswap_v4.math.fixed_point import Q96
from uniswap_v4.types import ADDRESS_ZERO
from tests.helpers.constants import USDC, USDC_TOKEN, WETH

SNAPSHOT = {
    "chainId": 1,
    "currency0": {"address": USDC.upper().replace("0X", "0x"), "decimals": 6, "symbol": "USDC"},
    "currency1": {"address": WETH, "decimals": 18, "symbol": "WETH"},
    "fee": 3000,
    "tickSpacing": 60,
    "sqrtPriceX96": str(Q96),
    "liquidity": "1000000000000000000",
    "tick": 0,
    "feeGrowthGlobal0X128": "0x10",
    "ticks": [
        {
            "index": -887220,
            "liquidityGross": str(10**18),
            "liquidityNet": str(10**18),
        },
        {
            "index": 887220,
            "liquidityGross": str(10**18),
            "liquidityNet": str(-(10**18)),
        },
    ],
}


class TestPoolSnapshot:
    def test_to_pool(self, usdc_weth_pool):
        """A JSON snapshot builds the same pool as the fixture."""
        pool = PoolSnapshot.model_validate(SNAPSHOT).to_pool()

        assert pool.pool_id == usdc_weth_pool.pool_id
        assert pool.currency0.address == USDC
        assert pool.sqrt_price_x96 == Q96
        assert pool.fee_growth_global0_x128 == 16
        assert pool.tick_data_provider.get_tick(887220).liquidity_net == -(10**18)

    def test_snapshot_pool_quotes_like_fixture(self, usdc_weth_pool):
        """The rebuilt pool quotes like the fixture pool."""
        pool = PoolSnapshot.model_validate(SNAPSHOT).to_pool()
        amount_in = CurrencyAmount(USDC_TOKEN, 10**6)
        out_snapshot, _ = pool.get_output_amount(amount_in)
        out_fixture, _ = usdc_weth_pool.get_output_amount(amount_in)
        assert out_snapshot.quotient == out_fixture.quotient

    def test_round_trip_through_json(self, usdc_weth_pool):
        """A snapshot with ticks survives a JSON round trip."""
        ticks = [usdc_weth_pool.tick_data_provider.get_tick(i) for i in (-887220, 887220)]
        payload = PoolSnapshot.from_pool(usdc_weth_pool, ticks).model_dump_json(by_alias=True)
        restored = PoolSnapshot.model_validate_json(payload).to_pool()

        assert restored.pool_id == usdc_weth_pool.pool_id
        assert restored.liquidity == usdc_weth_pool.liquidity

    def test_round_trip_without_ticks_has_no_tick_data(self, usdc_weth_pool):
        """A snapshot taken without ticks cannot quote past the current tick."""
        snapshot = PoolSnapshot.from_pool(usdc_weth_pool)
        assert snapshot.ticks is None

        restored = PoolSnapshot.model_validate_json(snapshot.model_dump_json(by_alias=True))
        pool = restored.to_pool()
        assert isinstance(pool.tick_data_provider, NoTickDataProvider)
        with pytest.raises(DataSourceFailure):
            pool.get_output_amount(CurrencyAmount(USDC_TOKEN, 10**24))

    def test_missing_ticks_key(self):
        """JSON without a ticks list builds a pool with no tick data."""
        payload = {key: value for key, value in SNAPSHOT.items() if key != "ticks"}
        pool = PoolSnapshot.model_validate(payload).to_pool()
        assert isinstance(pool.tick_data_provider, NoTickDataProvider)

    def test_rejects_bad_integer(self):
        """Non-numeric integers fail validation."""
        with pytest.raises(ValidationError):
            PoolSnapshot.model_validate({**SNAPSHOT, "liquidity": "lots"})

    def test_rejects_bad_address(self):
        """Malformed addresses fail validation."""
        bad = {**SNAPSHOT, "currency1": {"address": "0x1234", "decimals": 18}}
        with pytest.raises(ValidationError):
            PoolSnapshot.model_validate(bad)

    def test_domain_errors_propagate(self):
        """Pool invariants are still checked when building from a snapshot."""
        # Price far from the declared tick
        with pytest.raises(InvalidRange):
            PoolSnapshot.model_validate({**SNAPSHOT, "tick": 600}).to_pool()


class TestCurrencySnapshot:
    def test_token(self):
        """A non-zero address becomes a Token."""
        currency = CurrencySnapshot(address=USDC, decimals=6, symbol="USDC").to_currency(1)
        assert isinstance(currency, Token)
        assert currency == USDC_TOKEN

    def test_native_defaults_to_ether(self):
        """The zero address becomes ether wrapping mainnet WETH."""
        currency = CurrencySnapshot(address=ADDRESS_ZERO, decimals=18).to_currency(1)
        assert isinstance(currency, NativeCurrency)
        assert currency.wrapped.address == WETH

    def test_native_from_currency_keeps_wrapped(self, eth_usdc_pool):
        """Snapshots of native currencies record the wrapped token."""
        snapshot = CurrencySnapshot.from_currency(eth_usdc_pool.currency0)
        assert snapshot.address == ADDRESS_ZERO
        assert snapshot.wrapped == WETH
