"""Tests for the position-lifecycle planner."""

import pytest
from eth_abi import decode

from uniswap_v4.errors import UnsettledCurrency
from uniswap_v4.planner.actions import Actions, MintPositionParams
from uniswap_v4.planner.position_planner import V4PositionPlanner
from uniswap_v4.types import ADDRESS_ZERO
from tests.helpers.constants import OWNER, RECIPIENT, USDC, WETH


@pytest.fixture
def planner() -> V4PositionPlanner:
    return V4PositionPlanner()


@pytest.fixture
def key(usdc_weth_pool):
    return usdc_weth_pool.key


def decoded_actions(payload: bytes) -> bytes:
    actions, _ = decode(["bytes", "bytes[]"], payload)
    return actions


class TestMint:
    """Tests for minting."""

    def test_mint_and_settle_pair(self, planner, key):
        """A mint closed by SETTLE_PAIR finalizes."""
        planner.add_mint(key, -600, 600, 10**6, 10**4, 10**4, OWNER).add_settle_pair(USDC, WETH)
        payload = planner.finalize()
        assert decoded_actions(payload) == bytes([Actions.MINT_POSITION, Actions.SETTLE_PAIR])

    def test_mint_params(self, planner, key):
        """Mint params carry the key, maxima and hook data."""
        planner.add_mint(key, -600, 600, 10**6, 1, 2, OWNER, b"\x01")
        params = planner.params[0]
        assert isinstance(params, MintPositionParams)
        assert params.pool_key == key
        assert (params.amount0_max, params.amount1_max) == (1, 2)
        assert params.hook_data == b"\x01"

    def test_unsettled_mint(self, planner, key):
        """A mint owes both currencies until they are settled."""
        planner.add_mint(key, -600, 600, 10**6, 1, 1, OWNER)
        with pytest.raises(UnsettledCurrency) as exc_info:
            planner.finalize()
        assert exc_info.value.currencies == [USDC, WETH]

    def test_sweep_does_not_settle(self, planner, key):
        """A sweep alone does not pay the mint."""
        planner.add_mint(key, -600, 600, 10**6, 1, 1, OWNER).add_sweep(USDC, RECIPIENT)
        with pytest.raises(UnsettledCurrency):
            planner.finalize()

    def test_native_mint_with_sweep(self, planner, eth_usdc_pool):
        """Native currency0 is settled from msg.value and the excess swept back."""
        key = eth_usdc_pool.key
        planner.add_mint(key, -600, 600, 10**6, 10**4, 10**4, OWNER)
        planner.add_settle_pair(ADDRESS_ZERO, USDC).add_sweep(ADDRESS_ZERO, RECIPIENT)
        assert decoded_actions(planner.finalize()) == bytes(
            [Actions.MINT_POSITION, Actions.SETTLE_PAIR, Actions.SWEEP]
        )


class TestModify:
    """Tests for actions on existing positions."""

    def test_increase(self, planner, key):
        """An increase closed by SETTLE_PAIR finalizes."""
        planner.add_increase(key, 7, 10**6, 1, 1).add_settle_pair(USDC, WETH)
        planner.finalize()

    def test_decrease_and_take_pair(self, planner, key):
        """A decrease closed by TAKE_PAIR finalizes."""
        planner.add_decrease(key, 7, 10**6, 0, 0).add_take_pair(USDC, WETH, RECIPIENT)
        assert decoded_actions(planner.finalize()) == bytes(
            [Actions.DECREASE_LIQUIDITY, Actions.TAKE_PAIR]
        )

    def test_decrease_without_take(self, planner, key):
        """Decreased liquidity is a credit that must be taken."""
        planner.add_decrease(key, 7, 10**6, 0, 0)
        with pytest.raises(UnsettledCurrency):
            planner.finalize()

    def test_collect(self, planner, key):
        """A zero decrease and TAKE_PAIR collects fees."""
        planner.add_decrease(key, 7, 0, 0, 0).add_take_pair(USDC, WETH, RECIPIENT)
        planner.finalize()

    def test_burn(self, planner, key):
        """A burn closed by TAKE_PAIR finalizes."""
        planner.add_burn(key, 7, 0, 0).add_take_pair(USDC, WETH, RECIPIENT)
        assert decoded_actions(planner.finalize()) == bytes(
            [Actions.BURN_POSITION, Actions.TAKE_PAIR]
        )

    def test_migrate_style_settles(self, planner, key):
        """Settling each currency from the router's balance also resolves a mint."""
        planner.add_mint(key, -600, 600, 10**6, 1, 1, OWNER)
        planner.add_settle(USDC, False).add_settle(WETH, False)
        planner.add_sweep(USDC, RECIPIENT).add_sweep(WETH, RECIPIENT)
        planner.finalize()


class TestWrapping:
    """Wrap and unwrap move router balances and leave deltas alone."""

    def test_wrap_unwrap_touch_no_delta(self, planner):
        """Wrapping and unwrapping leave the tracked deltas alone."""
        planner.add_wrap(10**18).add_unwrap(0)
        assert planner.deltas == {}
        assert decoded_actions(planner.finalize()) == bytes([Actions.WRAP, Actions.UNWRAP])
