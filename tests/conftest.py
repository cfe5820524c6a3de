"""Pytest configuration and fixtures."""

from fractions import Fraction

import pytest

from uniswap_v4.entities.pool import Pool
from uniswap_v4.entities.position import Position
from uniswap_v4.entities.route import Route
from tests.helpers.constants import DAI_TOKEN, ETHER, USDC_TOKEN, WETH_TOKEN
from tests.helpers.factories import make_pool, make_position


@pytest.fixture
def usdc_weth_pool() -> Pool:
    """USDC/WETH pool: fee 3000, spacing 60, tick 0, full-range liquidity."""
    return make_pool(USDC_TOKEN, WETH_TOKEN)


@pytest.fixture
def dai_usdc_pool() -> Pool:
    """DAI/USDC pool: fee 500, spacing 10, tick 0."""
    return make_pool(DAI_TOKEN, USDC_TOKEN, fee=500, tick_spacing=10)


@pytest.fixture
def eth_usdc_pool() -> Pool:
    """Native ETH/USDC pool (ETH is currency0)."""
    return make_pool(ETHER, USDC_TOKEN)


@pytest.fixture
def usdc_weth_route(usdc_weth_pool: Pool) -> Route:
    """Single-pool USDC -> WETH route."""
    return Route([usdc_weth_pool], USDC_TOKEN, WETH_TOKEN)


@pytest.fixture
def dai_usdc_weth_route(dai_usdc_pool: Pool, usdc_weth_pool: Pool) -> Route:
    """Two-hop DAI -> USDC -> WETH route."""
    return Route([dai_usdc_pool, usdc_weth_pool], DAI_TOKEN, WETH_TOKEN)


@pytest.fixture
def symmetric_position(usdc_weth_pool: Pool) -> Position:
    """Position over [-600, 600] with liquidity 1_000_000."""
    return make_position(usdc_weth_pool)


@pytest.fixture
def slippage() -> Fraction:
    """Half a percent."""
    return Fraction(5, 1000)
