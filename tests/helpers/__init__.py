"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses, Token objects and common amounts
- factories: Pool and position factory functions
- abi: Word-level builders for expected ABI encodings
"""

from tests.helpers.abi import address_word, word, words
from tests.helpers.constants import (
    DAI,
    DAI_TOKEN,
    ETHER,
    OWNER,
    RECIPIENT,
    USDC,
    USDC_TOKEN,
    WETH,
    WETH_TOKEN,
)
from tests.helpers.factories import full_range_ticks, make_pool, make_position

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "WETH_TOKEN",
    "USDC_TOKEN",
    "DAI_TOKEN",
    "ETHER",
    "RECIPIENT",
    "OWNER",
    # ABI
    "word",
    "address_word",
    "words",
    # Factories
    "full_range_ticks",
    "make_pool",
    "make_position",
]
