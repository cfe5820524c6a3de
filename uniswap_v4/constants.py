"""Protocol constants for Uniswap V4.

Centralizes fee and tick-spacing bounds, action sentinels and well-known
contract addresses. These are fixed protocol parameters, not runtime
configuration.
"""

from enum import IntEnum

from uniswap_v4.types import ADDRESS_ZERO, is_valid_address


def _validate_address(name: str, address: str) -> str:
    """Validate and return a well-known address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# =============================================================================
# Fees
# =============================================================================

# LP fees are expressed in hundredths of a bip (pips): 3000 = 0.30%
FEE_DENOMINATOR = 1_000_000
MAX_LP_FEE = 1_000_000

# Wire value of the fee field for pools whose fee is set by the hook
DYNAMIC_FEE_FLAG = 0x800000


class FeeAmount(IntEnum):
    """Common static fee tiers."""

    LOWEST = 100
    LOW_200 = 200
    LOW_300 = 300
    LOW_400 = 400
    LOW = 500
    MEDIUM = 3000
    HIGH = 10000


TICK_SPACINGS = {
    FeeAmount.LOWEST: 1,
    FeeAmount.LOW_200: 4,
    FeeAmount.LOW_300: 6,
    FeeAmount.LOW_400: 8,
    FeeAmount.LOW: 10,
    FeeAmount.MEDIUM: 60,
    FeeAmount.HIGH: 200,
}

# =============================================================================
# Ticks
# =============================================================================

# PoolManager stores tick spacing as int24 but caps it at int16 max
MIN_TICK_SPACING = 1
MAX_TICK_SPACING = 32767

# =============================================================================
# Action sentinels
# =============================================================================

# Amount meaning "use the full open delta of this currency"
OPEN_DELTA = 0

# Amount meaning "use the router's whole balance of this currency"
CONTRACT_BALANCE = 1 << 255

# Recipient sentinels resolved by the router
MSG_SENDER = "0x0000000000000000000000000000000000000001"
ADDRESS_THIS = "0x0000000000000000000000000000000000000002"

# TAKE_PORTION is expressed in basis points
BIPS_BASE = 10_000

EMPTY_BYTES = b""

# =============================================================================
# Well-known addresses (mainnet, lowercase)
# =============================================================================

NATIVE_ADDRESS = ADDRESS_ZERO
POOL_MANAGER_ADDRESS = _validate_address(
    "PoolManager", "0x000000000004444c5dc75cb358380d2e3de08a90"
)
POSITION_MANAGER_ADDRESS = _validate_address(
    "PositionManager", "0xbd216513d74c8cf14cf4747e6aaa6420ff64ee9e"
)
PERMIT2_ADDRESS = _validate_address("Permit2", "0x000000000022d473030f116ddee9f6b43ac78ba3")
WETH_ADDRESS = _validate_address("WETH", "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")

MAINNET_CHAIN_ID = 1

__all__ = [
    "FEE_DENOMINATOR",
    "MAX_LP_FEE",
    "DYNAMIC_FEE_FLAG",
    "FeeAmount",
    "TICK_SPACINGS",
    "MIN_TICK_SPACING",
    "MAX_TICK_SPACING",
    "OPEN_DELTA",
    "CONTRACT_BALANCE",
    "MSG_SENDER",
    "ADDRESS_THIS",
    "BIPS_BASE",
    "EMPTY_BYTES",
    "NATIVE_ADDRESS",
    "POOL_MANAGER_ADDRESS",
    "POSITION_MANAGER_ADDRESS",
    "PERMIT2_ADDRESS",
    "WETH_ADDRESS",
    "MAINNET_CHAIN_ID",
]
