"""Calldata for the V4 PositionManager contract.

Wraps a V4PositionPlanner payload in ``modifyLiquidities`` and prepends the
optional pool initialization and permit calls, batching them through
``multicall`` when more than one call is needed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from fractions import Fraction
from typing import Any

import structlog
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address

from uniswap_v4.constants import EMPTY_BYTES, MSG_SENDER, OPEN_DELTA
from uniswap_v4.entities.currency import NativeCurrency
from uniswap_v4.entities.pool import POOL_KEY_ABI, PoolKey
from uniswap_v4.entities.position import PermitBatch, Position
from uniswap_v4.errors import InvalidAction, InvalidCurrency
from uniswap_v4.math.tick_math import MAX_SQRT_RATIO, MIN_SQRT_RATIO
from uniswap_v4.planner.position_planner import V4PositionPlanner
from uniswap_v4.types import address_to_bytes, normalize_address, validate_slippage

logger = structlog.get_logger()

PERMIT_DETAILS_ABI = "(address,uint160,uint48,uint48)"
PERMIT_BATCH_ABI = f"({PERMIT_DETAILS_ABI}[],address,uint256)"

MODIFY_LIQUIDITIES_SELECTOR = function_signature_to_4byte_selector(
    "modifyLiquidities(bytes,uint256)"
)
INITIALIZE_POOL_SELECTOR = function_signature_to_4byte_selector(
    f"initializePool({POOL_KEY_ABI},uint160)"
)
MULTICALL_SELECTOR = function_signature_to_4byte_selector("multicall(bytes[])")
PERMIT_BATCH_SELECTOR = function_signature_to_4byte_selector(
    f"permitBatch(address,{PERMIT_BATCH_ABI},bytes)"
)
ERC721_PERMIT_SELECTOR = function_signature_to_4byte_selector(
    "permit(address,uint256,uint256,uint256,bytes)"
)

# EIP-712 domain and struct of the position NFT permit
NFT_PERMIT_DOMAIN_NAME = "Uniswap V4 Positions NFT"
NFT_PERMIT_TYPE = "Permit(address spender,uint256 tokenId,uint256 nonce,uint256 deadline)"
NFT_PERMIT_TYPEHASH = keccak(text=NFT_PERMIT_TYPE)

NFT_PERMIT_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "Permit": [
        {"name": "spender", "type": "address"},
        {"name": "tokenId", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ],
}


# =============================================================================
# Options
# =============================================================================


@dataclass(frozen=True)
class CommonOptions:
    """Options shared by every position-manager call.

    Attributes:
        slippage_tolerance: Allowed price movement, in [0, 1)
        deadline: Unix timestamp after which the call reverts
        hook_data: Data forwarded to the pool's hook
    """

    slippage_tolerance: Fraction
    deadline: int
    hook_data: bytes = EMPTY_BYTES


@dataclass(frozen=True)
class MintSpecificOptions:
    """Options for minting a new position.

    Attributes:
        recipient: Owner of the minted position NFT
        create_pool: Initialize the pool in the same transaction
        sqrt_price_x96: Initial price, required with ``create_pool``
        migrate: The currencies were sent to the position manager beforehand
            (e.g. by a V3 migrator) instead of being pulled from the caller
    """

    recipient: str
    create_pool: bool = False
    sqrt_price_x96: int | None = None
    migrate: bool = False


@dataclass(frozen=True)
class ModifyPositionSpecificOptions:
    token_id: int


@dataclass(frozen=True)
class BatchPermitOptions:
    """A signed Permit2 batch allowing the position manager to pull currencies."""

    owner: str
    permit_batch: PermitBatch
    signature: bytes


@dataclass(frozen=True)
class NFTPermitValues:
    """The fields of an ERC-721 permit, before signing."""

    spender: str
    token_id: int
    nonce: int
    deadline: int


@dataclass(frozen=True)
class NFTPermitOptions:
    """A signed ERC-721 permit for the position NFT."""

    spender: str
    token_id: int
    deadline: int
    nonce: int
    signature: bytes


@dataclass(frozen=True)
class AddLiquidityOptions:
    """Options for minting a position or increasing an existing one.

    Attributes:
        common: Slippage, deadline and hook data
        specific: Mint options for a new position, or the token id of an
            existing one
        use_native: The native currency, when currency0 of the pool is native
        batch_permit: Permit2 batch to submit before modifying liquidity
    """

    common: CommonOptions
    specific: MintSpecificOptions | ModifyPositionSpecificOptions
    use_native: NativeCurrency | None = None
    batch_permit: BatchPermitOptions | None = None

    @property
    def is_mint(self) -> bool:
        return isinstance(self.specific, MintSpecificOptions)


@dataclass(frozen=True)
class RemoveLiquidityOptions:
    """Options for removing liquidity from a position.

    Attributes:
        common: Slippage, deadline and hook data
        token_id: Position NFT id
        liquidity_percentage: Share of the liquidity to remove, in (0, 1]
        burn_token: Burn the NFT; requires removing 100%
        permit: ERC-721 permit, used only when burning
    """

    common: CommonOptions
    token_id: int
    liquidity_percentage: Fraction
    burn_token: bool = False
    permit: NFTPermitOptions | None = None


@dataclass(frozen=True)
class CollectOptions:
    common: CommonOptions
    token_id: int
    recipient: str


@dataclass(frozen=True)
class MethodParameters:
    """Calldata and native value of a transaction to the position manager."""

    calldata: bytes
    value: int = 0

    @property
    def calldata_hex(self) -> str:
        return "0x" + self.calldata.hex()


# =============================================================================
# Call encoders
# =============================================================================


def encode_modify_liquidities(unlock_data: bytes, deadline: int) -> bytes:
    return MODIFY_LIQUIDITIES_SELECTOR + encode(["bytes", "uint256"], [unlock_data, deadline])


def encode_initialize_pool(pool_key: PoolKey, sqrt_price_x96: int) -> bytes:
    """Encode ``initializePool``.

    Raises:
        InvalidAction: If the price is outside [MIN_SQRT_RATIO, MAX_SQRT_RATIO)
    """
    if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
        raise InvalidAction(f"Initial sqrt price {sqrt_price_x96} outside protocol bounds")
    return INITIALIZE_POOL_SELECTOR + encode(
        [POOL_KEY_ABI, "uint160"], [pool_key.to_abi(), sqrt_price_x96]
    )


def encode_permit_batch(owner: str, permit_batch: PermitBatch, signature: bytes) -> bytes:
    details = [
        (address_to_bytes(d.token), d.amount, d.expiration, d.nonce) for d in permit_batch.details
    ]
    batch = (details, address_to_bytes(permit_batch.spender), permit_batch.sig_deadline)
    return PERMIT_BATCH_SELECTOR + encode(
        ["address", PERMIT_BATCH_ABI, "bytes"],
        [address_to_bytes(owner), batch, signature],
    )


def encode_erc721_permit(
    spender: str, token_id: int, deadline: int, nonce: int, signature: bytes
) -> bytes:
    return ERC721_PERMIT_SELECTOR + encode(
        ["address", "uint256", "uint256", "uint256", "bytes"],
        [address_to_bytes(spender), token_id, deadline, nonce, signature],
    )


def encode_multicall(calldatas: Sequence[bytes]) -> bytes:
    """Batch calls through ``multicall(bytes[])``; a single call is returned as is."""
    if not calldatas:
        raise InvalidAction("multicall requires at least one call")
    if len(calldatas) == 1:
        return calldatas[0]
    return MULTICALL_SELECTOR + encode(["bytes[]"], [list(calldatas)])


def create_call_parameters(pool_key: PoolKey, sqrt_price_x96: int) -> MethodParameters:
    """Calldata to initialize a pool on its own, without adding liquidity."""
    return MethodParameters(encode_initialize_pool(pool_key, sqrt_price_x96), 0)


def get_permit_data(
    permit: NFTPermitValues, position_manager: str, chain_id: int
) -> dict[str, Any]:
    """EIP-712 typed data for an ERC-721 permit of a position NFT.

    The result is a full typed-data message (``types``, ``primaryType``,
    ``domain``, ``message``) that eth-account signs as is. The signature
    goes into NFTPermitOptions.

    Args:
        permit: Spender, token id, nonce and deadline to sign
        position_manager: PositionManager address, the verifying contract
        chain_id: Chain the permit is valid on
    """
    return {
        "types": NFT_PERMIT_TYPES,
        "primaryType": "Permit",
        "domain": {
            "name": NFT_PERMIT_DOMAIN_NAME,
            "chainId": chain_id,
            "verifyingContract": to_checksum_address(position_manager),
        },
        "message": {
            "spender": to_checksum_address(permit.spender),
            "tokenId": permit.token_id,
            "nonce": permit.nonce,
            "deadline": permit.deadline,
        },
    }


# =============================================================================
# Position lifecycle
# =============================================================================


def add_call_parameters(position: Position, options: AddLiquidityOptions) -> MethodParameters:
    """Calldata to mint a position or increase an existing one.

    Raises:
        InvalidAction: On zero liquidity or a pool creation without a price
        InvalidCurrency: If ``use_native`` disagrees with the pool's currency0
    """
    if position.liquidity <= 0:
        raise InvalidAction("Cannot add zero liquidity")

    common = options.common
    pool = position.pool
    calldatas: list[bytes] = []
    planner = V4PositionPlanner()

    specific = options.specific
    if isinstance(specific, MintSpecificOptions) and specific.create_pool:
        if specific.sqrt_price_x96 is None:
            raise InvalidAction("Creating a pool requires sqrt_price_x96")
        calldatas.append(encode_initialize_pool(pool.key, specific.sqrt_price_x96))

    if pool.currency0.is_native != (options.use_native is not None):
        raise InvalidCurrency("use_native must be set exactly when currency0 is native")
    if options.use_native is not None and options.use_native != pool.currency0:
        raise InvalidCurrency(f"use_native {options.use_native!r} is not the pool's currency0")

    amount0_max, amount1_max = position.mint_amounts_with_slippage(common.slippage_tolerance)

    if options.batch_permit is not None:
        permit = options.batch_permit
        calldatas.append(encode_permit_batch(permit.owner, permit.permit_batch, permit.signature))

    if isinstance(specific, MintSpecificOptions):
        planner.add_mint(
            pool.key,
            position.tick_lower,
            position.tick_upper,
            position.liquidity,
            amount0_max,
            amount1_max,
            specific.recipient,
            common.hook_data,
        )
    else:
        planner.add_increase(
            pool.key,
            specific.token_id,
            position.liquidity,
            amount0_max,
            amount1_max,
            common.hook_data,
        )

    value = 0
    if isinstance(specific, MintSpecificOptions) and specific.migrate:
        recipient = specific.recipient
        if options.use_native is not None:
            # Migrated funds arrive as WETH; unwrap before paying native currency0
            planner.add_unwrap(OPEN_DELTA)
            planner.add_settle(pool.currency0, False)
            planner.add_settle(pool.currency1, False)
            planner.add_sweep(pool.currency0.wrapped, recipient)
            planner.add_sweep(pool.currency1, recipient)
        else:
            planner.add_settle(pool.currency0, False)
            planner.add_settle(pool.currency1, False)
            planner.add_sweep(pool.currency0, recipient)
            planner.add_sweep(pool.currency1, recipient)
    else:
        planner.add_settle_pair(pool.currency0, pool.currency1)
        if options.use_native is not None:
            value = amount0_max
            planner.add_sweep(pool.currency0, MSG_SENDER)

    calldatas.append(encode_modify_liquidities(planner.finalize(), common.deadline))

    logger.debug(
        "position_add_calldata",
        pool_id=pool.pool_id,
        mint=options.is_mint,
        num_calls=len(calldatas),
        value=value,
    )
    return MethodParameters(encode_multicall(calldatas), value)


def remove_call_parameters(
    position: Position, options: RemoveLiquidityOptions
) -> MethodParameters:
    """Calldata to burn a position or decrease part of its liquidity.

    Raises:
        InvalidAction: If burning less than 100%, or the partial liquidity is zero
    """
    common = options.common
    pool = position.pool
    calldatas: list[bytes] = []
    planner = V4PositionPlanner()

    percentage = Fraction(options.liquidity_percentage)
    if not 0 < percentage <= 1:
        raise InvalidAction(f"Liquidity percentage {percentage} outside (0, 1]")

    if options.burn_token:
        if percentage != 1:
            raise InvalidAction("Burning a position requires removing 100% of its liquidity")
        if options.permit is not None:
            permit = options.permit
            calldatas.append(
                encode_erc721_permit(
                    permit.spender, permit.token_id, permit.deadline, permit.nonce, permit.signature
                )
            )
        amount0_min, amount1_min = position.burn_amounts_with_slippage(common.slippage_tolerance)
        planner.add_burn(pool.key, options.token_id, amount0_min, amount1_min, common.hook_data)
    else:
        liquidity = position.liquidity * percentage.numerator // percentage.denominator
        if liquidity <= 0:
            raise InvalidAction("Cannot remove zero liquidity")
        partial = Position(pool, position.tick_lower, position.tick_upper, liquidity)
        amount0_min, amount1_min = partial.burn_amounts_with_slippage(common.slippage_tolerance)
        planner.add_decrease(
            pool.key, options.token_id, liquidity, amount0_min, amount1_min, common.hook_data
        )

    planner.add_take_pair(pool.currency0, pool.currency1, MSG_SENDER)
    calldatas.append(encode_modify_liquidities(planner.finalize(), common.deadline))

    logger.debug(
        "position_remove_calldata",
        pool_id=pool.pool_id,
        token_id=options.token_id,
        burn=options.burn_token,
    )
    return MethodParameters(encode_multicall(calldatas), 0)


def collect_call_parameters(position: Position, options: CollectOptions) -> MethodParameters:
    """Calldata to collect accrued fees: a zero decrease followed by a take-pair."""
    validate_slippage(options.common.slippage_tolerance)
    pool = position.pool
    planner = V4PositionPlanner()
    planner.add_decrease(pool.key, options.token_id, 0, 0, 0, options.common.hook_data)
    planner.add_take_pair(
        pool.currency0, pool.currency1, normalize_address(options.recipient, validate=True)
    )
    calldata = encode_modify_liquidities(planner.finalize(), options.common.deadline)
    return MethodParameters(calldata, 0)


__all__ = [
    # Options
    "CommonOptions",
    "MintSpecificOptions",
    "ModifyPositionSpecificOptions",
    "BatchPermitOptions",
    "NFTPermitValues",
    "NFTPermitOptions",
    "AddLiquidityOptions",
    "RemoveLiquidityOptions",
    "CollectOptions",
    "MethodParameters",
    # Encoders
    "encode_modify_liquidities",
    "encode_initialize_pool",
    "encode_permit_batch",
    "encode_erc721_permit",
    "encode_multicall",
    "create_call_parameters",
    "get_permit_data",
    # Lifecycle
    "add_call_parameters",
    "remove_call_parameters",
    "collect_call_parameters",
]
