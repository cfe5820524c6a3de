"""Read-only access to PoolManager state through ``extsload``.

The singleton PoolManager keeps every pool in one ``pools`` mapping and
exposes raw storage through ``extsload(bytes32)``. The lens computes the
storage slots of a pool's fields and unpacks the returned words, the same
way the periphery StateLibrary does on chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address

from uniswap_v4.config import DEFAULT_LENS_CONFIG, LensConfig
from uniswap_v4.entities.currency import Currency
from uniswap_v4.entities.pool import Pool, PoolKey
from uniswap_v4.entities.tick_data import Tick, TickDataProvider
from uniswap_v4.errors import DataSourceFailure, MalformedKey
from uniswap_v4.types import UINT128_MAX, UINT160_MAX, address_to_bytes

logger = structlog.get_logger()

EXTSLOAD_SELECTOR = function_signature_to_4byte_selector("extsload(bytes32)")

_UINT24_MASK = (1 << 24) - 1


def _to_signed(value: int, bits: int) -> int:
    if value >= 1 << (bits - 1):
        return value - (1 << bits)
    return value


def _slot_key(slot: int) -> bytes:
    return slot.to_bytes(32, "big")


def _pool_id_bytes(pool_id: str | bytes) -> bytes:
    if isinstance(pool_id, bytes):
        raw = pool_id
    else:
        raw = bytes.fromhex(pool_id[2:] if pool_id.startswith("0x") else pool_id)
    if len(raw) != 32:
        raise MalformedKey(f"Pool id must be 32 bytes, got {len(raw)}")
    return raw


@dataclass(frozen=True)
class Slot0:
    """Packed first word of a pool's state.

    Attributes:
        sqrt_price_x96: Current sqrt price (low 160 bits)
        tick: Current tick (int24 at bit 160)
        protocol_fee: Protocol fee for both directions (uint24 at bit 184)
        lp_fee: LP fee currently charged (uint24 at bit 208)
    """

    sqrt_price_x96: int
    tick: int
    protocol_fee: int
    lp_fee: int

    @classmethod
    def unpack(cls, word: int) -> Slot0:
        return cls(
            sqrt_price_x96=word & UINT160_MAX,
            tick=_to_signed((word >> 160) & _UINT24_MASK, 24),
            protocol_fee=(word >> 184) & _UINT24_MASK,
            lp_fee=(word >> 208) & _UINT24_MASK,
        )


@dataclass(frozen=True)
class PositionInfo:
    liquidity: int
    fee_growth_inside0_last_x128: int
    fee_growth_inside1_last_x128: int


# =============================================================================
# Slot math
# =============================================================================


def pool_state_slot(pool_id: str | bytes, pools_slot: int = DEFAULT_LENS_CONFIG.pools_slot) -> int:
    """Storage slot of ``pools[pool_id]``."""
    return int.from_bytes(
        keccak(encode(["bytes32", "uint256"], [_pool_id_bytes(pool_id), pools_slot])), "big"
    )


def tick_info_slot(
    state_slot: int, tick: int, ticks_offset: int = DEFAULT_LENS_CONFIG.ticks_offset
) -> int:
    """Storage slot of ``pools[id].ticks[tick]``."""
    return int.from_bytes(
        keccak(encode(["int24", "uint256"], [tick, state_slot + ticks_offset])), "big"
    )


def tick_bitmap_slot(
    state_slot: int, word: int, tick_bitmap_offset: int = DEFAULT_LENS_CONFIG.tick_bitmap_offset
) -> int:
    """Storage slot of ``pools[id].tickBitmap[word]``."""
    return int.from_bytes(
        keccak(encode(["int16", "uint256"], [word, state_slot + tick_bitmap_offset])), "big"
    )


def position_key(owner: str, tick_lower: int, tick_upper: int, salt: bytes = bytes(32)) -> bytes:
    """``keccak256(abi.encodePacked(owner, tickLower, tickUpper, salt))``."""
    packed = (
        address_to_bytes(owner)
        + tick_lower.to_bytes(3, "big", signed=True)
        + tick_upper.to_bytes(3, "big", signed=True)
        + salt
    )
    return keccak(packed)


def position_info_slot(
    state_slot: int, key: bytes, positions_offset: int = DEFAULT_LENS_CONFIG.positions_offset
) -> int:
    return int.from_bytes(
        keccak(encode(["bytes32", "uint256"], [key, state_slot + positions_offset])), "big"
    )


# =============================================================================
# Lens
# =============================================================================


class PoolManagerLens:
    """Reads pool state from the PoolManager via ``eth_call`` to ``extsload``.

    Every read is a separate call against the latest block; the lens keeps
    no cache.
    """

    def __init__(
        self,
        web3_provider: str | None = None,
        config: LensConfig = DEFAULT_LENS_CONFIG,
        w3: Any = None,
    ):
        """Initialize lens.

        Args:
            web3_provider: HTTP RPC URL, used when ``w3`` is not given
            config: PoolManager address and storage layout
            w3: An existing Web3 instance (or any object with ``eth.call``)
        """
        if w3 is None:
            if web3_provider is None:
                raise ValueError("Either web3_provider or w3 is required")
            try:
                from web3 import Web3
            except ImportError as e:
                raise ImportError(
                    "web3 package required for PoolManagerLens. Install with: pip install web3"
                ) from e
            w3 = Web3(Web3.HTTPProvider(web3_provider))

        self.w3 = w3
        self.config = config
        self._pool_manager = to_checksum_address(config.pool_manager)

    # --- Raw storage ---

    def extsload(self, slot: int) -> int:
        """Read one storage word of the PoolManager.

        Raises:
            DataSourceFailure: If the RPC call fails or returns malformed data
        """
        data = EXTSLOAD_SELECTOR + _slot_key(slot)
        try:
            result = self.w3.eth.call({"to": self._pool_manager, "data": "0x" + data.hex()})
            (word,) = decode(["bytes32"], bytes(result))
        except Exception as e:
            logger.warning("lens_extsload_failed", slot=hex(slot), error=str(e))
            raise DataSourceFailure(f"extsload of slot {hex(slot)} failed: {e}") from e
        return int.from_bytes(word, "big")

    def _state_slot(self, pool_id: str | bytes) -> int:
        return pool_state_slot(pool_id, self.config.pools_slot)

    # --- Pool state ---

    def get_slot0(self, pool_id: str | bytes) -> Slot0:
        slot0 = Slot0.unpack(self.extsload(self._state_slot(pool_id)))
        logger.debug(
            "lens_slot0",
            pool_id=pool_id,
            tick=slot0.tick,
            lp_fee=slot0.lp_fee,
        )
        return slot0

    def get_liquidity(self, pool_id: str | bytes) -> int:
        return self.extsload(self._state_slot(pool_id) + self.config.liquidity_offset)

    def get_fee_growth_globals(self, pool_id: str | bytes) -> tuple[int, int]:
        state_slot = self._state_slot(pool_id)
        return (
            self.extsload(state_slot + self.config.fee_growth_global0_offset),
            self.extsload(state_slot + self.config.fee_growth_global1_offset),
        )

    def get_tick_info(self, pool_id: str | bytes, tick: int) -> Tick:
        """Read the full Tick.Info struct stored at ``tick``."""
        slot = tick_info_slot(self._state_slot(pool_id), tick, self.config.ticks_offset)
        word = self.extsload(slot)
        return Tick(
            index=tick,
            liquidity_gross=word & UINT128_MAX,
            liquidity_net=_to_signed(word >> 128, 128),
            fee_growth_outside0_x128=self.extsload(slot + 1),
            fee_growth_outside1_x128=self.extsload(slot + 2),
        )

    def get_tick_liquidity(self, pool_id: str | bytes, tick: int) -> tuple[int, int]:
        """Return (liquidity_gross, liquidity_net) at ``tick`` with a single read."""
        slot = tick_info_slot(self._state_slot(pool_id), tick, self.config.ticks_offset)
        word = self.extsload(slot)
        return word & UINT128_MAX, _to_signed(word >> 128, 128)

    def get_tick_bitmap(self, pool_id: str | bytes, word: int) -> int:
        slot = tick_bitmap_slot(self._state_slot(pool_id), word, self.config.tick_bitmap_offset)
        return self.extsload(slot)

    def get_position_info(
        self,
        pool_id: str | bytes,
        owner: str,
        tick_lower: int,
        tick_upper: int,
        salt: bytes = bytes(32),
    ) -> PositionInfo:
        """Read a position as stored by the PoolManager.

        For positions held through the position manager, ``owner`` is the
        position manager and ``salt`` is the token id as bytes32.
        """
        key = position_key(owner, tick_lower, tick_upper, salt)
        slot = position_info_slot(self._state_slot(pool_id), key, self.config.positions_offset)
        return PositionInfo(
            liquidity=self.extsload(slot) & UINT128_MAX,
            fee_growth_inside0_last_x128=self.extsload(slot + 1),
            fee_growth_inside1_last_x128=self.extsload(slot + 2),
        )

    def get_pool(
        self,
        key: PoolKey,
        currency0: Currency,
        currency1: Currency,
        tick_data_provider: TickDataProvider | None = None,
    ) -> Pool:
        """Build a Pool snapshot of the current on-chain state.

        The slot0 LP fee is used as the pool's resolved fee, which makes
        dynamic-fee pools quotable. Ticks are read lazily from the chain
        unless another provider is given.

        Raises:
            DataSourceFailure: If a read fails or the pool is not initialized
        """
        pool_id = key.pool_id
        slot0 = self.get_slot0(pool_id)
        if slot0.sqrt_price_x96 == 0:
            logger.warning("lens_pool_not_initialized", pool_id=pool_id)
            raise DataSourceFailure(f"Pool {pool_id} is not initialized")

        fee_growth0, fee_growth1 = self.get_fee_growth_globals(pool_id)
        if tick_data_provider is None:
            tick_data_provider = LensTickDataProvider(self, pool_id)

        return Pool(
            key=key,
            currency0=currency0,
            currency1=currency1,
            sqrt_price_x96=slot0.sqrt_price_x96,
            liquidity=self.get_liquidity(pool_id),
            tick_current=slot0.tick,
            tick_data_provider=tick_data_provider,
            fee_growth_global0_x128=fee_growth0,
            fee_growth_global1_x128=fee_growth1,
            lp_fee=slot0.lp_fee,
        )


class LensTickDataProvider:
    """Tick data read on demand from the PoolManager's tick bitmap.

    Bitmap words are cached per provider, so one provider should not
    outlive the snapshot it serves.
    """

    def __init__(self, lens: PoolManagerLens, pool_id: str | bytes):
        self.lens = lens
        self.pool_id = pool_id
        self._words: dict[int, int] = {}

    def _bitmap(self, word: int) -> int:
        if word not in self._words:
            self._words[word] = self.lens.get_tick_bitmap(self.pool_id, word)
        return self._words[word]

    def get_tick(self, index: int) -> Tick:
        return self.lens.get_tick_info(self.pool_id, index)

    def next_initialized_tick_within_one_word(
        self, tick: int, lte: bool, tick_spacing: int
    ) -> tuple[int, bool]:
        compressed = tick // tick_spacing

        if lte:
            word_pos, bit_pos = compressed >> 8, compressed & 0xFF
            mask = (1 << (bit_pos + 1)) - 1
            masked = self._bitmap(word_pos) & mask
            if masked:
                most_significant = masked.bit_length() - 1
                return (compressed - (bit_pos - most_significant)) * tick_spacing, True
            return (compressed - bit_pos) * tick_spacing, False

        compressed += 1
        word_pos, bit_pos = compressed >> 8, compressed & 0xFF
        mask = ~((1 << bit_pos) - 1)
        masked = self._bitmap(word_pos) & mask
        if masked:
            least_significant = (masked & -masked).bit_length() - 1
            return (compressed + (least_significant - bit_pos)) * tick_spacing, True
        return (compressed + (255 - bit_pos)) * tick_spacing, False


__all__ = [
    "EXTSLOAD_SELECTOR",
    "Slot0",
    "PositionInfo",
    "pool_state_slot",
    "tick_info_slot",
    "tick_bitmap_slot",
    "position_key",
    "position_info_slot",
    "PoolManagerLens",
    "LensTickDataProvider",
]
