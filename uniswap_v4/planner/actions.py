"""Action codes and their ABI-encoded parameter structs.

Each action the router or position manager accepts has a one-byte code and
a parameter block. Swap parameters are encoded as a single struct (the
contracts locate them through an offset); every other action is encoded
as a flat parameter list, in the order the contracts' calldata decoders
read them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar

from eth_abi import decode, encode

from uniswap_v4.constants import BIPS_BASE, EMPTY_BYTES
from uniswap_v4.entities.pool import POOL_KEY_ABI, PoolKey
from uniswap_v4.errors import InvalidAction
from uniswap_v4.math.tick import validate_tick_range
from uniswap_v4.types import address_to_bytes, normalize_address, validate_uint
from uniswap_v4.utils.path import PATH_KEY_ABI, PathKey


class Actions(IntEnum):
    """Action codes understood by the V4 router and position manager."""

    # Liquidity actions
    INCREASE_LIQUIDITY = 0x00
    DECREASE_LIQUIDITY = 0x01
    MINT_POSITION = 0x02
    BURN_POSITION = 0x03

    # Swapping
    SWAP_EXACT_IN_SINGLE = 0x06
    SWAP_EXACT_IN = 0x07
    SWAP_EXACT_OUT_SINGLE = 0x08
    SWAP_EXACT_OUT = 0x09

    # Closing deltas on the pool manager
    SETTLE = 0x0B
    SETTLE_ALL = 0x0C
    SETTLE_PAIR = 0x0D
    TAKE = 0x0E
    TAKE_ALL = 0x0F
    TAKE_PORTION = 0x10
    TAKE_PAIR = 0x11
    CLOSE_CURRENCY = 0x12
    CLEAR_OR_TAKE = 0x13
    SWEEP = 0x14

    # Wrapping native currency
    WRAP = 0x15
    UNWRAP = 0x16


# =============================================================================
# Field validation
# =============================================================================


def _uint(value: int, bits: int, name: str) -> int:
    try:
        return validate_uint(value, bits, name)
    except ValueError as err:
        raise InvalidAction(str(err)) from err


def _address(value: str, name: str) -> str:
    try:
        return normalize_address(value, validate=True)
    except (ValueError, AttributeError) as err:
        raise InvalidAction(f"Invalid {name}: {value!r}") from err


def _bytes(value: bytes, name: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise InvalidAction(f"{name} must be bytes, got {type(value).__name__}")
    return bytes(value)


def _pool_key_from_abi(values: tuple[Any, ...]) -> PoolKey:
    currency0, currency1, fee, tick_spacing, hooks = values
    return PoolKey(currency0, currency1, fee, tick_spacing, hooks)


def _path_from_abi(values: tuple[tuple[Any, ...], ...]) -> tuple[PathKey, ...]:
    return tuple(PathKey(*value) for value in values)


# =============================================================================
# Parameter structs
# =============================================================================


@dataclass(frozen=True)
class ActionParams:
    """Base class for action parameters.

    Subclasses declare the action code and ABI types, validate fields in
    ``validate`` and convert to and from eth_abi values.
    """

    ACTION: ClassVar[Actions]
    ABI_TYPES: ClassVar[tuple[str, ...]]

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise InvalidAction if a field is outside its schema."""

    def to_abi(self) -> tuple[Any, ...]:
        raise NotImplementedError

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> ActionParams:
        raise NotImplementedError

    def encode(self) -> bytes:
        return encode(list(self.ABI_TYPES), list(self.to_abi()))

    @classmethod
    def decode(cls, data: bytes) -> ActionParams:
        return cls.from_abi(tuple(decode(list(cls.ABI_TYPES), data)))


@dataclass(frozen=True)
class IncreaseLiquidityParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.INCREASE_LIQUIDITY
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("uint256", "uint256", "uint128", "uint128", "bytes")

    token_id: int
    liquidity: int
    amount0_max: int
    amount1_max: int
    hook_data: bytes = EMPTY_BYTES

    def validate(self) -> None:
        _uint(self.token_id, 256, "token_id")
        if _uint(self.liquidity, 256, "liquidity") == 0:
            raise InvalidAction("Increase requires positive liquidity")
        _uint(self.amount0_max, 128, "amount0_max")
        _uint(self.amount1_max, 128, "amount1_max")
        _bytes(self.hook_data, "hook_data")

    def to_abi(self) -> tuple[Any, ...]:
        return (self.token_id, self.liquidity, self.amount0_max, self.amount1_max, self.hook_data)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> IncreaseLiquidityParams:
        return cls(*values)


@dataclass(frozen=True)
class DecreaseLiquidityParams(ActionParams):
    """Decrease liquidity; zero liquidity only collects fees."""

    ACTION: ClassVar[Actions] = Actions.DECREASE_LIQUIDITY
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("uint256", "uint256", "uint128", "uint128", "bytes")

    token_id: int
    liquidity: int
    amount0_min: int
    amount1_min: int
    hook_data: bytes = EMPTY_BYTES

    def validate(self) -> None:
        _uint(self.token_id, 256, "token_id")
        _uint(self.liquidity, 256, "liquidity")
        _uint(self.amount0_min, 128, "amount0_min")
        _uint(self.amount1_min, 128, "amount1_min")
        _bytes(self.hook_data, "hook_data")

    def to_abi(self) -> tuple[Any, ...]:
        return (self.token_id, self.liquidity, self.amount0_min, self.amount1_min, self.hook_data)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> DecreaseLiquidityParams:
        return cls(*values)


@dataclass(frozen=True)
class MintPositionParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.MINT_POSITION
    ABI_TYPES: ClassVar[tuple[str, ...]] = (
        POOL_KEY_ABI,
        "int24",
        "int24",
        "uint256",
        "uint128",
        "uint128",
        "address",
        "bytes",
    )

    pool_key: PoolKey
    tick_lower: int
    tick_upper: int
    liquidity: int
    amount0_max: int
    amount1_max: int
    owner: str
    hook_data: bytes = EMPTY_BYTES

    def validate(self) -> None:
        validate_tick_range(self.tick_lower, self.tick_upper, self.pool_key.tick_spacing)
        if _uint(self.liquidity, 256, "liquidity") == 0:
            raise InvalidAction("Mint requires positive liquidity")
        _uint(self.amount0_max, 128, "amount0_max")
        _uint(self.amount1_max, 128, "amount1_max")
        object.__setattr__(self, "owner", _address(self.owner, "owner"))
        _bytes(self.hook_data, "hook_data")

    def to_abi(self) -> tuple[Any, ...]:
        return (
            self.pool_key.to_abi(),
            self.tick_lower,
            self.tick_upper,
            self.liquidity,
            self.amount0_max,
            self.amount1_max,
            address_to_bytes(self.owner),
            self.hook_data,
        )

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> MintPositionParams:
        pool_key, *rest = values
        return cls(_pool_key_from_abi(pool_key), *rest)


@dataclass(frozen=True)
class BurnPositionParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.BURN_POSITION
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("uint256", "uint128", "uint128", "bytes")

    token_id: int
    amount0_min: int
    amount1_min: int
    hook_data: bytes = EMPTY_BYTES

    def validate(self) -> None:
        _uint(self.token_id, 256, "token_id")
        _uint(self.amount0_min, 128, "amount0_min")
        _uint(self.amount1_min, 128, "amount1_min")
        _bytes(self.hook_data, "hook_data")

    def to_abi(self) -> tuple[Any, ...]:
        return (self.token_id, self.amount0_min, self.amount1_min, self.hook_data)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> BurnPositionParams:
        return cls(*values)


@dataclass(frozen=True)
class SwapExactInSingleParams(ActionParams):
    """Exact-input swap through one pool; amount_in 0 swaps the open credit."""

    ACTION: ClassVar[Actions] = Actions.SWAP_EXACT_IN_SINGLE
    ABI_TYPES: ClassVar[tuple[str, ...]] = (f"({POOL_KEY_ABI},bool,uint128,uint128,bytes)",)

    pool_key: PoolKey
    zero_for_one: bool
    amount_in: int
    amount_out_minimum: int
    hook_data: bytes = EMPTY_BYTES

    def validate(self) -> None:
        _uint(self.amount_in, 128, "amount_in")
        _uint(self.amount_out_minimum, 128, "amount_out_minimum")
        _bytes(self.hook_data, "hook_data")

    @property
    def currency_in(self) -> str:
        return self.pool_key.currency0 if self.zero_for_one else self.pool_key.currency1

    @property
    def currency_out(self) -> str:
        return self.pool_key.currency1 if self.zero_for_one else self.pool_key.currency0

    def to_abi(self) -> tuple[Any, ...]:
        return (
            (
                self.pool_key.to_abi(),
                self.zero_for_one,
                self.amount_in,
                self.amount_out_minimum,
                self.hook_data,
            ),
        )

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> SwapExactInSingleParams:
        pool_key, *rest = values[0]
        return cls(_pool_key_from_abi(pool_key), *rest)


@dataclass(frozen=True)
class SwapExactInParams(ActionParams):
    """Exact-input multi-hop swap; each PathKey names the currency a hop produces."""

    ACTION: ClassVar[Actions] = Actions.SWAP_EXACT_IN
    ABI_TYPES: ClassVar[tuple[str, ...]] = (f"(address,{PATH_KEY_ABI}[],uint128,uint128)",)

    currency_in: str
    path: tuple[PathKey, ...]
    amount_in: int
    amount_out_minimum: int

    def validate(self) -> None:
        object.__setattr__(self, "currency_in", _address(self.currency_in, "currency_in"))
        object.__setattr__(self, "path", tuple(self.path))
        if not self.path:
            raise InvalidAction("Multi-hop swap requires a non-empty path")
        _uint(self.amount_in, 128, "amount_in")
        _uint(self.amount_out_minimum, 128, "amount_out_minimum")

    @property
    def currency_out(self) -> str:
        return self.path[-1].intermediate_currency

    def to_abi(self) -> tuple[Any, ...]:
        return (
            (
                address_to_bytes(self.currency_in),
                [key.to_abi() for key in self.path],
                self.amount_in,
                self.amount_out_minimum,
            ),
        )

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> SwapExactInParams:
        currency_in, path, amount_in, amount_out_minimum = values[0]
        return cls(currency_in, _path_from_abi(path), amount_in, amount_out_minimum)


@dataclass(frozen=True)
class SwapExactOutSingleParams(ActionParams):
    """Exact-output swap through one pool; amount_out 0 pays off the open debt."""

    ACTION: ClassVar[Actions] = Actions.SWAP_EXACT_OUT_SINGLE
    ABI_TYPES: ClassVar[tuple[str, ...]] = (f"({POOL_KEY_ABI},bool,uint128,uint128,bytes)",)

    pool_key: PoolKey
    zero_for_one: bool
    amount_out: int
    amount_in_maximum: int
    hook_data: bytes = EMPTY_BYTES

    def validate(self) -> None:
        _uint(self.amount_out, 128, "amount_out")
        _uint(self.amount_in_maximum, 128, "amount_in_maximum")
        _bytes(self.hook_data, "hook_data")

    @property
    def currency_in(self) -> str:
        return self.pool_key.currency0 if self.zero_for_one else self.pool_key.currency1

    @property
    def currency_out(self) -> str:
        return self.pool_key.currency1 if self.zero_for_one else self.pool_key.currency0

    def to_abi(self) -> tuple[Any, ...]:
        return (
            (
                self.pool_key.to_abi(),
                self.zero_for_one,
                self.amount_out,
                self.amount_in_maximum,
                self.hook_data,
            ),
        )

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> SwapExactOutSingleParams:
        pool_key, *rest = values[0]
        return cls(_pool_key_from_abi(pool_key), *rest)


@dataclass(frozen=True)
class SwapExactOutParams(ActionParams):
    """Exact-output multi-hop swap; each PathKey names the currency a hop consumes."""

    ACTION: ClassVar[Actions] = Actions.SWAP_EXACT_OUT
    ABI_TYPES: ClassVar[tuple[str, ...]] = (f"(address,{PATH_KEY_ABI}[],uint128,uint128)",)

    currency_out: str
    path: tuple[PathKey, ...]
    amount_out: int
    amount_in_maximum: int

    def validate(self) -> None:
        object.__setattr__(self, "currency_out", _address(self.currency_out, "currency_out"))
        object.__setattr__(self, "path", tuple(self.path))
        if not self.path:
            raise InvalidAction("Multi-hop swap requires a non-empty path")
        _uint(self.amount_out, 128, "amount_out")
        _uint(self.amount_in_maximum, 128, "amount_in_maximum")

    @property
    def currency_in(self) -> str:
        return self.path[0].intermediate_currency

    def to_abi(self) -> tuple[Any, ...]:
        return (
            (
                address_to_bytes(self.currency_out),
                [key.to_abi() for key in self.path],
                self.amount_out,
                self.amount_in_maximum,
            ),
        )

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> SwapExactOutParams:
        currency_out, path, amount_out, amount_in_maximum = values[0]
        return cls(currency_out, _path_from_abi(path), amount_out, amount_in_maximum)


@dataclass(frozen=True)
class SettleParams(ActionParams):
    """Pay a currency to the pool manager; amount 0 pays the full open debt."""

    ACTION: ClassVar[Actions] = Actions.SETTLE
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "uint256", "bool")

    currency: str
    amount: int
    payer_is_user: bool

    def validate(self) -> None:
        object.__setattr__(self, "currency", _address(self.currency, "currency"))
        _uint(self.amount, 256, "amount")

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency), self.amount, self.payer_is_user)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> SettleParams:
        return cls(*values)


@dataclass(frozen=True)
class SettleAllParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.SETTLE_ALL
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "uint256")

    currency: str
    max_amount: int

    def validate(self) -> None:
        object.__setattr__(self, "currency", _address(self.currency, "currency"))
        _uint(self.max_amount, 256, "max_amount")

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency), self.max_amount)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> SettleAllParams:
        return cls(*values)


@dataclass(frozen=True)
class SettlePairParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.SETTLE_PAIR
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "address")

    currency0: str
    currency1: str

    def validate(self) -> None:
        object.__setattr__(self, "currency0", _address(self.currency0, "currency0"))
        object.__setattr__(self, "currency1", _address(self.currency1, "currency1"))

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency0), address_to_bytes(self.currency1))

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> SettlePairParams:
        return cls(*values)


@dataclass(frozen=True)
class TakeParams(ActionParams):
    """Withdraw a currency from the pool manager; amount 0 takes the full open credit."""

    ACTION: ClassVar[Actions] = Actions.TAKE
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "address", "uint256")

    currency: str
    recipient: str
    amount: int

    def validate(self) -> None:
        object.__setattr__(self, "currency", _address(self.currency, "currency"))
        object.__setattr__(self, "recipient", _address(self.recipient, "recipient"))
        _uint(self.amount, 256, "amount")

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency), address_to_bytes(self.recipient), self.amount)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> TakeParams:
        return cls(*values)


@dataclass(frozen=True)
class TakeAllParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.TAKE_ALL
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "uint256")

    currency: str
    min_amount: int

    def validate(self) -> None:
        object.__setattr__(self, "currency", _address(self.currency, "currency"))
        _uint(self.min_amount, 256, "min_amount")

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency), self.min_amount)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> TakeAllParams:
        return cls(*values)


@dataclass(frozen=True)
class TakePortionParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.TAKE_PORTION
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "address", "uint256")

    currency: str
    recipient: str
    bips: int

    def validate(self) -> None:
        object.__setattr__(self, "currency", _address(self.currency, "currency"))
        object.__setattr__(self, "recipient", _address(self.recipient, "recipient"))
        if not 0 < _uint(self.bips, 256, "bips") <= BIPS_BASE:
            raise InvalidAction(f"Portion must be in (0, {BIPS_BASE}] bips, got {self.bips}")

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency), address_to_bytes(self.recipient), self.bips)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> TakePortionParams:
        return cls(*values)


@dataclass(frozen=True)
class TakePairParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.TAKE_PAIR
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "address", "address")

    currency0: str
    currency1: str
    recipient: str

    def validate(self) -> None:
        object.__setattr__(self, "currency0", _address(self.currency0, "currency0"))
        object.__setattr__(self, "currency1", _address(self.currency1, "currency1"))
        object.__setattr__(self, "recipient", _address(self.recipient, "recipient"))

    def to_abi(self) -> tuple[Any, ...]:
        return (
            address_to_bytes(self.currency0),
            address_to_bytes(self.currency1),
            address_to_bytes(self.recipient),
        )

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> TakePairParams:
        return cls(*values)


@dataclass(frozen=True)
class CloseCurrencyParams(ActionParams):
    """Settle or take whatever delta the currency has."""

    ACTION: ClassVar[Actions] = Actions.CLOSE_CURRENCY
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address",)

    currency: str

    def validate(self) -> None:
        object.__setattr__(self, "currency", _address(self.currency, "currency"))

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency),)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> CloseCurrencyParams:
        return cls(*values)


@dataclass(frozen=True)
class ClearOrTakeParams(ActionParams):
    """Forfeit a credit up to amount_max, or take it if larger."""

    ACTION: ClassVar[Actions] = Actions.CLEAR_OR_TAKE
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "uint256")

    currency: str
    amount_max: int

    def validate(self) -> None:
        object.__setattr__(self, "currency", _address(self.currency, "currency"))
        _uint(self.amount_max, 256, "amount_max")

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency), self.amount_max)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> ClearOrTakeParams:
        return cls(*values)


@dataclass(frozen=True)
class SweepParams(ActionParams):
    """Send the router's leftover balance of a currency to the recipient."""

    ACTION: ClassVar[Actions] = Actions.SWEEP
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("address", "address")

    currency: str
    recipient: str

    def validate(self) -> None:
        object.__setattr__(self, "currency", _address(self.currency, "currency"))
        object.__setattr__(self, "recipient", _address(self.recipient, "recipient"))

    def to_abi(self) -> tuple[Any, ...]:
        return (address_to_bytes(self.currency), address_to_bytes(self.recipient))

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> SweepParams:
        return cls(*values)


@dataclass(frozen=True)
class WrapParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.WRAP
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("uint256",)

    amount: int

    def validate(self) -> None:
        _uint(self.amount, 256, "amount")

    def to_abi(self) -> tuple[Any, ...]:
        return (self.amount,)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> WrapParams:
        return cls(*values)


@dataclass(frozen=True)
class UnwrapParams(ActionParams):
    ACTION: ClassVar[Actions] = Actions.UNWRAP
    ABI_TYPES: ClassVar[tuple[str, ...]] = ("uint256",)

    amount: int

    def validate(self) -> None:
        _uint(self.amount, 256, "amount")

    def to_abi(self) -> tuple[Any, ...]:
        return (self.amount,)

    @classmethod
    def from_abi(cls, values: tuple[Any, ...]) -> UnwrapParams:
        return cls(*values)


ACTION_PARAMS: dict[Actions, type[ActionParams]] = {
    cls.ACTION: cls
    for cls in (
        IncreaseLiquidityParams,
        DecreaseLiquidityParams,
        MintPositionParams,
        BurnPositionParams,
        SwapExactInSingleParams,
        SwapExactInParams,
        SwapExactOutSingleParams,
        SwapExactOutParams,
        SettleParams,
        SettleAllParams,
        SettlePairParams,
        TakeParams,
        TakeAllParams,
        TakePortionParams,
        TakePairParams,
        CloseCurrencyParams,
        ClearOrTakeParams,
        SweepParams,
        WrapParams,
        UnwrapParams,
    )
}


__all__ = [
    "Actions",
    "ActionParams",
    "ACTION_PARAMS",
    "IncreaseLiquidityParams",
    "DecreaseLiquidityParams",
    "MintPositionParams",
    "BurnPositionParams",
    "SwapExactInSingleParams",
    "SwapExactInParams",
    "SwapExactOutSingleParams",
    "SwapExactOutParams",
    "SettleParams",
    "SettleAllParams",
    "SettlePairParams",
    "TakeParams",
    "TakeAllParams",
    "TakePortionParams",
    "TakePairParams",
    "CloseCurrencyParams",
    "ClearOrTakeParams",
    "SweepParams",
    "WrapParams",
    "UnwrapParams",
]
