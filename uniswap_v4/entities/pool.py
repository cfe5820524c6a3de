"""Pool identity (PoolKey) and pool state snapshots (Pool).

V4 pools are not separate contracts: the singleton PoolManager addresses
each pool by the keccak256 hash of its ABI-encoded PoolKey. A Pool is an
immutable snapshot of one pool's state plus a tick-data provider; swap
queries return a new Pool instead of mutating this one.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from functools import cached_property

import structlog
from eth_abi import encode
from eth_utils import keccak

from uniswap_v4.constants import (
    DYNAMIC_FEE_FLAG,
    MAX_LP_FEE,
    MAX_TICK_SPACING,
    MIN_TICK_SPACING,
)
from uniswap_v4.entities.currency import Currency, CurrencyAmount, sort_currencies
from uniswap_v4.entities.price import Price
from uniswap_v4.entities.tick_data import (
    NoTickDataProvider,
    Tick,
    TickDataProvider,
    TickListDataProvider,
)
from uniswap_v4.errors import (
    DataSourceFailure,
    InsufficientLiquidity,
    InvalidCurrency,
    InvalidRange,
    MalformedKey,
    UnsupportedHook,
    V4Error,
)
from uniswap_v4.math.fixed_point import Q192
from uniswap_v4.math.liquidity_math import add_delta
from uniswap_v4.math.swap_math import compute_swap_step
from uniswap_v4.math.tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from uniswap_v4.types import (
    ADDRESS_ZERO,
    UINT256_MAX,
    address_to_bytes,
    normalize_address,
    validate_uint,
)
from uniswap_v4.utils.hook import HookPermissions, has_swap_permissions, permissions

logger = structlog.get_logger()

POOL_KEY_ABI = "(address,address,uint24,int24,address)"


# =============================================================================
# Fees
# =============================================================================


@dataclass(frozen=True)
class LPFee:
    """LP fee of a pool: a static value in pips, or dynamic (set by the hook).

    ``pips is None`` is the dynamic case; use ``LPFee.dynamic()`` rather than
    constructing it directly.
    """

    pips: int | None

    def __post_init__(self) -> None:
        if self.pips is not None and not 0 <= self.pips <= MAX_LP_FEE:
            raise MalformedKey(f"LP fee {self.pips} outside [0, {MAX_LP_FEE}]")

    @classmethod
    def static(cls, pips: int) -> LPFee:
        return cls(pips)

    @classmethod
    def dynamic(cls) -> LPFee:
        return cls(None)

    @classmethod
    def from_encoded(cls, value: int) -> LPFee:
        """Decode the uint24 fee field of a PoolKey."""
        if value == DYNAMIC_FEE_FLAG:
            return cls.dynamic()
        return cls.static(value)

    @property
    def is_dynamic(self) -> bool:
        return self.pips is None

    @property
    def encoded(self) -> int:
        """Value of the uint24 fee field."""
        return DYNAMIC_FEE_FLAG if self.pips is None else self.pips


DYNAMIC_FEE = LPFee.dynamic()


# =============================================================================
# PoolKey
# =============================================================================


@dataclass(frozen=True)
class PoolKey:
    """Structural identity of a pool.

    Attributes:
        currency0: Address of the lower-sorting currency (zero address for native)
        currency1: Address of the higher-sorting currency
        fee: LP fee (an int is accepted and decoded like the wire value)
        tick_spacing: Tick spacing in [1, 32767]
        hooks: Hook contract address, zero address for none
    """

    currency0: str
    currency1: str
    fee: LPFee
    tick_spacing: int
    hooks: str = ADDRESS_ZERO

    def __post_init__(self) -> None:
        try:
            currency0 = normalize_address(self.currency0, validate=True)
            currency1 = normalize_address(self.currency1, validate=True)
            hooks = normalize_address(self.hooks, validate=True)
        except ValueError as err:
            raise MalformedKey(str(err)) from err

        fee = self.fee if isinstance(self.fee, LPFee) else LPFee.from_encoded(self.fee)

        if int(currency0, 16) >= int(currency1, 16):
            raise MalformedKey(f"currency0 {currency0} must sort below currency1 {currency1}")
        if not MIN_TICK_SPACING <= self.tick_spacing <= MAX_TICK_SPACING:
            raise MalformedKey(
                f"Tick spacing {self.tick_spacing} outside [{MIN_TICK_SPACING}, {MAX_TICK_SPACING}]"
            )
        if fee.is_dynamic and hooks == ADDRESS_ZERO:
            raise MalformedKey("Dynamic fee pool requires a hook")

        object.__setattr__(self, "currency0", currency0)
        object.__setattr__(self, "currency1", currency1)
        object.__setattr__(self, "hooks", hooks)
        object.__setattr__(self, "fee", fee)

    @classmethod
    def from_currencies(
        cls,
        currency_a: Currency,
        currency_b: Currency,
        fee: LPFee | int,
        tick_spacing: int,
        hooks: str = ADDRESS_ZERO,
    ) -> PoolKey:
        """Build a key from two currencies in any order."""
        try:
            currency0, currency1 = sort_currencies(currency_a, currency_b)
        except InvalidCurrency as err:
            raise MalformedKey(str(err)) from err
        return cls(currency0.address, currency1.address, fee, tick_spacing, hooks)

    def to_abi(self) -> tuple[bytes, bytes, int, int, bytes]:
        """Tuple matching the PoolKey struct for eth_abi."""
        return (
            address_to_bytes(self.currency0),
            address_to_bytes(self.currency1),
            self.fee.encoded,
            self.tick_spacing,
            address_to_bytes(self.hooks),
        )

    @property
    def pool_id(self) -> str:
        """keccak256(abi.encode(poolKey)) as 0x-prefixed hex."""
        return "0x" + keccak(encode([POOL_KEY_ABI], [self.to_abi()])).hex()

    @property
    def hook_permissions(self) -> HookPermissions:
        return permissions(self.hooks)


# =============================================================================
# Pool
# =============================================================================


@dataclass
class SwapState:
    """Running state of a simulated swap."""

    amount_specified_remaining: int
    amount_calculated: int
    sqrt_price_x96: int
    tick: int
    liquidity: int


@dataclass(frozen=True)
class Pool:
    """Snapshot of a pool's state.

    Build one with ``Pool.create`` from two currencies, or directly from a
    PoolKey and the matching currencies.

    Attributes:
        key: Pool identity
        currency0: Currency whose address is key.currency0
        currency1: Currency whose address is key.currency1
        sqrt_price_x96: Current Q64.96 sqrt price
        liquidity: Liquidity in range at the current tick
        tick_current: Current tick
        tick_data_provider: Source of initialized ticks for swap simulation
        fee_growth_global0_x128: Currency0 fee growth per unit of liquidity
        fee_growth_global1_x128: Currency1 fee growth per unit of liquidity
        lp_fee: Fee currently charged by a dynamic-fee pool (from slot0)
    """

    key: PoolKey
    currency0: Currency
    currency1: Currency
    sqrt_price_x96: int
    liquidity: int
    tick_current: int
    tick_data_provider: TickDataProvider = field(
        default_factory=NoTickDataProvider, compare=False, repr=False
    )
    fee_growth_global0_x128: int = 0
    fee_growth_global1_x128: int = 0
    lp_fee: int | None = None

    def __post_init__(self) -> None:
        if (
            self.currency0.address != self.key.currency0
            or self.currency1.address != self.key.currency1
        ):
            raise MalformedKey("Pool currencies do not match the pool key")
        validate_uint(self.sqrt_price_x96, 160, "sqrt_price_x96")
        validate_uint(self.liquidity, 128, "liquidity")
        if self.lp_fee is not None and not 0 <= self.lp_fee <= MAX_LP_FEE:
            raise MalformedKey(f"LP fee {self.lp_fee} outside [0, {MAX_LP_FEE}]")

        lower = get_sqrt_ratio_at_tick(self.tick_current)
        upper = (
            get_sqrt_ratio_at_tick(self.tick_current + 1)
            if self.tick_current < MAX_TICK
            else MAX_SQRT_RATIO
        )
        if not lower <= self.sqrt_price_x96 <= upper:
            raise InvalidRange(
                f"Sqrt price {self.sqrt_price_x96} not within tick {self.tick_current}"
            )

    @classmethod
    def create(
        cls,
        currency_a: Currency,
        currency_b: Currency,
        fee: LPFee | int,
        tick_spacing: int,
        hooks: str,
        sqrt_price_x96: int,
        liquidity: int,
        tick_current: int,
        ticks: TickDataProvider | Iterable[Tick] | None = None,
        **state: int | None,
    ) -> Pool:
        """Build a pool from two currencies in any order.

        Args:
            currency_a: One currency of the pool
            currency_b: The other currency
            fee: LP fee (LPFee or wire value)
            tick_spacing: Tick spacing
            hooks: Hook address (zero address for none)
            sqrt_price_x96: Current sqrt price
            liquidity: Current in-range liquidity
            tick_current: Current tick
            ticks: Tick-data provider, or a list of ticks to wrap in a
                TickListDataProvider; None means no tick data
            **state: Optional fee-growth globals and lp_fee
        """
        key = PoolKey.from_currencies(currency_a, currency_b, fee, tick_spacing, hooks)
        currency0, currency1 = sort_currencies(currency_a, currency_b)
        if ticks is None:
            provider: TickDataProvider = NoTickDataProvider()
        elif isinstance(ticks, Iterable):
            provider = TickListDataProvider(ticks, tick_spacing)
        else:
            provider = ticks
        return cls(
            key,
            currency0,
            currency1,
            sqrt_price_x96,
            liquidity,
            tick_current,
            provider,
            **state,
        )

    @staticmethod
    def get_pool_id(
        currency_a: Currency,
        currency_b: Currency,
        fee: LPFee | int,
        tick_spacing: int,
        hooks: str = ADDRESS_ZERO,
    ) -> str:
        return PoolKey.from_currencies(currency_a, currency_b, fee, tick_spacing, hooks).pool_id

    # --- Identity ---

    @property
    def pool_id(self) -> str:
        return self.key.pool_id

    @property
    def fee(self) -> LPFee:
        return self.key.fee

    @property
    def tick_spacing(self) -> int:
        return self.key.tick_spacing

    @property
    def hooks(self) -> str:
        return self.key.hooks

    @property
    def chain_id(self) -> int:
        return self.currency0.chain_id

    @cached_property
    def hook_permissions(self) -> HookPermissions:
        return self.key.hook_permissions

    def involves_currency(self, currency: Currency) -> bool:
        return currency == self.currency0 or currency == self.currency1

    def other_currency(self, currency: Currency) -> Currency:
        """The pool currency that is not ``currency``."""
        if currency == self.currency0:
            return self.currency1
        if currency == self.currency1:
            return self.currency0
        raise InvalidCurrency(f"{currency} is not in pool {self.pool_id}")

    # --- Prices ---

    @cached_property
    def currency0_price(self) -> Price:
        """Price of currency0 in currency1."""
        sqrt_price = self.sqrt_price_x96
        return Price(self.currency0, self.currency1, Q192, sqrt_price * sqrt_price)

    @cached_property
    def currency1_price(self) -> Price:
        """Price of currency1 in currency0."""
        return self.currency0_price.invert()

    def price_of(self, currency: Currency) -> Price:
        if currency == self.currency0:
            return self.currency0_price
        if currency == self.currency1:
            return self.currency1_price
        raise InvalidCurrency(f"{currency} is not in pool {self.pool_id}")

    # --- Swaps ---

    @property
    def swap_fee(self) -> int:
        """Fee in pips applied by swap simulation.

        Raises:
            UnsupportedHook: If the pool has a dynamic fee and no resolved lp_fee
        """
        if self.fee.pips is not None:
            return self.fee.pips
        if self.lp_fee is None:
            raise UnsupportedHook(f"Dynamic fee of pool {self.pool_id} is not resolved")
        return self.lp_fee

    def get_output_amount(
        self, input_amount: CurrencyAmount, sqrt_price_limit_x96: int | None = None
    ) -> tuple[CurrencyAmount, Pool]:
        """Simulate an exact-input swap.

        Args:
            input_amount: Amount of one pool currency to sell
            sqrt_price_limit_x96: Optional price the swap may not cross

        Returns:
            Tuple of (output amount, pool after the swap)

        Raises:
            InvalidCurrency: If the input currency is not in the pool
            InsufficientLiquidity: If no price limit is given and the
                liquidity is exhausted before the input is consumed
            UnsupportedHook: If the hook can change swap outcomes
            DataSourceFailure: If tick data cannot be read
        """
        if not self.involves_currency(input_amount.currency):
            raise InvalidCurrency(f"{input_amount.currency} is not in pool {self.pool_id}")

        zero_for_one = input_amount.currency == self.currency0
        state = self._swap(zero_for_one, input_amount.quotient, sqrt_price_limit_x96)

        if state.amount_specified_remaining != 0 and sqrt_price_limit_x96 is None:
            raise InsufficientLiquidity(
                f"Pool {self.pool_id} cannot absorb {input_amount.quotient} input"
            )

        output_currency = self.currency1 if zero_for_one else self.currency0
        return CurrencyAmount(output_currency, -state.amount_calculated), self._after(state)

    def get_input_amount(
        self, output_amount: CurrencyAmount, sqrt_price_limit_x96: int | None = None
    ) -> tuple[CurrencyAmount, Pool]:
        """Simulate an exact-output swap.

        Returns:
            Tuple of (required input amount, pool after the swap)

        Raises:
            InvalidCurrency: If the output currency is not in the pool
            InsufficientLiquidity: If the requested output cannot be filled
                before the liquidity or the price limit is exhausted
            UnsupportedHook: If the hook can change swap outcomes
            DataSourceFailure: If tick data cannot be read
        """
        if not self.involves_currency(output_amount.currency):
            raise InvalidCurrency(f"{output_amount.currency} is not in pool {self.pool_id}")

        zero_for_one = output_amount.currency == self.currency1
        state = self._swap(zero_for_one, -output_amount.quotient, sqrt_price_limit_x96)

        if state.amount_specified_remaining != 0:
            raise InsufficientLiquidity(
                f"Pool {self.pool_id} cannot fill {output_amount.quotient} output"
            )

        input_currency = self.currency0 if zero_for_one else self.currency1
        return CurrencyAmount(input_currency, state.amount_calculated), self._after(state)

    def _after(self, state: SwapState) -> Pool:
        return replace(
            self,
            sqrt_price_x96=state.sqrt_price_x96,
            liquidity=state.liquidity,
            tick_current=state.tick,
        )

    def _swap(
        self, zero_for_one: bool, amount_specified: int, sqrt_price_limit_x96: int | None
    ) -> SwapState:
        """Run the tick-crossing swap loop.

        ``amount_specified`` is positive for exact input and negative for
        exact output. ``amount_calculated`` ends negative (output paid) for
        exact input and positive (input owed, fee included) for exact output.
        """
        if has_swap_permissions(self.hooks):
            raise UnsupportedHook(f"Hook {self.hooks} can modify swaps of pool {self.pool_id}")
        fee = self.swap_fee

        if sqrt_price_limit_x96 is None:
            sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1

        if zero_for_one:
            if not MIN_SQRT_RATIO < sqrt_price_limit_x96 < self.sqrt_price_x96:
                raise InvalidRange(f"Price limit {sqrt_price_limit_x96} not below current price")
        elif not self.sqrt_price_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO:
            raise InvalidRange(f"Price limit {sqrt_price_limit_x96} not above current price")

        exact_input = amount_specified >= 0
        state = SwapState(
            amount_specified_remaining=amount_specified,
            amount_calculated=0,
            sqrt_price_x96=self.sqrt_price_x96,
            tick=self.tick_current,
            liquidity=self.liquidity,
        )

        while (
            state.amount_specified_remaining != 0
            and state.sqrt_price_x96 != sqrt_price_limit_x96
        ):
            sqrt_price_start_x96 = state.sqrt_price_x96
            tick_next, initialized = self._next_initialized_tick(state.tick, zero_for_one)
            tick_next = max(MIN_TICK, min(MAX_TICK, tick_next))
            sqrt_price_next_x96 = get_sqrt_ratio_at_tick(tick_next)

            if zero_for_one:
                target = max(sqrt_price_next_x96, sqrt_price_limit_x96)
            else:
                target = min(sqrt_price_next_x96, sqrt_price_limit_x96)

            state.sqrt_price_x96, amount_in, amount_out, fee_amount = compute_swap_step(
                state.sqrt_price_x96,
                target,
                state.liquidity,
                state.amount_specified_remaining,
                fee,
            )

            if exact_input:
                state.amount_specified_remaining -= amount_in + fee_amount
                state.amount_calculated -= amount_out
            else:
                state.amount_specified_remaining += amount_out
                state.amount_calculated += amount_in + fee_amount

            if state.sqrt_price_x96 == sqrt_price_next_x96:
                if initialized:
                    liquidity_net = self._get_tick(tick_next).liquidity_net
                    # Crossing right to left subtracts the liquidity that was added
                    if zero_for_one:
                        liquidity_net = -liquidity_net
                    state.liquidity = add_delta(state.liquidity, liquidity_net)
                    logger.debug(
                        "swap_tick_crossed",
                        pool_id=self.pool_id,
                        tick=tick_next,
                        liquidity=state.liquidity,
                    )
                state.tick = tick_next - 1 if zero_for_one else tick_next
            elif state.sqrt_price_x96 != sqrt_price_start_x96:
                state.tick = get_tick_at_sqrt_ratio(state.sqrt_price_x96)

        return state

    def _next_initialized_tick(self, tick: int, zero_for_one: bool) -> tuple[int, bool]:
        try:
            tick_next, initialized = self.tick_data_provider.next_initialized_tick_within_one_word(
                tick, zero_for_one, self.tick_spacing
            )
        except V4Error:
            raise
        except Exception as err:
            logger.warning(
                "tick_data_fetch_failed", pool_id=self.pool_id, tick=tick, error=str(err)
            )
            raise DataSourceFailure(f"Tick data source failed at tick {tick}") from err

        # The provider must move the cursor in the swap direction
        if (zero_for_one and tick_next > tick) or (not zero_for_one and tick_next <= tick):
            raise DataSourceFailure(
                f"Tick data source returned {tick_next} from {tick} "
                f"({'down' if zero_for_one else 'up'})"
            )
        return tick_next, initialized

    def _get_tick(self, index: int) -> Tick:
        try:
            return self.tick_data_provider.get_tick(index)
        except V4Error:
            raise
        except Exception as err:
            logger.warning(
                "tick_data_fetch_failed", pool_id=self.pool_id, tick=index, error=str(err)
            )
            raise DataSourceFailure(f"Tick data source failed to read tick {index}") from err

    # --- Fees ---

    def get_fee_growth_inside(self, tick_lower: int, tick_upper: int) -> tuple[int, int]:
        """Fee growth per unit of liquidity accumulated inside a tick range.

        Both boundary ticks must be initialized in the tick-data provider.
        The subtraction wraps modulo 2^256 like the on-chain accumulator.

        Returns:
            Tuple of (fee_growth_inside0_x128, fee_growth_inside1_x128)
        """
        lower = self._get_tick(tick_lower)
        upper = self._get_tick(tick_upper)

        def inside(global_growth: int, lower_outside: int, upper_outside: int) -> int:
            if self.tick_current >= tick_lower:
                below = lower_outside
            else:
                below = global_growth - lower_outside
            if self.tick_current < tick_upper:
                above = upper_outside
            else:
                above = global_growth - upper_outside
            return (global_growth - below - above) & UINT256_MAX

        return (
            inside(
                self.fee_growth_global0_x128,
                lower.fee_growth_outside0_x128,
                upper.fee_growth_outside0_x128,
            ),
            inside(
                self.fee_growth_global1_x128,
                lower.fee_growth_outside1_x128,
                upper.fee_growth_outside1_x128,
            ),
        )


__all__ = [
    "LPFee",
    "DYNAMIC_FEE",
    "PoolKey",
    "POOL_KEY_ABI",
    "Pool",
    "SwapState",
]
