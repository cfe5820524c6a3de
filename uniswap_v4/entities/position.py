"""Liquidity positions over a pool snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from functools import cached_property

from uniswap_v4.entities.pool import Pool
from uniswap_v4.entities.price import Price
from uniswap_v4.errors import InvalidRange
from uniswap_v4.math.fixed_point import Q128
from uniswap_v4.math.liquidity_math import max_liquidity_for_amounts
from uniswap_v4.math.sqrt_price_math import get_amount0_delta, get_amount1_delta
from uniswap_v4.math.tick import validate_tick_range
from uniswap_v4.math.tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from uniswap_v4.types import UINT128_MAX, UINT256_MAX, validate_slippage, validate_uint
from uniswap_v4.utils.price_tick import encode_sqrt_ratio_x96, tick_to_price


@dataclass(frozen=True)
class PermitDetails:
    """Permit2 allowance for one currency."""

    token: str
    amount: int
    expiration: int
    nonce: int


@dataclass(frozen=True)
class PermitBatch:
    """Permit2 batch allowance signed by the position owner."""

    details: tuple[PermitDetails, ...]
    spender: str
    sig_deadline: int


@dataclass(frozen=True)
class Position:
    """Liquidity over [tick_lower, tick_upper) in a pool.

    A Position never mutates its pool. Amounts are computed at the pool's
    current price; the three price-versus-range cases follow the protocol:
    below the range the position is all currency0, above it all currency1,
    and inside it holds both.

    Attributes:
        pool: Pool snapshot the position is valued against
        tick_lower: Lower tick, a multiple of the pool's tick spacing
        tick_upper: Upper tick, a multiple of the pool's tick spacing
        liquidity: Position liquidity
    """

    pool: Pool
    tick_lower: int
    tick_upper: int
    liquidity: int

    def __post_init__(self) -> None:
        validate_tick_range(self.tick_lower, self.tick_upper, self.pool.tick_spacing)
        validate_uint(self.liquidity, 128, "liquidity")

    # --- Prices ---

    @property
    def token0_price_lower(self) -> Price:
        """Price of currency0 at the lower tick."""
        return tick_to_price(self.pool.currency0, self.pool.currency1, self.tick_lower)

    @property
    def token0_price_upper(self) -> Price:
        """Price of currency0 at the upper tick."""
        return tick_to_price(self.pool.currency0, self.pool.currency1, self.tick_upper)

    @cached_property
    def _sqrt_ratio_lower(self) -> int:
        return get_sqrt_ratio_at_tick(self.tick_lower)

    @cached_property
    def _sqrt_ratio_upper(self) -> int:
        return get_sqrt_ratio_at_tick(self.tick_upper)

    # --- Amounts ---

    @cached_property
    def amount0(self) -> int:
        """Currency0 withdrawable at the current price, rounded down."""
        if self.pool.tick_current < self.tick_lower:
            return get_amount0_delta(
                self._sqrt_ratio_lower, self._sqrt_ratio_upper, self.liquidity, False
            )
        if self.pool.tick_current < self.tick_upper:
            return get_amount0_delta(
                self.pool.sqrt_price_x96, self._sqrt_ratio_upper, self.liquidity, False
            )
        return 0

    @cached_property
    def amount1(self) -> int:
        """Currency1 withdrawable at the current price, rounded down."""
        if self.pool.tick_current < self.tick_lower:
            return 0
        if self.pool.tick_current < self.tick_upper:
            return get_amount1_delta(
                self._sqrt_ratio_lower, self.pool.sqrt_price_x96, self.liquidity, False
            )
        return get_amount1_delta(
            self._sqrt_ratio_lower, self._sqrt_ratio_upper, self.liquidity, False
        )

    @cached_property
    def mint_amounts(self) -> tuple[int, int]:
        """Amounts required to mint this position at the current price, rounded up.

        Returns:
            Tuple of (amount0, amount1)
        """
        if self.pool.tick_current < self.tick_lower:
            return (
                get_amount0_delta(
                    self._sqrt_ratio_lower, self._sqrt_ratio_upper, self.liquidity, True
                ),
                0,
            )
        if self.pool.tick_current < self.tick_upper:
            return (
                get_amount0_delta(
                    self.pool.sqrt_price_x96, self._sqrt_ratio_upper, self.liquidity, True
                ),
                get_amount1_delta(
                    self._sqrt_ratio_lower, self.pool.sqrt_price_x96, self.liquidity, True
                ),
            )
        return (
            0,
            get_amount1_delta(self._sqrt_ratio_lower, self._sqrt_ratio_upper, self.liquidity, True),
        )

    # --- Slippage ---

    def ratios_after_slippage(self, slippage_tolerance: Fraction) -> tuple[int, int]:
        """Sqrt prices at the pool price moved down and up by the tolerance.

        Returns:
            Tuple of (sqrt_ratio_x96_lower, sqrt_ratio_x96_upper), clamped
            strictly inside the protocol's sqrt price bounds
        """
        slippage_tolerance = validate_slippage(slippage_tolerance)
        price = self.pool.currency0_price.raw
        price_lower = price * (1 - slippage_tolerance)
        price_upper = price * (1 + slippage_tolerance)

        sqrt_ratio_lower = encode_sqrt_ratio_x96(price_lower.numerator, price_lower.denominator)
        if sqrt_ratio_lower <= MIN_SQRT_RATIO:
            sqrt_ratio_lower = MIN_SQRT_RATIO + 1
        sqrt_ratio_upper = encode_sqrt_ratio_x96(price_upper.numerator, price_upper.denominator)
        if sqrt_ratio_upper >= MAX_SQRT_RATIO:
            sqrt_ratio_upper = MAX_SQRT_RATIO - 1
        return sqrt_ratio_lower, sqrt_ratio_upper

    def _counterfactual_pools(self, slippage_tolerance: Fraction) -> tuple[Pool, Pool]:
        sqrt_lower, sqrt_upper = self.ratios_after_slippage(slippage_tolerance)
        pool = self.pool
        tick_lower = get_tick_at_sqrt_ratio(sqrt_lower)
        tick_upper = get_tick_at_sqrt_ratio(sqrt_upper)
        pool_lower = Pool(pool.key, pool.currency0, pool.currency1, sqrt_lower, 0, tick_lower)
        pool_upper = Pool(pool.key, pool.currency0, pool.currency1, sqrt_upper, 0, tick_upper)
        return pool_lower, pool_upper

    def mint_amounts_with_slippage(self, slippage_tolerance: Fraction) -> tuple[int, int]:
        """Maximum amounts to pay when minting, allowing the price to move by the tolerance.

        The most currency0 is needed when the price slips down and the most
        currency1 when it slips up, so each bound comes from a different
        counterfactual pool.

        Returns:
            Tuple of (amount0_max, amount1_max)
        """
        pool_lower, pool_upper = self._counterfactual_pools(slippage_tolerance)
        ticks = (self.tick_lower, self.tick_upper)
        amount0, _ = Position(pool_lower, *ticks, self.liquidity).mint_amounts
        _, amount1 = Position(pool_upper, *ticks, self.liquidity).mint_amounts
        return amount0, amount1

    def burn_amounts_with_slippage(self, slippage_tolerance: Fraction) -> tuple[int, int]:
        """Minimum amounts to receive when burning, allowing the price to move by the tolerance.

        Returns:
            Tuple of (amount0_min, amount1_min)
        """
        pool_lower, pool_upper = self._counterfactual_pools(slippage_tolerance)
        amount0 = Position(pool_upper, self.tick_lower, self.tick_upper, self.liquidity).amount0
        amount1 = Position(pool_lower, self.tick_lower, self.tick_upper, self.liquidity).amount1
        return amount0, amount1

    def permit_batch_data(
        self, slippage_tolerance: Fraction, spender: str, nonce: int, deadline: int
    ) -> PermitBatch:
        """Permit2 batch covering the slippage-adjusted mint amounts."""
        amount0, amount1 = self.mint_amounts_with_slippage(slippage_tolerance)
        return PermitBatch(
            details=(
                PermitDetails(self.pool.currency0.wrapped.address, amount0, deadline, nonce),
                PermitDetails(self.pool.currency1.wrapped.address, amount1, deadline, nonce),
            ),
            spender=spender,
            sig_deadline=deadline,
        )

    # --- Construction from amounts ---

    @classmethod
    def from_amounts(
        cls,
        pool: Pool,
        tick_lower: int,
        tick_upper: int,
        amount0: int,
        amount1: int,
        use_full_precision: bool = True,
    ) -> Position:
        """Largest position that can be minted with the given amounts.

        Raises:
            InvalidRange: If the ticks are invalid, or the amounts buy more
                liquidity than a position can hold (uint128)
        """
        validate_tick_range(tick_lower, tick_upper, pool.tick_spacing)
        liquidity = max_liquidity_for_amounts(
            pool.sqrt_price_x96,
            get_sqrt_ratio_at_tick(tick_lower),
            get_sqrt_ratio_at_tick(tick_upper),
            amount0,
            amount1,
            use_full_precision,
        )
        if liquidity > UINT128_MAX:
            raise InvalidRange(
                f"Amounts over [{tick_lower}, {tick_upper}] give liquidity {liquidity},"
                " which overflows uint128"
            )
        return cls(pool, tick_lower, tick_upper, liquidity)

    @classmethod
    def from_amount0(
        cls,
        pool: Pool,
        tick_lower: int,
        tick_upper: int,
        amount0: int,
        use_full_precision: bool = True,
    ) -> Position:
        """Position sized by currency0 alone, with unlimited currency1."""
        return cls.from_amounts(
            pool, tick_lower, tick_upper, amount0, UINT256_MAX, use_full_precision
        )

    @classmethod
    def from_amount1(cls, pool: Pool, tick_lower: int, tick_upper: int, amount1: int) -> Position:
        """Position sized by currency1 alone, with unlimited currency0."""
        return cls.from_amounts(pool, tick_lower, tick_upper, UINT256_MAX, amount1, True)

    # --- Fees ---

    def get_tokens_owed(
        self,
        fee_growth_inside0_last_x128: int,
        fee_growth_inside1_last_x128: int,
        fee_growth_inside0_x128: int,
        fee_growth_inside1_x128: int,
    ) -> tuple[int, int]:
        """Fees accrued since a fee-growth checkpoint.

        Accumulators wrap modulo 2^256, so the difference is taken modulo
        2^256 before scaling by liquidity.

        Returns:
            Tuple of (tokens_owed0, tokens_owed1)
        """
        delta0 = (fee_growth_inside0_x128 - fee_growth_inside0_last_x128) & UINT256_MAX
        delta1 = (fee_growth_inside1_x128 - fee_growth_inside1_last_x128) & UINT256_MAX
        return (delta0 * self.liquidity) // Q128, (delta1 * self.liquidity) // Q128

    def fees_owed(
        self, fee_growth_inside0_last_x128: int, fee_growth_inside1_last_x128: int
    ) -> tuple[int, int]:
        """Fees accrued since a checkpoint, using the pool's current fee growth."""
        inside0, inside1 = self.pool.get_fee_growth_inside(self.tick_lower, self.tick_upper)
        return self.get_tokens_owed(
            fee_growth_inside0_last_x128, fee_growth_inside1_last_x128, inside0, inside1
        )


__all__ = ["Position", "PermitBatch", "PermitDetails"]
