"""Pydantic models for JSON pool snapshots.

Snapshots carry integers as decimal (or hex) strings and addresses as hex,
the way indexers and RPC dumps serialize them. ``PoolSnapshot.to_pool``
validates the whole snapshot and builds a Pool backed by an in-memory
TickListDataProvider.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from uniswap_v4.entities.currency import Currency, NativeCurrency, Token, ether
from uniswap_v4.entities.pool import Pool
from uniswap_v4.entities.tick_data import Tick
from uniswap_v4.types import ADDRESS_ZERO, Address, Int256, Uint256


class CurrencySnapshot(BaseModel):
    """A currency of the pool; the zero address denotes the native currency."""

    address: Address
    decimals: int = Field(ge=0, le=255)
    symbol: str | None = None
    name: str | None = None
    # Wrapped token of a native currency (defaults to WETH on mainnet)
    wrapped: Address | None = None

    model_config = {"populate_by_name": True}

    def to_currency(self, chain_id: int) -> Currency:
        if self.address != ADDRESS_ZERO:
            return Token(chain_id, self.address, self.decimals, self.symbol, self.name)
        if self.wrapped is None:
            return ether(chain_id)
        wrapped = Token(chain_id, self.wrapped, self.decimals, f"W{self.symbol or 'ETH'}")
        return NativeCurrency(
            chain_id,
            wrapped,
            self.decimals,
            self.symbol or "ETH",
            self.name or "Ether",
        )

    @classmethod
    def from_currency(cls, currency: Currency) -> CurrencySnapshot:
        return cls(
            address=currency.address,
            decimals=currency.decimals,
            symbol=currency.symbol,
            name=currency.name,
            wrapped=currency.wrapped.address if currency.is_native else None,
        )


class TickSnapshot(BaseModel):
    """One initialized tick."""

    index: int
    liquidity_gross: Uint256 = Field(alias="liquidityGross")
    liquidity_net: Int256 = Field(alias="liquidityNet")
    fee_growth_outside0_x128: Uint256 = Field(default=0, alias="feeGrowthOutside0X128")
    fee_growth_outside1_x128: Uint256 = Field(default=0, alias="feeGrowthOutside1X128")

    model_config = {"populate_by_name": True}

    def to_tick(self) -> Tick:
        return Tick(
            index=self.index,
            liquidity_gross=self.liquidity_gross,
            liquidity_net=self.liquidity_net,
            fee_growth_outside0_x128=self.fee_growth_outside0_x128,
            fee_growth_outside1_x128=self.fee_growth_outside1_x128,
        )


class PoolSnapshot(BaseModel):
    """Serialized state of one pool.

    ``fee`` is the PoolKey fee field as encoded on chain (0x800000 for
    dynamic-fee pools); ``lpFee`` is the fee currently read from slot0.
    """

    chain_id: int = Field(alias="chainId", gt=0)
    currency0: CurrencySnapshot
    currency1: CurrencySnapshot
    fee: int = Field(ge=0, lt=1 << 24)
    tick_spacing: int = Field(alias="tickSpacing")
    hooks: Address = ADDRESS_ZERO
    sqrt_price_x96: Uint256 = Field(alias="sqrtPriceX96")
    liquidity: Uint256
    tick: int
    fee_growth_global0_x128: Uint256 = Field(default=0, alias="feeGrowthGlobal0X128")
    fee_growth_global1_x128: Uint256 = Field(default=0, alias="feeGrowthGlobal1X128")
    lp_fee: int | None = Field(default=None, alias="lpFee")
    # None means the snapshot carries no tick data
    ticks: list[TickSnapshot] | None = None

    model_config = {"populate_by_name": True}

    def to_pool(self) -> Pool:
        """Build the Pool; domain validation errors propagate unchanged.

        Raises:
            MalformedKey: If the key fields are inconsistent
            InvalidRange: If the price, tick or tick list is invalid
        """
        return Pool.create(
            self.currency0.to_currency(self.chain_id),
            self.currency1.to_currency(self.chain_id),
            self.fee,
            self.tick_spacing,
            self.hooks,
            self.sqrt_price_x96,
            self.liquidity,
            self.tick,
            ticks=None if self.ticks is None else [tick.to_tick() for tick in self.ticks],
            fee_growth_global0_x128=self.fee_growth_global0_x128,
            fee_growth_global1_x128=self.fee_growth_global1_x128,
            lp_fee=self.lp_fee,
        )

    @classmethod
    def from_pool(cls, pool: Pool, ticks: list[Tick] | None = None) -> PoolSnapshot:
        """Serialize a pool; tick data is only included when passed in.

        Without ``ticks`` the snapshot rebuilds a pool with no tick data, so
        swaps that leave the current tick fail instead of assuming liquidity.
        """
        tick_snapshots = None
        if ticks is not None:
            tick_snapshots = [
                TickSnapshot(
                    index=tick.index,
                    liquidity_gross=tick.liquidity_gross,
                    liquidity_net=tick.liquidity_net,
                    fee_growth_outside0_x128=tick.fee_growth_outside0_x128,
                    fee_growth_outside1_x128=tick.fee_growth_outside1_x128,
                )
                for tick in ticks
            ]
        return cls(
            chain_id=pool.chain_id,
            currency0=CurrencySnapshot.from_currency(pool.currency0),
            currency1=CurrencySnapshot.from_currency(pool.currency1),
            fee=pool.key.fee.encoded,
            tick_spacing=pool.tick_spacing,
            hooks=pool.hooks,
            sqrt_price_x96=pool.sqrt_price_x96,
            liquidity=pool.liquidity,
            tick=pool.tick_current,
            fee_growth_global0_x128=pool.fee_growth_global0_x128,
            fee_growth_global1_x128=pool.fee_growth_global1_x128,
            lp_fee=pool.lp_fee,
            ticks=tick_snapshots,
        )


__all__ = ["CurrencySnapshot", "TickSnapshot", "PoolSnapshot"]
