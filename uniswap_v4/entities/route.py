"""Routes: validated chains of pools from an input to an output currency."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from functools import cached_property

from uniswap_v4.entities.currency import Currency
from uniswap_v4.entities.pool import Pool, PoolKey
from uniswap_v4.entities.price import Price
from uniswap_v4.errors import InvalidCurrency, MalformedRoute


def get_path_currency(currency: Currency, pool: Pool) -> Currency:
    """The pool currency that ``currency`` enters or leaves the pool as.

    Native and wrapped native are interchangeable at the ends of a route:
    ether can enter a WETH pool (it is wrapped first) and WETH can enter an
    ether pool.

    Raises:
        MalformedRoute: If neither currency nor its native/wrapped twin is in the pool
    """
    if pool.involves_currency(currency):
        return currency
    if pool.involves_currency(currency.wrapped):
        return currency.wrapped
    if pool.currency0.wrapped == currency:
        return pool.currency0
    if pool.currency1.wrapped == currency:
        return pool.currency1
    raise MalformedRoute(f"{currency} is neither in pool {pool.pool_id} nor its wrapped twin")


@dataclass(frozen=True, init=False)
class Route:
    """An ordered, validated sequence of pools.

    Attributes:
        pools: Pools in swap order
        input: Currency the caller pays
        output: Currency the caller receives
        path_input: Input as the first pool sees it (native or wrapped)
        path_output: Output as the last pool sees it
    """

    pools: tuple[Pool, ...]
    input: Currency
    output: Currency
    path_input: Currency
    path_output: Currency

    def __init__(self, pools: Sequence[Pool], input: Currency, output: Currency) -> None:
        """Validate and build a route.

        Raises:
            MalformedRoute: If the pools are empty, span chains, or do not
                chain from input to output
        """
        if not pools:
            raise MalformedRoute("Route requires at least one pool")
        chain_id = pools[0].chain_id
        if any(pool.chain_id != chain_id for pool in pools):
            raise MalformedRoute("Route pools are on different chains")

        path_input = get_path_currency(input, pools[0])
        path_output = get_path_currency(output, pools[-1])

        current = path_input
        for hop, pool in enumerate(pools):
            try:
                current = pool.other_currency(current)
            except InvalidCurrency as err:
                raise MalformedRoute(f"Pool {hop} does not contain hop currency {current}") from err
        if current != path_output:
            raise MalformedRoute(f"Route ends in {current}, expected {path_output}")

        object.__setattr__(self, "pools", tuple(pools))
        object.__setattr__(self, "input", input)
        object.__setattr__(self, "output", output)
        object.__setattr__(self, "path_input", path_input)
        object.__setattr__(self, "path_output", path_output)

    @property
    def chain_id(self) -> int:
        return self.pools[0].chain_id

    @cached_property
    def currency_path(self) -> tuple[Currency, ...]:
        """Currencies visited, starting with path_input and ending with path_output."""
        path = [self.path_input]
        for pool in self.pools:
            path.append(pool.other_currency(path[-1]))
        return tuple(path)

    @property
    def pool_keys(self) -> tuple[PoolKey, ...]:
        return tuple(pool.key for pool in self.pools)

    @cached_property
    def mid_price(self) -> Price:
        """Product of the pools' spot prices along the path."""
        price = self.pools[0].price_of(self.path_input)
        for pool, currency in zip(self.pools[1:], self.currency_path[1:-1]):
            price = price.multiply(pool.price_of(currency))
        return Price(self.input, self.output, price.denominator, price.numerator)


__all__ = ["Route", "get_path_currency"]
