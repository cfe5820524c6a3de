"""Encoding of routes into the router's PathKey arrays."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from uniswap_v4.constants import EMPTY_BYTES
from uniswap_v4.types import address_to_bytes, normalize_address

if TYPE_CHECKING:
    from uniswap_v4.entities.route import Route

PATH_KEY_ABI = "(address,uint24,int24,address,bytes)"


@dataclass(frozen=True)
class PathKey:
    """One hop of a multi-hop swap, relative to the previous currency.

    Attributes:
        intermediate_currency: Currency reached by this hop (zero address for native)
        fee: Encoded fee field of the hop's pool
        tick_spacing: Tick spacing of the hop's pool
        hooks: Hook address of the hop's pool
        hook_data: Data forwarded to the hook
    """

    intermediate_currency: str
    fee: int
    tick_spacing: int
    hooks: str
    hook_data: bytes = EMPTY_BYTES

    def __post_init__(self) -> None:
        intermediate = normalize_address(self.intermediate_currency, validate=True)
        object.__setattr__(self, "intermediate_currency", intermediate)
        object.__setattr__(self, "hooks", normalize_address(self.hooks, validate=True))

    def to_abi(self) -> tuple[bytes, int, int, bytes, bytes]:
        return (
            address_to_bytes(self.intermediate_currency),
            self.fee,
            self.tick_spacing,
            address_to_bytes(self.hooks),
            self.hook_data,
        )


def encode_route_to_path(route: Route, exact_output: bool = False) -> list[PathKey]:
    """Encode a route as PathKeys.

    For exact input the keys run forward and each names the currency the
    hop produces. For exact output the route is walked backwards from the
    output, so after reversal each key names the currency the hop consumes
    and the first key names the input currency.
    """
    pools = list(reversed(route.pools)) if exact_output else list(route.pools)
    currency = route.path_output if exact_output else route.path_input

    path_keys = []
    for pool in pools:
        currency = pool.other_currency(currency)
        path_keys.append(
            PathKey(
                intermediate_currency=currency.address,
                fee=pool.fee.encoded,
                tick_spacing=pool.tick_spacing,
                hooks=pool.hooks,
            )
        )
    if exact_output:
        path_keys.reverse()
    return path_keys


__all__ = ["PathKey", "PATH_KEY_ABI", "encode_route_to_path"]
