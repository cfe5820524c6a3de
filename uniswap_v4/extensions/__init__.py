"""Integrations with live chain state and serialized snapshots."""

from uniswap_v4.extensions.lens import LensTickDataProvider, PoolManagerLens, Slot0
from uniswap_v4.extensions.snapshot import CurrencySnapshot, PoolSnapshot, TickSnapshot

__all__ = [
    "PoolManagerLens",
    "LensTickDataProvider",
    "Slot0",
    "CurrencySnapshot",
    "PoolSnapshot",
    "TickSnapshot",
]
