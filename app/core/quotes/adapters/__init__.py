"""Per-provider quote adapters."""

from .bungee import BridgeAdapter
from .lifi import AggregatorAdapter

__all__ = ["AggregatorAdapter", "BridgeAdapter"]
