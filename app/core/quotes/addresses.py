"""Token address normalization across provider native-asset conventions."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from .constants import EEEE_ADDRESS, NATIVE_SENTINELS, ZERO_ADDRESS


def is_native(token_address: str) -> bool:
    return (token_address or "").strip().lower() in NATIVE_SENTINELS


def canonical(token_address: str) -> str:
    """Lowercase form with every native sentinel collapsed onto the zero address."""
    lowered = (token_address or "").strip().lower()
    return ZERO_ADDRESS if lowered in NATIVE_SENTINELS else lowered


def for_zero_native(token_address: str) -> str:
    """LI.FI convention: native asset is the zero address."""
    return ZERO_ADDRESS if is_native(token_address) else token_address.strip()


def for_eeee_native(token_address: str) -> str:
    """Bungee convention: native asset is the 0xEeee... address."""
    return EEEE_ADDRESS if is_native(token_address) else token_address.strip()


def same_token(left: str, right: str) -> bool:
    return canonical(left) == canonical(right)


def find_by_address(tokens: Iterable[Dict[str, Any]], token_address: str) -> Optional[Dict[str, Any]]:
    for token in tokens:
        address = token.get("address")
        if isinstance(address, str) and same_token(address, token_address):
            return token
    return None


def find_by_symbol(tokens: Iterable[Dict[str, Any]], symbol: str) -> Optional[Dict[str, Any]]:
    target = symbol.strip().lower()
    for token in tokens:
        candidate = token.get("symbol")
        if isinstance(candidate, str) and candidate.lower() == target:
            return token
    return None
