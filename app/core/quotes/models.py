"""Typed models used by the quote aggregation engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from .constants import ZERO_OUTPUT
from .errors import ErrorClassification, ErrorKind


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a JSON number or numeric string into a finite Decimal."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def parse_base_units(value: Any) -> Optional[int]:
    """Parse an upstream base-unit amount (integer string or number)."""
    parsed = parse_decimal(value)
    if parsed is None:
        return None
    return int(parsed)


def parse_seconds(value: Any) -> Optional[int]:
    parsed = parse_decimal(value)
    if parsed is None or parsed < 0:
        return None
    return int(parsed)


@dataclass(frozen=True)
class SwapPair:
    from_chain: str
    from_token: str
    to_chain: str
    to_token: str


@dataclass(frozen=True)
class RouteCandidate:
    """One route returned by a provider quote call."""

    output_base_units: str
    label: Optional[str] = None
    estimated_time_seconds: Optional[int] = None

    @property
    def output_value(self) -> int:
        return parse_base_units(self.output_base_units) or 0


@dataclass(frozen=True)
class NormalizedQuote:
    """Provider-independent quote for one (provider route, checkpoint) cell.

    Either ``output_amount`` is positive and ``error_kind`` is None, or
    ``error_kind`` is set and ``output_amount`` is ``"0.0000"``.
    """

    output_amount: str
    provider_label: str
    input_token_amount: str
    unit_price: Decimal
    estimated_time_seconds: Optional[int] = None
    route_label: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None

    @classmethod
    def success(
        cls,
        *,
        output_amount: str,
        provider_label: str,
        input_token_amount: str,
        unit_price: Decimal,
        estimated_time_seconds: Optional[int],
        route_label: Optional[str],
    ) -> "NormalizedQuote":
        return cls(
            output_amount=output_amount,
            provider_label=provider_label,
            input_token_amount=input_token_amount,
            unit_price=unit_price,
            estimated_time_seconds=estimated_time_seconds,
            route_label=route_label,
        )

    @classmethod
    def failure(
        cls,
        classification: ErrorClassification,
        *,
        provider_label: str,
        input_token_amount: str = "0",
        unit_price: Decimal = Decimal("0"),
    ) -> "NormalizedQuote":
        return cls(
            output_amount=ZERO_OUTPUT,
            provider_label=provider_label,
            input_token_amount=input_token_amount,
            unit_price=unit_price,
            error_kind=classification.kind,
            error=classification.label,
            error_detail=classification.detail,
        )

    @property
    def is_error(self) -> bool:
        return self.error_kind is not None

    def with_provider_label(self, provider_label: str) -> "NormalizedQuote":
        return replace(self, provider_label=provider_label)

    def display_time(self) -> str:
        if self.estimated_time_seconds is None or self.is_error:
            return "N/A"
        return f"{math.ceil(self.estimated_time_seconds / 60)} min"

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape for the presentation layer; ``error_detail`` stays internal."""
        payload: Dict[str, Any] = {
            "outputAmount": self.output_amount,
            "estimatedTime": self.display_time(),
            "estimatedTimeSeconds": self.estimated_time_seconds,
            "provider": self.provider_label,
            "inputTokenAmount": self.input_token_amount,
            "tokenPrice": float(self.unit_price),
        }
        if self.route_label:
            payload["route"] = self.route_label
        if self.error_kind is not None:
            payload["error"] = self.error
            payload["errorKind"] = self.error_kind.value
        return payload


@dataclass(frozen=True)
class BridgeQuotes:
    auto: NormalizedQuote
    manual: NormalizedQuote


@dataclass
class TokenInfo:
    """Token list entry from either upstream token list."""

    address: str
    symbol: str
    name: str
    decimals: Optional[int]
    price_usd: Optional[Decimal] = None
    logo_uri: Optional[str] = None
    source: str = ""

    @classmethod
    def from_bungee(cls, data: Dict[str, Any]) -> "TokenInfo":
        return cls(
            address=str(data.get("address") or ""),
            symbol=str(data.get("symbol") or ""),
            name=str(data.get("name") or ""),
            decimals=_optional_int(data.get("decimals")),
            price_usd=parse_decimal(data.get("priceInUsd")),
            logo_uri=data.get("logoURI") or None,
            source="bungee",
        )

    @classmethod
    def from_lifi(cls, data: Dict[str, Any]) -> "TokenInfo":
        return cls(
            address=str(data.get("address") or ""),
            symbol=str(data.get("symbol") or ""),
            name=str(data.get("name") or ""),
            decimals=_optional_int(data.get("decimals")),
            price_usd=parse_decimal(data.get("priceUSD")),
            logo_uri=data.get("logoURI") or None,
            source="lifi",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "address": self.address,
            "decimals": self.decimals,
            "logoURI": self.logo_uri,
            "source": self.source,
        }


@dataclass
class ChainInfo:
    id: str
    name: str
    icon: Optional[str] = None
    native_currency: Optional[Dict[str, Any]] = None
    source: str = ""

    @classmethod
    def from_bungee(cls, data: Dict[str, Any]) -> "ChainInfo":
        return cls(
            id=str(data.get("chainId")),
            name=str(data.get("name") or ""),
            icon=data.get("icon") or None,
            native_currency=data.get("nativeCurrency"),
            source="bungee",
        )

    @classmethod
    def from_lifi(cls, data: Dict[str, Any]) -> "ChainInfo":
        return cls(
            id=str(data.get("id")),
            name=str(data.get("name") or ""),
            icon=data.get("logoURI") or None,
            native_currency=data.get("nativeToken"),
            source="lifi",
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id, "name": self.name, "icon": self.icon}
        if self.native_currency:
            payload["nativeCurrency"] = self.native_currency
        return payload


@dataclass
class QuoteMatrix:
    """Matrix key -> amount label -> quote, in ascending checkpoint order."""

    rows: Dict[str, Dict[str, NormalizedQuote]] = field(default_factory=dict)
    checkpoints: List[Decimal] = field(default_factory=list)
    unit_price_from: Optional[Decimal] = None
    unit_price_to: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {
            key: {label: quote.to_dict() for label, quote in cells.items()}
            for key, cells in self.rows.items()
        }


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
