"""Shared plumbing for provider quote adapters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from ....config import settings
from ..addresses import find_by_address
from ..amounts import format_token_amount, format_units, to_base_units, token_amount, to_decimal
from ..constants import DEFAULT_DECIMALS
from ..errors import (
    ErrorClassification,
    ErrorKind,
    InvalidAmountError,
    classify_transport_error,
)
from ..models import NormalizedQuote, parse_decimal

TokenListFetcher = Callable[[str], Awaitable[List[Dict[str, Any]]]]
ErrorClassifier = Callable[[int, str], ErrorClassification]


@dataclass(frozen=True)
class PreparedAmount:
    """USD notional converted for one quote request."""

    unit_price: Decimal
    token_amount: Decimal
    base_units: str
    from_decimals: int
    to_decimals: int

    @property
    def input_token_amount(self) -> str:
        return format_token_amount(self.token_amount, 6)


class UpstreamFailure(Exception):
    """Quote call failed in a way that maps onto one error-tagged quote."""

    def __init__(self, classification: ErrorClassification) -> None:
        super().__init__(classification.label)
        self.classification = classification


class QuoteAdapter:
    """Base for adapters turning a USD checkpoint into a provider quote."""

    provider_name: str = ""
    output_places: int = 4

    def __init__(
        self,
        *,
        placeholder_address: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(self.__class__.__module__)
        self._placeholder_address = placeholder_address or settings.quote_placeholder_address

    # ---------------------------
    # Amount handling
    # ---------------------------
    @staticmethod
    def guard_unit_price(unit_price: Any) -> Decimal:
        """Non-positive or unparseable prices are quoted at 1 USD per token."""
        parsed = parse_decimal(unit_price)
        if parsed is None or parsed <= 0:
            return Decimal("1")
        return parsed

    async def prepare_amount(
        self,
        usd_amount: Any,
        unit_price: Any,
        *,
        from_chain: str,
        from_token: str,
        to_chain: str,
        to_token: str,
        tokens_for_chain: TokenListFetcher,
    ) -> PreparedAmount:
        """Resolve decimals and convert ``usd_amount`` into base units.

        Raises ``InvalidAmountError`` before any token-list lookup when the
        notional cannot be priced, so no network call is made for it.
        """
        price = self.guard_unit_price(unit_price)
        amount = token_amount(usd_amount, price)

        from_decimals = await self._lookup_decimals(tokens_for_chain, from_chain, from_token)
        to_decimals = await self._lookup_decimals(tokens_for_chain, to_chain, to_token)

        base_units = to_base_units(usd_amount, price, from_decimals)
        if int(base_units) <= 0:
            raise InvalidAmountError(f"{amount} tokens rounds to zero base units")

        self._logger.info(
            '%s conversion: $%s at $%s/token = %s tokens = %s base units (decimals=%s)',
            self.provider_name,
            format(to_decimal(usd_amount), "f"),
            price,
            format_token_amount(amount, 6),
            base_units,
            from_decimals,
        )
        return PreparedAmount(
            unit_price=price,
            token_amount=amount,
            base_units=base_units,
            from_decimals=from_decimals,
            to_decimals=to_decimals,
        )

    async def _lookup_decimals(self, tokens_for_chain: TokenListFetcher, chain_id: str, token_address: str) -> int:
        try:
            token = find_by_address(await tokens_for_chain(chain_id), token_address)
        except (httpx.HTTPError, ValueError) as exc:
            self._logger.warning('%s token list unavailable for chain %s: %s', self.provider_name, chain_id, exc)
            return DEFAULT_DECIMALS

        decimals = token.get("decimals") if token else None
        if isinstance(decimals, int) and not isinstance(decimals, bool) and decimals > 0:
            return decimals
        return DEFAULT_DECIMALS

    def format_output(self, base_units: int, decimals: int) -> Optional[str]:
        """Formatted output amount, or None when it rounds to zero."""
        formatted = format_units(base_units, decimals, self.output_places)
        if Decimal(formatted) <= 0:
            return None
        return formatted

    # ---------------------------
    # Upstream calls
    # ---------------------------
    async def fetch(
        self,
        call: Callable[[], Awaitable[Dict[str, Any]]],
        classify: ErrorClassifier,
    ) -> Dict[str, Any]:
        """Run one quote call, raising ``UpstreamFailure`` for any failure."""
        try:
            payload = await call()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            classification = classify(status, exc.response.text)
            self._logger.warning(
                '%s quote failed: status=%s label=%r detail=%r',
                self.provider_name,
                status,
                classification.label,
                classification.detail,
            )
            raise UpstreamFailure(classification) from exc
        except httpx.RequestError as exc:
            classification = classify_transport_error(exc)
            self._logger.warning('%s quote transport error: %s', self.provider_name, classification.detail)
            raise UpstreamFailure(classification) from exc
        except ValueError as exc:
            self._logger.warning('%s quote returned a malformed body: %s', self.provider_name, exc)
            raise UpstreamFailure(no_quote("No quote available", str(exc))) from exc

        if not isinstance(payload, dict):
            raise UpstreamFailure(no_quote("No quote available", f"Unexpected payload type {type(payload).__name__}"))
        return payload

    # ---------------------------
    # Quote construction
    # ---------------------------
    def invalid_amount(self, exc: InvalidAmountError, unit_price: Any, *, provider_label: Optional[str] = None) -> NormalizedQuote:
        self._logger.error('%s invalid amount: %s', self.provider_name, exc)
        return NormalizedQuote.failure(
            ErrorClassification(ErrorKind.INVALID_AMOUNT, "Invalid amount", str(exc)),
            provider_label=provider_label or self.provider_name,
            input_token_amount="0",
            unit_price=self.guard_unit_price(unit_price),
        )

    def failed(
        self,
        classification: ErrorClassification,
        prepared: PreparedAmount,
        *,
        provider_label: Optional[str] = None,
    ) -> NormalizedQuote:
        return NormalizedQuote.failure(
            classification,
            provider_label=provider_label or self.provider_name,
            input_token_amount=prepared.input_token_amount,
            unit_price=prepared.unit_price,
        )


def no_quote(label: str, detail: Optional[str] = None) -> ErrorClassification:
    return ErrorClassification(ErrorKind.NO_QUOTE_AVAILABLE, label, detail or label)


def first_present(*values: Any) -> Optional[Any]:
    for value in values:
        if value not in (None, "", 0, "0"):
            return value
    return None


def dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
    return current
