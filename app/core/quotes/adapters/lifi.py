"""Cross-chain aggregator (LI.FI) quote adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ....providers.lifi import LifiProvider
from ..addresses import for_zero_native
from ..constants import AGGREGATOR_OUTPUT_PLACES, DEFAULT_AGGREGATOR_DURATION_SECONDS, PROVIDER_LIFI
from ..errors import InvalidAmountError, classify_lifi_error
from ..models import NormalizedQuote, SwapPair, parse_base_units, parse_seconds
from .base import QuoteAdapter, UpstreamFailure, dig, first_present, no_quote

DEFAULT_TOOL_LABEL = "LiFi Bridge"


@dataclass(frozen=True)
class LifiQuoteResponse:
    """The parts of a ``/v1/quote`` response the adapter relies on."""

    has_estimate: bool
    to_amount: Optional[int]
    execution_duration: Optional[int]
    tool_name: str
    message: Optional[str]

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "LifiQuoteResponse":
        estimate = data.get("estimate") if isinstance(data.get("estimate"), dict) else {}
        raw_amount = first_present(estimate.get("toAmount"), data.get("toAmount"))
        raw_duration = first_present(estimate.get("executionDuration"), data.get("executionDuration"))
        message = data.get("message") or data.get("error")
        return cls(
            has_estimate=bool(data.get("estimate") or data.get("transactionRequest")),
            to_amount=parse_base_units(raw_amount),
            execution_duration=parse_seconds(raw_duration),
            tool_name=cls._tool_name(data, estimate),
            message=message if isinstance(message, str) else None,
        )

    @staticmethod
    def _tool_name(data: Dict[str, Any], estimate: Dict[str, Any]) -> str:
        name = first_present(
            dig(data, "tool", "name"),
            dig(estimate, "tool", "name"),
            dig(data, "toolDetails", "name"),
            dig(data, "steps", 0, "tool", "name"),
            dig(data, "steps", 0, "toolDetails", "name"),
        )
        if not name and isinstance(data.get("tool"), str):
            name = data["tool"]
        return str(name) if name else DEFAULT_TOOL_LABEL


class AggregatorAdapter(QuoteAdapter):
    """Quotes one checkpoint through the cross-chain aggregator."""

    provider_name = PROVIDER_LIFI
    output_places = AGGREGATOR_OUTPUT_PLACES

    def __init__(
        self,
        *,
        client: Optional[LifiProvider] = None,
        placeholder_address: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(placeholder_address=placeholder_address, logger=logger)
        self._client = client or LifiProvider()

    async def quote(
        self,
        pair: SwapPair,
        usd_amount: Any,
        unit_price_from: Any,
        api_key: Optional[str] = None,
    ) -> NormalizedQuote:
        from_token = for_zero_native(pair.from_token)
        to_token = for_zero_native(pair.to_token)

        try:
            prepared = await self.prepare_amount(
                usd_amount,
                unit_price_from,
                from_chain=pair.from_chain,
                from_token=from_token,
                to_chain=pair.to_chain,
                to_token=to_token,
                tokens_for_chain=self._client.tokens_for_chain,
            )
        except InvalidAmountError as exc:
            return self.invalid_amount(exc, unit_price_from)

        params = {
            "fromChain": pair.from_chain,
            "toChain": pair.to_chain,
            "fromToken": from_token,
            "toToken": to_token,
            "fromAmount": prepared.base_units,
            "fromAddress": self._placeholder_address,
        }

        try:
            payload = await self.fetch(lambda: self._client.quote(params, api_key=api_key), classify_lifi_error)
        except UpstreamFailure as failure:
            return self.failed(failure.classification, prepared)

        response = LifiQuoteResponse.from_payload(payload)
        if not response.has_estimate:
            return self.failed(no_quote(response.message or "No routes found"), prepared)
        if not response.to_amount or response.to_amount <= 0:
            return self.failed(no_quote(response.message or "Insufficient liquidity"), prepared)

        output = self.format_output(response.to_amount, prepared.to_decimals)
        if output is None:
            return self.failed(no_quote("Insufficient liquidity", f"toAmount={response.to_amount}"), prepared)

        duration = response.execution_duration or DEFAULT_AGGREGATOR_DURATION_SECONDS
        self._logger.info('LiFi quote result: %s via %s in %ss', output, response.tool_name, duration)
        return NormalizedQuote.success(
            output_amount=output,
            provider_label=response.tool_name,
            input_token_amount=prepared.input_token_amount,
            unit_price=prepared.unit_price,
            estimated_time_seconds=duration,
            route_label=response.tool_name,
        )
