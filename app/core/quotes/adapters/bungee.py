"""Bridge aggregator (Bungee) quote adapter.

A single ``/api/v1/bungee/quote`` call with ``enableManual=true`` returns the
provider's recommended ``autoRoute`` and a list of ``manualRoutes``; older
responses carry a flat ``routes`` list instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ....config import settings
from ....providers.bungee import BungeeProvider
from ..addresses import for_eeee_native
from ..constants import BRIDGE_OUTPUT_PLACES, DEFAULT_BRIDGE_DURATION_SECONDS, PROVIDER_BUNGEE
from ..errors import ErrorClassification, InvalidAmountError, classify_bungee_error
from ..models import BridgeQuotes, NormalizedQuote, RouteCandidate, SwapPair, parse_seconds
from ..routes import select_best_manual, select_best_of_both
from .base import PreparedAmount, QuoteAdapter, UpstreamFailure, dig, first_present, no_quote

AUTO_LABEL = "Bungee Auto"
MANUAL_LABEL = "Bungee Manual"


def _route_label(route: Dict[str, Any]) -> Optional[str]:
    bridge_names = route.get("usedBridgeNames")
    if isinstance(bridge_names, list) and bridge_names and bridge_names[0]:
        return str(bridge_names[0])
    name = first_present(
        route.get("bridgeName"),
        dig(route, "steps", 0, "protocol", "displayName"),
        dig(route, "steps", 0, "protocolName"),
        dig(route, "steps", 0, "tool", "name"),
        dig(route, "protocol", "displayName"),
        route.get("bridgeId"),
    )
    return str(name) if name else None


def parse_route(route: Any) -> Optional[RouteCandidate]:
    """Normalize one upstream route object into a candidate."""
    if not isinstance(route, dict):
        return None
    output = first_present(
        dig(route, "output", "amount"),
        route.get("outputAmount"),
        route.get("toAmount"),
        route.get("returnAmount"),
    )
    seconds = first_present(
        route.get("estimatedTime"),
        route.get("serviceTime"),
        route.get("estimatedProcessingTimeInSeconds"),
    )
    return RouteCandidate(
        output_base_units=str(output or "0"),
        label=_route_label(route),
        estimated_time_seconds=parse_seconds(seconds),
    )


@dataclass(frozen=True)
class BungeeQuoteResult:
    """Parsed ``/api/v1/bungee/quote`` envelope."""

    success: bool
    message: Optional[str] = None
    has_result: bool = False
    auto_route: Optional[RouteCandidate] = None
    manual_routes: List[RouteCandidate] = field(default_factory=list)
    legacy_routes: List[RouteCandidate] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "BungeeQuoteResult":
        message = data.get("message") or data.get("error")
        message = message if isinstance(message, str) else None
        if not data.get("success"):
            return cls(success=False, message=message)

        result = data.get("result")
        if not isinstance(result, dict):
            return cls(success=True, message=message)

        def _parse_all(items: Any) -> List[RouteCandidate]:
            if not isinstance(items, list):
                return []
            return [candidate for candidate in map(parse_route, items) if candidate is not None]

        return cls(
            success=True,
            message=message,
            has_result=True,
            auto_route=parse_route(result.get("autoRoute")),
            manual_routes=_parse_all(result.get("manualRoutes")),
            legacy_routes=_parse_all(result.get("routes")),
        )


class BridgeAdapter(QuoteAdapter):
    """Quotes one checkpoint through the bridge aggregator."""

    provider_name = PROVIDER_BUNGEE
    output_places = BRIDGE_OUTPUT_PLACES

    def __init__(
        self,
        *,
        client: Optional[BungeeProvider] = None,
        placeholder_address: Optional[str] = None,
        slippage_percent: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(placeholder_address=placeholder_address, logger=logger)
        self._client = client or BungeeProvider()
        self._slippage = slippage_percent or settings.bungee_slippage_percent

    async def quote_both(
        self,
        pair: SwapPair,
        usd_amount: Any,
        unit_price_from: Any,
        api_key: Optional[str] = None,
    ) -> BridgeQuotes:
        """Auto and best-manual quotes from one upstream call."""
        try:
            prepared, result = await self._request(pair, usd_amount, unit_price_from, api_key)
        except InvalidAmountError as exc:
            failure = self.invalid_amount(exc, unit_price_from)
            return BridgeQuotes(auto=failure, manual=failure)
        except _RequestFailed as failed:
            return BridgeQuotes(auto=failed.quote, manual=failed.quote)

        auto = self._auto_quote(result.auto_route, prepared)
        manual = self._manual_quote(result.manual_routes, prepared)
        return BridgeQuotes(auto=auto, manual=manual)

    async def quote_best(
        self,
        pair: SwapPair,
        usd_amount: Any,
        unit_price_from: Any,
        api_key: Optional[str] = None,
    ) -> NormalizedQuote:
        """Single quote: auto route first, then best manual, then legacy ``routes[0]``."""
        try:
            prepared, result = await self._request(pair, usd_amount, unit_price_from, api_key)
        except InvalidAmountError as exc:
            return self.invalid_amount(exc, unit_price_from)
        except _RequestFailed as failed:
            return failed.quote

        selection = select_best_of_both(result.auto_route, result.manual_routes, result.legacy_routes)
        if selection is None:
            return self.failed(no_quote("No routes found"), prepared)

        self._logger.info('Bungee selected %s route via %s', selection.kind, selection.candidate.label)
        label = selection.candidate.label or self.provider_name
        return self._route_quote(
            selection.candidate,
            prepared,
            provider_label=label,
            route_label=label,
            missing_output=no_quote("No output amount"),
        )

    async def _request(self, pair, usd_amount, unit_price_from, api_key):
        input_token = for_eeee_native(pair.from_token)
        output_token = for_eeee_native(pair.to_token)

        prepared = await self.prepare_amount(
            usd_amount,
            unit_price_from,
            from_chain=pair.from_chain,
            from_token=input_token,
            to_chain=pair.to_chain,
            to_token=output_token,
            tokens_for_chain=self._client.tokens_for_chain,
        )

        params = {
            "userAddress": self._placeholder_address,
            "originChainId": pair.from_chain,
            "destinationChainId": pair.to_chain,
            "inputToken": input_token,
            "inputAmount": prepared.base_units,
            "receiverAddress": self._placeholder_address,
            "outputToken": output_token,
            "enableManual": "true",
            "slippage": self._slippage,
        }

        try:
            payload = await self.fetch(lambda: self._client.quote(params, api_key=api_key), classify_bungee_error)
        except UpstreamFailure as failure:
            raise _RequestFailed(self.failed(failure.classification, prepared)) from failure

        result = BungeeQuoteResult.from_payload(payload)
        if not result.success:
            self._logger.warning('Bungee quote unsuccessful: %s', result.message)
            raise _RequestFailed(self.failed(no_quote(result.message or "Quote failed"), prepared))
        if not result.has_result:
            raise _RequestFailed(self.failed(no_quote("No quote available"), prepared))

        self._logger.debug(
            'Bungee routes: auto=%s manual=%d legacy=%d',
            result.auto_route is not None,
            len(result.manual_routes),
            len(result.legacy_routes),
        )
        return prepared, result

    def _auto_quote(self, route: Optional[RouteCandidate], prepared: PreparedAmount) -> NormalizedQuote:
        if route is None or route.output_value <= 0:
            return self.failed(no_quote("No auto route"), prepared, provider_label=AUTO_LABEL)

        label = f"{route.label} (Auto)" if route.label else AUTO_LABEL
        return self._route_quote(
            route,
            prepared,
            provider_label=label,
            route_label=label,
            missing_output=no_quote("No auto route"),
        )

    def _manual_quote(self, routes: List[RouteCandidate], prepared: PreparedAmount) -> NormalizedQuote:
        best = select_best_manual(routes)
        if best is None:
            return self.failed(no_quote("No manual routes"), prepared, provider_label=MANUAL_LABEL)

        self._logger.debug('Bungee best manual route of %d: %s', len(routes), best.label)
        return self._route_quote(
            best,
            prepared,
            provider_label=best.label or MANUAL_LABEL,
            route_label=f"{best.label} (Manual)" if best.label else MANUAL_LABEL,
            missing_output=no_quote("No manual routes"),
        )

    def _route_quote(
        self,
        route: RouteCandidate,
        prepared: PreparedAmount,
        *,
        provider_label: str,
        route_label: str,
        missing_output: ErrorClassification,
    ) -> NormalizedQuote:
        output = self.format_output(route.output_value, prepared.to_decimals) if route.output_value > 0 else None
        if output is None:
            return self.failed(missing_output, prepared, provider_label=provider_label)

        return NormalizedQuote.success(
            output_amount=output,
            provider_label=provider_label,
            input_token_amount=prepared.input_token_amount,
            unit_price=prepared.unit_price,
            estimated_time_seconds=route.estimated_time_seconds or DEFAULT_BRIDGE_DURATION_SECONDS,
            route_label=route_label,
        )


class _RequestFailed(Exception):
    def __init__(self, quote: NormalizedQuote) -> None:
        super().__init__(quote.error)
        self.quote = quote
