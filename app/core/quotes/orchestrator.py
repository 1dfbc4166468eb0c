"""QuoteOrchestrator fans a swap pair out across providers and USD checkpoints."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ...cache import PriceCache, TTLCache
from ...config import settings
from ...providers.bungee import BungeeProvider
from ...providers.coingecko import CoingeckoProvider
from ...providers.lifi import LifiProvider
from .adapters import AggregatorAdapter, BridgeAdapter
from .amounts import format_amount_label, merge_checkpoints, to_decimal
from .constants import (
    MATRIX_KEY_AGGREGATOR,
    MATRIX_KEY_BRIDGE_AUTO,
    MATRIX_KEY_BRIDGE_MANUAL,
    PROVIDER_BUNGEE,
    PROVIDER_LIFI,
)
from .errors import ErrorClassification, ErrorKind, InvalidAmountError, InvalidQuoteRequest
from .models import NormalizedQuote, QuoteMatrix, SwapPair
from .pricing import PriceResolver
from .registry import ProviderConfig, ProviderRegistry, get_provider_registry

Cell = Tuple[str, str, NormalizedQuote]

MATRIX_KEYS_BY_PROVIDER: Dict[str, Tuple[str, ...]] = {
    PROVIDER_LIFI.lower(): (MATRIX_KEY_AGGREGATOR,),
    PROVIDER_BUNGEE.lower(): (MATRIX_KEY_BRIDGE_AUTO, MATRIX_KEY_BRIDGE_MANUAL),
}


class QuoteOrchestrator:
    """Builds the provider-route x checkpoint quote matrix for one swap pair.

    Token prices are resolved once per call. Every (provider, checkpoint)
    cell is quoted concurrently behind a semaphore; a failure in one cell
    never affects the others.
    """

    def __init__(
        self,
        *,
        resolver: Optional[PriceResolver] = None,
        aggregator: Optional[AggregatorAdapter] = None,
        bridge: Optional[BridgeAdapter] = None,
        registry: Optional[ProviderRegistry] = None,
        max_concurrency: Optional[int] = None,
        baseline_checkpoints: Optional[Iterable[Any]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._resolver = resolver or PriceResolver()
        self._aggregator = aggregator or AggregatorAdapter()
        self._bridge = bridge or BridgeAdapter()
        self._registry = registry
        self._max_concurrency = max(1, max_concurrency or settings.max_concurrent_requests)
        baseline = settings.baseline_checkpoints_usd if baseline_checkpoints is None else baseline_checkpoints
        self._baseline = [to_decimal(value) for value in baseline]

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry or get_provider_registry()

    async def aggregate(
        self,
        pair: SwapPair,
        checkpoints: Sequence[Any] = (),
        active_providers: Optional[Sequence[ProviderConfig]] = None,
    ) -> QuoteMatrix:
        """Quote ``pair`` at the baseline plus ``checkpoints`` USD amounts.

        Raises ``InvalidQuoteRequest`` for a malformed pair or a checkpoint
        that is not a finite positive amount; every other failure ends up as
        an error-tagged quote inside the matrix.
        """
        self._validate_pair(pair)
        amounts = self._checkpoints(checkpoints)
        providers = self._select_providers(self.registry.list_active() if active_providers is None else active_providers)

        unit_price_from, unit_price_to = await asyncio.gather(
            self._resolver.resolve(pair.from_chain, pair.from_token),
            self._resolver.resolve(pair.to_chain, pair.to_token),
        )
        self._logger.info(
            'Aggregating %s:%s -> %s:%s at %d checkpoints across %d providers (prices %s / %s)',
            pair.from_chain,
            pair.from_token,
            pair.to_chain,
            pair.to_token,
            len(amounts),
            len(providers),
            unit_price_from,
            unit_price_to,
        )

        semaphore = asyncio.Semaphore(self._max_concurrency)
        jobs: List[Tuple[ProviderConfig, Decimal]] = [(provider, amount) for provider in providers for amount in amounts]
        results = await asyncio.gather(
            *(self._quote_cell(semaphore, provider, pair, amount, unit_price_from) for provider, amount in jobs),
            return_exceptions=True,
        )

        rows: Dict[str, Dict[str, NormalizedQuote]] = {}
        for provider in providers:
            for key in MATRIX_KEYS_BY_PROVIDER[provider.name.lower()]:
                rows[key] = {}

        for (provider, amount), result in zip(jobs, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                cells = self._crashed_cells(provider, amount, result)
            else:
                cells = result
            for key, label, quote in cells:
                rows[key][label] = quote

        return QuoteMatrix(
            rows=rows,
            checkpoints=amounts,
            unit_price_from=unit_price_from,
            unit_price_to=unit_price_to,
        )

    async def _quote_cell(
        self,
        semaphore: asyncio.Semaphore,
        provider: ProviderConfig,
        pair: SwapPair,
        amount: Decimal,
        unit_price_from: Decimal,
    ) -> List[Cell]:
        label = format_amount_label(amount)
        async with semaphore:
            if provider.name.lower() == PROVIDER_LIFI.lower():
                quote = await self._aggregator.quote(pair, amount, unit_price_from, provider.api_key)
                return [(MATRIX_KEY_AGGREGATOR, label, quote)]

            both = await self._bridge.quote_both(pair, amount, unit_price_from, provider.api_key)
            return [
                (MATRIX_KEY_BRIDGE_AUTO, label, both.auto),
                (MATRIX_KEY_BRIDGE_MANUAL, label, both.manual),
            ]

    def _crashed_cells(self, provider: ProviderConfig, amount: Decimal, exc: Exception) -> List[Cell]:
        self._logger.error(
            'Quote for %s at %s crashed: %s',
            provider.name,
            format_amount_label(amount),
            exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        failure = NormalizedQuote.failure(
            ErrorClassification(ErrorKind.UNKNOWN_UPSTREAM_ERROR, "Failed to fetch quote", repr(exc)),
            provider_label=provider.name,
        )
        label = format_amount_label(amount)
        return [(key, label, failure) for key in MATRIX_KEYS_BY_PROVIDER[provider.name.lower()]]

    def _select_providers(self, providers: Iterable[ProviderConfig]) -> List[ProviderConfig]:
        selected: Dict[str, ProviderConfig] = {}
        for provider in providers:
            key = provider.name.lower()
            if key not in MATRIX_KEYS_BY_PROVIDER:
                self._logger.warning('Skipping provider %r: no quote adapter for it', provider.name)
                continue
            if key in selected:
                self._logger.warning('Skipping duplicate %s provider %s', provider.name, provider.id)
                continue
            selected[key] = provider
        return list(selected.values())

    @staticmethod
    def _validate_pair(pair: SwapPair) -> None:
        for field_name in ("from_chain", "from_token", "to_chain", "to_token"):
            value = getattr(pair, field_name, None)
            if not isinstance(value, str) or not value.strip():
                raise InvalidQuoteRequest(f"Swap pair is missing {field_name}")

    def _checkpoints(self, custom: Sequence[Any]) -> List[Decimal]:
        parsed: List[Decimal] = []
        for value in custom:
            try:
                amount = to_decimal(value)
            except InvalidAmountError as exc:
                raise InvalidQuoteRequest(f"Invalid checkpoint {value!r}") from exc
            if not amount.is_finite() or amount <= 0:
                raise InvalidQuoteRequest(f"Checkpoints must be positive USD amounts, got {value!r}")
            parsed.append(amount)

        merged = merge_checkpoints(parsed, self._baseline)
        if not merged:
            raise InvalidQuoteRequest("No checkpoints to quote")
        return merged


_default_orchestrator: Optional[QuoteOrchestrator] = None


def build_quote_orchestrator(*, registry: Optional[ProviderRegistry] = None) -> QuoteOrchestrator:
    """Wire an orchestrator whose resolver and adapters share provider clients."""
    token_cache = TTLCache(default_ttl=settings.token_list_ttl_seconds, max_size=settings.max_cache_size)
    lifi = LifiProvider(cache=token_cache)
    bungee = BungeeProvider(cache=token_cache)
    resolver = PriceResolver(
        cache=PriceCache(ttl_seconds=settings.price_cache_ttl_seconds),
        price_feed=CoingeckoProvider(),
        bungee=bungee,
        lifi=lifi,
    )
    return QuoteOrchestrator(
        resolver=resolver,
        aggregator=AggregatorAdapter(client=lifi),
        bridge=BridgeAdapter(client=bungee),
        registry=registry,
    )


def get_quote_orchestrator() -> QuoteOrchestrator:
    global _default_orchestrator
    if _default_orchestrator is None:
        _default_orchestrator = build_quote_orchestrator()
    return _default_orchestrator
