"""
USD unit price resolution.

Prices are resolved through an ordered cascade of strategies; the first one
that yields a positive price wins and is written to the shared PriceCache.
Every strategy failure is logged and treated as a miss, so ``resolve`` always
returns a price (``1.0`` in the worst case).
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional, Tuple

from ...cache import PriceCache
from ...config import settings
from ...providers.bungee import BungeeProvider
from ...providers.coingecko import CoingeckoProvider
from ...providers.lifi import LifiProvider
from .addresses import canonical, find_by_address, find_by_symbol, is_native
from .constants import (
    FALLBACK_PRICE,
    KNOWN_CONTRACT_FEED_IDS,
    NATIVE_FALLBACK_PRICES,
    NATIVE_PRICE_FEED_IDS,
    PLATFORM_SLUGS,
    STABLECOIN_ADDRESSES,
    WELL_KNOWN_SYMBOLS,
)
from .models import TokenInfo

PriceStrategy = Callable[[str, str], Awaitable[Optional[Decimal]]]


class PriceResolver:
    """Resolve a token's USD price on a chain, consulting the cache first."""

    def __init__(
        self,
        *,
        cache: Optional[PriceCache] = None,
        price_feed: Optional[CoingeckoProvider] = None,
        bungee: Optional[BungeeProvider] = None,
        lifi: Optional[LifiProvider] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._cache = cache or PriceCache(ttl_seconds=settings.price_cache_ttl_seconds)
        self._feed = price_feed or CoingeckoProvider()
        self._bungee = bungee or BungeeProvider()
        self._lifi = lifi or LifiProvider()
        self._strategies: List[Tuple[str, PriceStrategy]] = [
            ('native', self._native_price),
            ('bungee_token_list', self._bungee_token_list_price),
            ('lifi_token_list', self._lifi_token_list_price),
            ('known_contract', self._known_contract_price),
            ('platform_contract', self._platform_contract_price),
            ('stablecoin', self._stablecoin_price),
        ]

    @property
    def cache(self) -> PriceCache:
        return self._cache

    async def resolve(self, chain_id: str, token_address: str) -> Decimal:
        chain_id = str(chain_id)
        try:
            # Both native sentinels share one cache entry
            cache_address = canonical(token_address)
            cached = self._cache.get(chain_id, cache_address)
            if cached is not None:
                self._logger.debug('Price cache hit chain=%s token=%s price=%s', chain_id, token_address, cached)
                return cached

            for name, strategy in self._strategies:
                price = await self._run_strategy(name, strategy, chain_id, token_address)
                if price is not None:
                    self._logger.info('Resolved price chain=%s token=%s price=%s via %s', chain_id, token_address, price, name)
                    self._cache.put(chain_id, cache_address, price)
                    return price

            self._logger.error(
                'All price strategies failed for chain=%s token=%s; using fallback price %s. '
                'Add this token to the known contract mappings.',
                chain_id,
                token_address,
                FALLBACK_PRICE,
            )
            self._cache.put(chain_id, cache_address, FALLBACK_PRICE)
            return FALLBACK_PRICE
        except Exception:  # noqa: BLE001
            self._logger.exception('Price resolution crashed for chain=%s token=%s', chain_id, token_address)
            return FALLBACK_PRICE

    async def _run_strategy(
        self,
        name: str,
        strategy: PriceStrategy,
        chain_id: str,
        token_address: str,
    ) -> Optional[Decimal]:
        try:
            price = await strategy(chain_id, token_address)
        except Exception as exc:  # noqa: BLE001
            self._logger.warning('Price strategy %s failed for chain=%s token=%s: %s', name, chain_id, token_address, exc)
            return None
        if price is None or not price.is_finite() or price <= 0:
            self._logger.debug('Price strategy %s missed for chain=%s token=%s', name, chain_id, token_address)
            return None
        return price

    # ---------------------------
    # Strategies
    # ---------------------------
    async def _native_price(self, chain_id: str, token_address: str) -> Optional[Decimal]:
        if not is_native(token_address):
            return None

        coin_id = NATIVE_PRICE_FEED_IDS.get(chain_id)
        if coin_id:
            try:
                price = await self._feed.get_price_by_id(coin_id)
                if price is not None:
                    return price
            except Exception as exc:  # noqa: BLE001
                self._logger.warning('Native price feed failed for chain=%s (%s): %s', chain_id, coin_id, exc)

        fallback = NATIVE_FALLBACK_PRICES.get(chain_id)
        if fallback is not None:
            self._logger.warning('Using static native price for chain=%s: %s', chain_id, fallback)
        return fallback

    async def _bungee_token_list_price(self, chain_id: str, token_address: str) -> Optional[Decimal]:
        tokens = await self._bungee.tokens_for_chain(chain_id)
        return await self._match_token_price(tokens, chain_id, token_address, TokenInfo.from_bungee)

    async def _lifi_token_list_price(self, chain_id: str, token_address: str) -> Optional[Decimal]:
        tokens = await self._lifi.tokens_for_chain(chain_id)
        return await self._match_token_price(tokens, chain_id, token_address, TokenInfo.from_lifi)

    async def _match_token_price(self, tokens, chain_id, token_address, parse) -> Optional[Decimal]:
        if not tokens:
            return None

        match = find_by_address(tokens, token_address)
        if match is None:
            symbol = await self._lookup_symbol(chain_id, token_address)
            if symbol:
                match = find_by_symbol(tokens, symbol)
        if match is None:
            return None

        info = parse(match)
        if info.price_usd is None or info.price_usd <= 0:
            self._logger.debug('Token %s on chain %s has no usable %s price', info.symbol, chain_id, info.source)
            return None
        return info.price_usd

    async def _lookup_symbol(self, chain_id: str, token_address: str) -> Optional[str]:
        """Side lookup of a token's symbol by chain and address."""
        known = WELL_KNOWN_SYMBOLS.get(canonical(token_address))
        if known:
            return known

        for provider in (self._bungee, self._lifi):
            try:
                token = find_by_address(await provider.tokens_for_chain(chain_id), token_address)
            except Exception as exc:  # noqa: BLE001
                self._logger.debug('Symbol lookup via %s failed: %s', provider.name, exc)
                continue
            if token and token.get('symbol'):
                return str(token['symbol'])
        return None

    async def _known_contract_price(self, chain_id: str, token_address: str) -> Optional[Decimal]:
        coin_id = KNOWN_CONTRACT_FEED_IDS.get(canonical(token_address))
        if not coin_id:
            return None
        return await self._feed.get_price_by_id(coin_id)

    async def _platform_contract_price(self, chain_id: str, token_address: str) -> Optional[Decimal]:
        platform = PLATFORM_SLUGS.get(chain_id)
        if not platform or is_native(token_address):
            return None
        return await self._feed.get_price_by_contract(platform, canonical(token_address))

    async def _stablecoin_price(self, chain_id: str, token_address: str) -> Optional[Decimal]:
        if canonical(token_address) in STABLECOIN_ADDRESSES:
            return Decimal('1.0')
        return None
