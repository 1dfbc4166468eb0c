"""
Chain and token catalog merged from both quote providers.

The bridge aggregator's lists are primary; the cross-chain aggregator only
fills in chains and tokens the primary list does not know about.
"""

import logging
from typing import Dict, List, Optional

import httpx

from app.core.quotes.models import ChainInfo, TokenInfo
from app.providers.bungee import BungeeProvider
from app.providers.lifi import LifiProvider

logger = logging.getLogger(__name__)


class CatalogService:
    """Supported chains and per-chain tokens for the selection UI."""

    def __init__(
        self,
        *,
        bungee: Optional[BungeeProvider] = None,
        lifi: Optional[LifiProvider] = None,
    ):
        self._bungee = bungee or BungeeProvider()
        self._lifi = lifi or LifiProvider()

    async def list_chains(self) -> List[ChainInfo]:
        chains: Dict[str, ChainInfo] = {}

        try:
            for raw in await self._bungee.supported_chains():
                if isinstance(raw, dict) and raw.get("chainId") is not None:
                    chain = ChainInfo.from_bungee(raw)
                    chains[chain.id] = chain
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Bungee chains fetch failed: {e}")

        try:
            for raw in await self._lifi.chains():
                if isinstance(raw, dict) and raw.get("id") is not None:
                    chain = ChainInfo.from_lifi(raw)
                    chains.setdefault(chain.id, chain)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"LiFi chains fetch failed: {e}")

        return list(chains.values())

    async def list_tokens(self, chain_id: str) -> List[TokenInfo]:
        tokens: Dict[str, TokenInfo] = {}

        try:
            for raw in await self._bungee.tokens_for_chain(chain_id):
                if isinstance(raw, dict) and raw.get("address"):
                    token = TokenInfo.from_bungee(raw)
                    tokens[token.address.lower()] = token
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Bungee tokens fetch failed for chain {chain_id}: {e}")

        try:
            for raw in await self._lifi.tokens_for_chain(chain_id):
                if isinstance(raw, dict) and raw.get("address"):
                    token = TokenInfo.from_lifi(raw)
                    tokens.setdefault(token.address.lower(), token)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"LiFi tokens fetch failed for chain {chain_id}: {e}")

        return list(tokens.values())


_default_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get the default catalog service instance."""
    global _default_service
    if _default_service is None:
        _default_service = CatalogService()
    return _default_service
