"""Async client for the LI.FI cross-chain aggregation API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from ..cache import TTLCache
from ..config import settings
from .base import HttpProvider


class LifiProvider(HttpProvider):
    """Thin wrapper around https://li.quest/v1 endpoints."""

    name = "lifi"
    health_path = "/v1/chains"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        configured = base_url or settings.lifi_base_url
        super().__init__(
            base_urls=[configured] if configured else ["https://li.quest"],
            api_key=api_key if api_key is not None else settings.lifi_api_key,
            timeout_s=timeout_s,
            transport=transport,
        )
        self._cache = cache or TTLCache(default_ttl=settings.token_list_ttl_seconds, max_size=settings.max_cache_size)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-lifi-api-key"] = self.api_key
        return headers

    async def tokens_for_chain(self, chain_id: str) -> List[Dict[str, Any]]:
        """Token list for one chain (cached per chain).

        A payload without a list for the chain is returned as empty and not
        cached, so the next call asks again.
        """

        async def fetch() -> Optional[List[Dict[str, Any]]]:
            payload = await self._get_json("/v1/tokens", {"chains": str(chain_id)})
            by_chain = payload.get("tokens") if isinstance(payload, dict) else None
            tokens = by_chain.get(str(chain_id)) if isinstance(by_chain, dict) else None
            return list(tokens) if isinstance(tokens, list) else None

        return await self._cache.get_or_fetch(f"lifi:tokens:{chain_id}", fetch) or []

    async def chains(self) -> List[Dict[str, Any]]:
        async def fetch() -> Optional[List[Dict[str, Any]]]:
            payload = await self._get_json("/v1/chains")
            chains = payload.get("chains") if isinstance(payload, dict) else None
            return chains if isinstance(chains, list) else None

        return await self._cache.get_or_fetch("lifi:chains", fetch) or []

    async def quote(self, params: Dict[str, Any], *, api_key: Optional[str] = None) -> Dict[str, Any]:
        """Request a single-step quote from ``/v1/quote``.

        ``api_key`` is a per-provider registry key; it is sent as a bearer token
        on top of the configured ``x-lifi-api-key`` header.
        """

        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        cleaned_params: Dict[str, Any] = {k: v for k, v in params.items() if v is not None}
        resp = await self._request("GET", "/v1/quote", params=cleaned_params, headers=headers)
        return resp.json()
