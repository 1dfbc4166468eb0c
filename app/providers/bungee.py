from typing import Any, Dict, List, Optional

import httpx

from ..cache import TTLCache
from ..config import settings
from .base import HttpProvider


class BungeeProvider(HttpProvider):
    """Thin client for the Bungee (Socket) public API surface."""

    name = "bungee"
    health_path = "/api/v1/supported-chains"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[TTLCache] = None,
    ):
        # Explicit args → settings → defaults
        configured = base_url or settings.bungee_base_url
        super().__init__(
            base_urls=[configured] if configured else ['https://public-backend.bungee.exchange'],
            api_key=api_key if api_key is not None else settings.bungee_api_key,
            timeout_s=timeout_s,
            transport=transport,
        )
        self._cache = cache or TTLCache(default_ttl=settings.token_list_ttl_seconds, max_size=settings.max_cache_size)

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'application/json',
        }
        if self.api_key:
            headers['API-KEY'] = self.api_key
        return headers

    async def token_list(self) -> Dict[str, List[Dict[str, Any]]]:
        """Every chain's token list, keyed by chain id string (cached).

        Raises ``ValueError`` when the envelope carries no usable list, so an
        upstream hiccup is never cached as an empty catalog.
        """

        async def fetch() -> Dict[str, List[Dict[str, Any]]]:
            payload = await self._get_json('/api/v1/tokens/list')
            result = payload.get('result') if isinstance(payload, dict) and payload.get('success') else None
            if not isinstance(result, dict):
                raise ValueError(f"Bungee token list unavailable: {_envelope_message(payload)}")
            return {str(chain): list(items or []) for chain, items in result.items()}

        return await self._cache.get_or_fetch('bungee:tokens', fetch)

    async def tokens_for_chain(self, chain_id: str) -> List[Dict[str, Any]]:
        return (await self.token_list()).get(str(chain_id), [])

    async def supported_chains(self) -> List[Dict[str, Any]]:
        async def fetch() -> List[Dict[str, Any]]:
            payload = await self._get_json('/api/v1/supported-chains')
            result = payload.get('result') if isinstance(payload, dict) and payload.get('success') else None
            if not isinstance(result, list):
                raise ValueError(f"Bungee chain list unavailable: {_envelope_message(payload)}")
            return result

        return await self._cache.get_or_fetch('bungee:chains', fetch)

    async def quote(self, params: Dict[str, Any], *, api_key: Optional[str] = None) -> Dict[str, Any]:
        """Fetch auto and manual route quotes via the public v1 API."""

        headers = {'Authorization': f'Bearer {api_key}'} if api_key else None
        cleaned_params: Dict[str, Any] = {k: v for k, v in params.items() if v is not None}
        resp = await self._request('GET', '/api/v1/bungee/quote', params=cleaned_params, headers=headers)
        return resp.json()


def _envelope_message(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get('message') or 'success=false')
    return f"unexpected payload type {type(payload).__name__}"
