from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.quotes.models import parse_decimal
from .base import HttpProvider


class CoingeckoProvider(HttpProvider):
    """Coingecko spot-price feed (simple price by coin id or by contract)."""

    name = "coingecko"
    health_path = "/ping"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = 15,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_urls=[base_url or settings.coingecko_base_url],
            api_key=api_key if api_key is not None else settings.coingecko_api_key,
            timeout_s=timeout_s,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["X-CG-Demo-API-Key"] = self.api_key
        return headers

    async def get_price_by_id(self, coin_id: str, vs_currency: str = "usd") -> Optional[Decimal]:
        """USD price for a Coingecko coin id, or None when the feed has no usable value."""
        params = {
            "ids": coin_id,
            "vs_currencies": vs_currency,
        }
        data: Dict[str, Any] = await self._get_json("/simple/price", params)
        entry = data.get(coin_id) if isinstance(data, dict) else None
        if not isinstance(entry, dict):
            return None
        return _positive(entry.get(vs_currency))

    async def get_price_by_contract(
        self,
        platform: str,
        contract_address: str,
        vs_currency: str = "usd",
    ) -> Optional[Decimal]:
        """USD price for a token contract on a Coingecko asset platform."""
        address = contract_address.lower()
        params = {
            "contract_addresses": address,
            "vs_currencies": vs_currency,
        }
        data: Dict[str, Any] = await self._get_json(f"/simple/token_price/{platform}", params)
        if not isinstance(data, dict):
            return None

        entry = data.get(address)
        if entry is None:
            # Coingecko echoes the address in whatever case it indexes it under
            entry = next((v for k, v in data.items() if str(k).lower() == address), None)
        if not isinstance(entry, dict):
            return None
        return _positive(entry.get(vs_currency))


def _positive(value: Any) -> Optional[Decimal]:
    parsed = parse_decimal(value)
    if parsed is None or parsed <= 0:
        return None
    return parsed
