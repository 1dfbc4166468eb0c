from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class HttpProvider(Provider):
    """Provider backed by one or more HTTP base URLs.

    Requests go to the first base URL; the next one is tried only on transport
    errors or when a host does not expose the route (405).
    """

    health_path: str = "/"

    def __init__(
        self,
        *,
        base_urls: List[str],
        api_key: str = "",
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_urls = [url.rstrip("/") for url in base_urls if url]
        self.api_key = api_key
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _client(self, base_url: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=base_url, timeout=self.timeout_s, transport=self._transport)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        merged_headers = {**self._headers(), **(headers or {})}
        last_error: Optional[Exception] = None

        for index, base_url in enumerate(self.base_urls):
            try:
                async with self._client(base_url) as client:
                    resp = await client.request(method, path, headers=merged_headers, **kwargs)
                    resp.raise_for_status()
                    return resp
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code == 405 and index < len(self.base_urls) - 1:
                    last_error = exc
                    continue
                raise
            except httpx.RequestError as exc:
                last_error = exc
                continue

        if last_error:
            raise last_error
        raise RuntimeError(f"All {self.name} hosts failed without a specific error")

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        cleaned: Dict[str, Any] = {k: v for k, v in (params or {}).items() if v is not None}
        resp = await self._request("GET", path, params=cleaned)
        return resp.json()

    async def health_check(self) -> Dict[str, Any]:
        try:
            resp = await self._request("GET", self.health_path)
            return {"status": "healthy", "latency_ms": int(resp.elapsed.total_seconds() * 1000)}
        except Exception as e:
            return {"status": "error", "reason": str(e)}
