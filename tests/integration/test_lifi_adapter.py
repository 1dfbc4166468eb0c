"""
AggregatorAdapter against a mocked LI.FI API (httpx.MockTransport).
"""

import asyncio
import json
from decimal import Decimal
from typing import Any, Callable, Dict, List
from unittest.mock import MagicMock

import httpx
import pytest

from app.cache import TTLCache
from app.core.quotes import ErrorKind, SwapPair
from app.core.quotes.adapters import AggregatorAdapter
from app.core.quotes.constants import EEEE_ADDRESS, ZERO_ADDRESS
from app.providers.lifi import LifiProvider

USDC_POLYGON = "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359"
PLACEHOLDER = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"

TOKENS = {
    "1": [{"address": ZERO_ADDRESS, "symbol": "ETH", "decimals": 18, "priceUSD": "2630"}],
    "137": [{"address": USDC_POLYGON, "symbol": "USDC", "decimals": 6, "priceUSD": "1.00"}],
}


class FakeLifi:
    """Routes mocked requests and records every call."""

    def __init__(self, quote: Callable[[httpx.Request], httpx.Response]):
        self.quote = quote
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/v1/tokens":
            chain = request.url.params["chains"]
            return httpx.Response(200, json={"tokens": {chain: TOKENS.get(chain, [])}})
        if request.url.path == "/v1/quote":
            return self.quote(request)
        return httpx.Response(404, json={"message": "unknown path"})

    def quote_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/v1/quote"]


def quote_payload(to_amount: str = "2630000000", **extra: Any) -> Dict[str, Any]:
    payload = {
        "estimate": {"toAmount": to_amount, "executionDuration": 45},
        "tool": "stargateV2",
        "toolDetails": {"name": "StargateV2"},
    }
    payload.update(extra)
    return payload


def make_adapter(handler: FakeLifi) -> AggregatorAdapter:
    client = LifiProvider(
        api_key="",
        base_url="https://li.test",
        transport=httpx.MockTransport(handler),
        cache=TTLCache(),
    )
    return AggregatorAdapter(client=client, placeholder_address=PLACEHOLDER)


@pytest.fixture
def pair():
    return SwapPair(from_chain="1", from_token=ZERO_ADDRESS, to_chain="137", to_token=USDC_POLYGON)


class TestAggregatorAdapter:

    @pytest.mark.asyncio
    async def test_success_formats_two_places(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(200, json=quote_payload()))
        adapter = make_adapter(handler)

        quote = await adapter.quote(pair, Decimal("1000"), Decimal("2630"))

        assert quote.output_amount == "2630.00"
        assert quote.error_kind is None
        assert quote.provider_label == "StargateV2"
        assert quote.route_label == "StargateV2"
        assert quote.estimated_time_seconds == 45
        assert quote.input_token_amount == "0.380228"
        assert quote.unit_price == Decimal("2630")

    @pytest.mark.asyncio
    async def test_request_parameters(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(200, json=quote_payload()))
        adapter = make_adapter(handler)

        await adapter.quote(pair, Decimal("1000"), Decimal("2630"), api_key="registry-key")

        [request] = handler.quote_requests()
        params = request.url.params
        assert params["fromChain"] == "1"
        assert params["toChain"] == "137"
        assert params["fromToken"] == ZERO_ADDRESS
        assert params["toToken"] == USDC_POLYGON
        # floor(0.380228136... * 1e6) * 1e18 / 1e6
        assert params["fromAmount"] == "380228000000000000"
        assert params["fromAddress"] == PLACEHOLDER
        assert request.headers["authorization"] == "Bearer registry-key"

    @pytest.mark.asyncio
    async def test_eeee_native_sent_as_zero_address(self):
        handler = FakeLifi(lambda request: httpx.Response(200, json=quote_payload()))
        adapter = make_adapter(handler)
        pair = SwapPair(from_chain="1", from_token=EEEE_ADDRESS, to_chain="137", to_token=USDC_POLYGON)

        await adapter.quote(pair, 1000, 2630)

        assert handler.quote_requests()[0].url.params["fromToken"] == ZERO_ADDRESS

    @pytest.mark.asyncio
    async def test_rate_limited(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(429, json={"message": "Too Many Requests"}))
        quote = await make_adapter(handler).quote(pair, 1000, 2630)

        assert quote.error_kind == ErrorKind.RATE_LIMITED
        assert quote.output_amount == "0.0000"
        assert quote.error == "Rate limited - please wait"

    @pytest.mark.asyncio
    async def test_price_impact_is_no_liquidity(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(404, content=json.dumps({"message": "Price impact too high"})))
        quote = await make_adapter(handler).quote(pair, 120000, 2630)

        assert quote.error_kind == ErrorKind.NO_LIQUIDITY
        assert quote.to_dict()["error"] == "Amount too large"
        assert "Price impact" not in json.dumps(quote.to_dict())

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_unavailable(self, pair):
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        quote = await make_adapter(FakeLifi(timeout)).quote(pair, 1000, 2630)

        assert quote.error_kind == ErrorKind.UPSTREAM_UNAVAILABLE
        assert quote.output_amount == "0.0000"

    @pytest.mark.asyncio
    async def test_missing_output_is_no_quote(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(200, json={"estimate": {"toAmount": "0"}}))
        quote = await make_adapter(handler).quote(pair, 1000, 2630)

        assert quote.error_kind == ErrorKind.NO_QUOTE_AVAILABLE
        assert quote.error == "Insufficient liquidity"

    @pytest.mark.asyncio
    async def test_response_without_estimate(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(200, json={"message": "No route"}))
        quote = await make_adapter(handler).quote(pair, 1000, 2630)

        assert quote.error_kind == ErrorKind.NO_QUOTE_AVAILABLE
        assert quote.error == "No route"

    @pytest.mark.asyncio
    async def test_invalid_amount_makes_no_network_call(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(200, json=quote_payload()))
        quote = await make_adapter(handler).quote(pair, Decimal("NaN"), 2630)

        assert quote.error_kind == ErrorKind.INVALID_AMOUNT
        assert quote.output_amount == "0.0000"
        assert quote.input_token_amount == "0"
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_non_positive_price_is_quoted_at_one(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(200, json=quote_payload()))
        quote = await make_adapter(handler).quote(pair, 1000, 0)

        assert quote.unit_price == Decimal("1")
        assert handler.quote_requests()[0].url.params["fromAmount"] == "1000000000000000000000"

    @pytest.mark.asyncio
    async def test_unknown_tokens_default_to_18_decimals(self):
        handler = FakeLifi(lambda request: httpx.Response(200, json=quote_payload(to_amount="1500000000000000000")))
        pair = SwapPair(from_chain="10", from_token=ZERO_ADDRESS, to_chain="8453", to_token="0x1234")

        quote = await make_adapter(handler).quote(pair, 1000, 1000)

        assert quote.output_amount == "1.50"
        assert handler.quote_requests()[0].url.params["fromAmount"] == "1000000000000000000"

    @pytest.mark.asyncio
    async def test_token_lists_cached_across_checkpoints(self, pair):
        handler = FakeLifi(lambda request: httpx.Response(200, json=quote_payload()))
        adapter = make_adapter(handler)

        await adapter.quote(pair, 1000, 2630)
        await adapter.quote(pair, 7000, 2630)

        token_calls = [r for r in handler.requests if r.url.path == "/v1/tokens"]
        assert len(token_calls) == 2  # one per chain
        assert len(handler.quote_requests()) == 2

    @pytest.mark.asyncio
    async def test_tool_label_fallbacks(self, pair):
        payload = {"estimate": {"toAmount": "1000000"}, "steps": [{"tool": {"name": "Hop"}}]}
        handler = FakeLifi(lambda request: httpx.Response(200, json=payload))
        quote = await make_adapter(handler).quote(pair, 1000, 2630)

        assert quote.provider_label == "Hop"
        assert quote.estimated_time_seconds == 120


class TestTokenListCaching:

    @pytest.mark.asyncio
    async def test_missing_chain_list_is_not_cached(self, pair):
        upstream = {"healthy": False}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/tokens":
                chain = request.url.params["chains"]
                if chain == "137" and not upstream["healthy"]:
                    return httpx.Response(200, json={"tokens": {}})
                return httpx.Response(200, json={"tokens": {chain: TOKENS[chain]}})
            return httpx.Response(200, json=quote_payload())

        client = LifiProvider(api_key="", base_url="https://li.test", transport=httpx.MockTransport(handler), cache=TTLCache())
        adapter = AggregatorAdapter(client=client, placeholder_address=PLACEHOLDER)

        during = await adapter.quote(pair, 1000, 2630)
        upstream["healthy"] = True
        after = await adapter.quote(pair, 1000, 2630)

        assert during.error_kind == ErrorKind.NO_QUOTE_AVAILABLE
        assert after.output_amount == "2630.00"

    @pytest.mark.asyncio
    async def test_concurrent_checkpoints_share_token_list_fetches(self, pair):
        token_calls: List[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/tokens":
                chain = request.url.params["chains"]
                token_calls.append(chain)
                await asyncio.sleep(0.01)
                return httpx.Response(200, json={"tokens": {chain: TOKENS[chain]}})
            return httpx.Response(200, json=quote_payload())

        client = LifiProvider(api_key="", base_url="https://li.test", transport=httpx.MockTransport(handler), cache=TTLCache())
        adapter = AggregatorAdapter(client=client, placeholder_address=PLACEHOLDER)

        results = await asyncio.gather(*(adapter.quote(pair, amount, 2630) for amount in (1000, 7000, 30000, 120000)))

        assert sorted(token_calls) == ["1", "137"]
        assert all(quote.error_kind is None for quote in results)

    @pytest.mark.asyncio
    async def test_conversion_log_renders_plain_amount(self, pair):
        logger = MagicMock()
        handler = FakeLifi(lambda request: httpx.Response(200, json=quote_payload()))
        client = LifiProvider(api_key="", base_url="https://li.test", transport=httpx.MockTransport(handler), cache=TTLCache())
        adapter = AggregatorAdapter(client=client, placeholder_address=PLACEHOLDER, logger=logger)

        await adapter.quote(pair, Decimal("7E+3"), 2630)

        [conversion] = [c for c in logger.info.call_args_list if "conversion" in c.args[0]]
        assert conversion.args[2] == "7000"
