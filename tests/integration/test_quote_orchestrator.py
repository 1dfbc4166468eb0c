"""
Tests for QuoteOrchestrator.

Covers:
- Matrix keys and amount labels
- One price resolution per token per request
- Per-cell failure isolation
- Bounded fan-out concurrency
- Structural validation of the request
- End-to-end through mocked upstream APIs
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.cache import PriceCache, TTLCache
from app.core.quotes import BridgeQuotes, ErrorKind, InvalidQuoteRequest, NormalizedQuote, SwapPair
from app.core.quotes.adapters import AggregatorAdapter, BridgeAdapter
from app.core.quotes.constants import ZERO_ADDRESS
from app.core.quotes.orchestrator import QuoteOrchestrator
from app.core.quotes.pricing import PriceResolver
from app.core.quotes.registry import ProviderRegistry
from app.providers.bungee import BungeeProvider
from app.providers.lifi import LifiProvider

USDC_POLYGON = "0x3c499c542cef5e3811e1192ce70d8cc03d5c3359"


def ok(amount: str, label: str = "Route") -> NormalizedQuote:
    return NormalizedQuote.success(
        output_amount=amount,
        provider_label=label,
        input_token_amount="1.000000",
        unit_price=Decimal("1"),
        estimated_time_seconds=60,
        route_label=label,
    )


@pytest.fixture
def pair():
    return SwapPair(from_chain="1", from_token=ZERO_ADDRESS, to_chain="137", to_token=USDC_POLYGON)


@pytest.fixture
def resolver():
    resolver = MagicMock()
    resolver.resolve = AsyncMock(side_effect=lambda chain, token: Decimal("2630") if chain == "1" else Decimal("1"))
    return resolver


@pytest.fixture
def aggregator():
    adapter = MagicMock()
    adapter.quote = AsyncMock(side_effect=lambda pair, amount, price, api_key=None: ok(f"{int(amount)}.00", "Stargate"))
    return adapter


@pytest.fixture
def bridge():
    adapter = MagicMock()
    adapter.quote_both = AsyncMock(
        side_effect=lambda pair, amount, price, api_key=None: BridgeQuotes(auto=ok("1.0000", "across (Auto)"), manual=ok("1.1000", "hop"))
    )
    return adapter


@pytest.fixture
def registry():
    return ProviderRegistry()


@pytest.fixture
def orchestrator(resolver, aggregator, bridge, registry):
    return QuoteOrchestrator(
        resolver=resolver,
        aggregator=aggregator,
        bridge=bridge,
        registry=registry,
        max_concurrency=4,
        baseline_checkpoints=[1000, 7000, 30000, 120000],
    )


class TestAggregate:

    @pytest.mark.asyncio
    async def test_matrix_shape(self, orchestrator, pair):
        matrix = await orchestrator.aggregate(pair, [500, 7000])

        assert list(matrix.rows) == ["aggregator", "bridge_auto", "bridge_manual"]
        for cells in matrix.rows.values():
            assert list(cells) == ["$500", "$1k", "$7k", "$30k", "$120k"]
        assert matrix.rows["bridge_manual"]["$1k"].provider_label == "hop"

    @pytest.mark.asyncio
    async def test_prices_resolved_once_per_token(self, orchestrator, resolver, aggregator, pair):
        matrix = await orchestrator.aggregate(pair, [])

        assert resolver.resolve.await_count == 2
        assert matrix.unit_price_from == Decimal("2630")
        assert matrix.unit_price_to == Decimal("1")
        assert aggregator.quote.await_count == 4
        for call in aggregator.quote.await_args_list:
            assert call.args[2] == Decimal("2630")

    @pytest.mark.asyncio
    async def test_registry_api_keys_are_forwarded(self, orchestrator, registry, aggregator, pair):
        lifi = registry.list_active()[0]
        registry.update(lifi.id, api_key="lifi-key")

        await orchestrator.aggregate(pair, [])

        assert all(call.args[3] == "lifi-key" for call in aggregator.quote.await_args_list)

    @pytest.mark.asyncio
    async def test_inactive_provider_is_not_quoted(self, orchestrator, registry, bridge, pair):
        bungee = registry.list_active()[1]
        registry.delete(bungee.id)

        matrix = await orchestrator.aggregate(pair, [])

        assert list(matrix.rows) == ["aggregator"]
        bridge.quote_both.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_provider_is_skipped(self, orchestrator, registry, pair):
        registry.create("SomeDex", "https://dex.example.com")

        matrix = await orchestrator.aggregate(pair, [])

        assert set(matrix.rows) == {"aggregator", "bridge_auto", "bridge_manual"}

    @pytest.mark.asyncio
    async def test_explicit_active_providers(self, orchestrator, registry, aggregator, bridge, pair):
        lifi = registry.list_active()[0]

        matrix = await orchestrator.aggregate(pair, [], active_providers=[lifi])

        assert list(matrix.rows) == ["aggregator"]
        bridge.quote_both.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_crashing_cell_is_isolated(self, orchestrator, aggregator, pair):
        def flaky(pair, amount, price, api_key=None):
            if amount == Decimal(7000):
                raise RuntimeError("adapter bug")
            return ok("1.00")

        aggregator.quote.side_effect = flaky

        matrix = await orchestrator.aggregate(pair, [])

        crashed = matrix.rows["aggregator"]["$7k"]
        assert crashed.error_kind == ErrorKind.UNKNOWN_UPSTREAM_ERROR
        assert crashed.output_amount == "0.0000"
        assert matrix.rows["aggregator"]["$1k"].output_amount == "1.00"
        assert matrix.rows["bridge_auto"]["$7k"].error_kind is None

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, orchestrator, aggregator, bridge, pair):
        in_flight = 0
        peak = 0

        async def slow(pair, amount, price, api_key=None):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return ok("1.00")

        async def slow_both(pair, amount, price, api_key=None):
            quote = await slow(pair, amount, price)
            return BridgeQuotes(auto=quote, manual=quote)

        aggregator.quote.side_effect = slow
        bridge.quote_both.side_effect = slow_both

        await orchestrator.aggregate(pair, [10, 20, 30, 40])

        assert 1 < peak <= 4

    @pytest.mark.asyncio
    async def test_to_dict(self, orchestrator, pair):
        matrix = await orchestrator.aggregate(pair, [])
        payload = matrix.to_dict()

        assert payload["aggregator"]["$1k"]["outputAmount"] == "1000.00"
        assert payload["bridge_auto"]["$120k"]["provider"] == "across (Auto)"


class TestValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_pair",
        [
            SwapPair(from_chain="", from_token=ZERO_ADDRESS, to_chain="137", to_token=USDC_POLYGON),
            SwapPair(from_chain="1", from_token="  ", to_chain="137", to_token=USDC_POLYGON),
            SwapPair(from_chain="1", from_token=ZERO_ADDRESS, to_chain="137", to_token=None),
        ],
    )
    async def test_malformed_pair(self, orchestrator, resolver, bad_pair):
        with pytest.raises(InvalidQuoteRequest):
            await orchestrator.aggregate(bad_pair, [])
        resolver.resolve.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("checkpoint", [-5, 0, float("nan"), "abc"])
    async def test_invalid_checkpoint(self, orchestrator, pair, checkpoint):
        with pytest.raises(InvalidQuoteRequest):
            await orchestrator.aggregate(pair, [checkpoint])

    @pytest.mark.asyncio
    async def test_empty_checkpoint_set(self, resolver, aggregator, bridge, registry, pair):
        orchestrator = QuoteOrchestrator(
            resolver=resolver,
            aggregator=aggregator,
            bridge=bridge,
            registry=registry,
            baseline_checkpoints=[],
        )
        with pytest.raises(InvalidQuoteRequest):
            await orchestrator.aggregate(pair, [])


class TestEndToEnd:
    """Real adapters and resolver wired to mocked upstream HTTP."""

    @staticmethod
    def lifi_handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/tokens":
            chain = request.url.params["chains"]
            tokens = {
                "1": [{"address": ZERO_ADDRESS, "symbol": "ETH", "decimals": 18}],
                "137": [{"address": USDC_POLYGON, "symbol": "USDC", "decimals": 6}],
            }
            return httpx.Response(200, json={"tokens": {chain: tokens[chain]}})
        if request.url.path == "/v1/quote":
            # $1000 at 2630/ETH -> 0.380228 ETH
            if request.url.params["fromAmount"] == "380228000000000000":
                return httpx.Response(200, json={"estimate": {"toAmount": "2630000000", "executionDuration": 30}, "tool": "across"})
            return httpx.Response(200, json={"estimate": {"toAmount": "18410000000"}, "tool": "across"})
        return httpx.Response(404)

    @staticmethod
    def bungee_handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v1/tokens/list":
            return httpx.Response(200, json={"success": True, "result": {}})
        return httpx.Response(429, text="rate limited")

    @pytest.fixture
    def wired(self):
        lifi = LifiProvider(api_key="", base_url="https://li.test", transport=httpx.MockTransport(self.lifi_handler), cache=TTLCache())
        bungee = BungeeProvider(api_key="", base_url="https://bungee.test", transport=httpx.MockTransport(self.bungee_handler), cache=TTLCache())
        price_feed = MagicMock()
        price_feed.get_price_by_id = AsyncMock(return_value=Decimal("2630"))
        price_feed.get_price_by_contract = AsyncMock(return_value=None)

        resolver = PriceResolver(cache=PriceCache(), price_feed=price_feed, bungee=bungee, lifi=lifi)
        return QuoteOrchestrator(
            resolver=resolver,
            aggregator=AggregatorAdapter(client=lifi),
            bridge=BridgeAdapter(client=bungee),
            registry=ProviderRegistry(),
            baseline_checkpoints=[],
        )

    @pytest.mark.asyncio
    async def test_full_matrix(self, wired, pair):
        matrix = await wired.aggregate(pair, [1000, 7000])

        assert matrix.rows["aggregator"]["$1k"].output_amount == "2630.00"
        assert matrix.rows["aggregator"]["$1k"].display_time() == "1 min"
        assert matrix.rows["aggregator"]["$7k"].output_amount == "18410.00"

        for key in ("bridge_auto", "bridge_manual"):
            for quote in matrix.rows[key].values():
                assert quote.error_kind == ErrorKind.RATE_LIMITED
                assert quote.output_amount == "0.0000"

        # USDC on Polygon resolves from the stablecoin list without a feed hit
        assert matrix.unit_price_to == Decimal("1.0")
