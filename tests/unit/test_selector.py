"""Unit tests for the proxy selector."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from corsrelay.proxy.probe import HealthProbe
from corsrelay.proxy.registry import ProxyRegistry
from corsrelay.proxy.selector import ProxySelector
from corsrelay.proxy.types import RequestOptions


class FakeProbe(HealthProbe):
    """Probe that answers from a fixed endpoint → health map."""

    def __init__(self, results: dict[str, bool]) -> None:
        super().__init__()
        self.results = results
        self.calls: list[str] = []

    async def check(self, descriptor) -> bool:
        self.calls.append(descriptor.endpoint)
        await asyncio.sleep(0)
        return self.results.get(descriptor.endpoint, False)


class TestSelectHealthyProxy:
    @pytest.mark.asyncio
    async def test_picks_best_healthy(self, make_registry):
        registry = make_registry([1, 2, 3])
        e1, e2, e3 = (d.endpoint for d in registry)
        selector = ProxySelector(registry, FakeProbe({e1: False, e2: True, e3: False}))

        assert await selector.select_healthy_proxy() == e2

    @pytest.mark.asyncio
    async def test_all_unhealthy_returns_none(self, make_registry):
        registry = make_registry([1, 2, 3])
        selector = ProxySelector(registry, FakeProbe({}))

        assert await selector.select_healthy_proxy() is None
        assert not any(d.healthy for d in registry)

    @pytest.mark.asyncio
    async def test_empty_registry_returns_none(self):
        selector = ProxySelector(ProxyRegistry(), FakeProbe({}))
        assert await selector.select_healthy_proxy() is None

    @pytest.mark.asyncio
    async def test_probes_every_relay_and_records(self, make_registry):
        registry = make_registry([3, 1, 2])
        endpoints = [d.endpoint for d in registry]
        probe = FakeProbe({endpoints[0]: True})
        selector = ProxySelector(registry, probe)

        assert await selector.select_healthy_proxy() == endpoints[0]
        assert sorted(probe.calls) == sorted(endpoints)
        assert all(d.last_checked_at is not None for d in registry)

    @pytest.mark.asyncio
    async def test_recovers_previously_unhealthy(self, make_registry):
        registry = make_registry([1, 2])
        first = next(iter(registry))
        first.healthy = False
        selector = ProxySelector(registry, FakeProbe({first.endpoint: True}))

        assert await selector.select_healthy_proxy() == first.endpoint
        assert first.healthy is True


class TestRefreshHealth:
    @pytest.mark.asyncio
    async def test_probes_run_concurrently(self, make_registry):
        registry = make_registry([1, 2, 3])
        in_flight = 0
        peak = 0

        class SlowProbe(HealthProbe):
            async def check(self, descriptor) -> bool:
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return True

        results = await ProxySelector(registry, SlowProbe()).refresh_health()
        assert peak == 3
        assert results == {d.endpoint: True for d in registry}


class TestGetDefaultOrNamed:
    def test_default_is_best_healthy(self, registry, path_relay):
        selector = ProxySelector(registry, FakeProbe({}))
        assert selector.get_default_or_named() is path_relay

    def test_default_skips_unhealthy(self, registry, path_relay, query_relay):
        path_relay.healthy = False
        selector = ProxySelector(registry, FakeProbe({}))
        assert selector.get_default_or_named() is query_relay

    def test_named(self, registry, query_relay):
        selector = ProxySelector(registry, FakeProbe({}))
        assert selector.get_default_or_named(query_relay.endpoint) is query_relay

    def test_unknown_falls_back_to_default(self, registry, path_relay):
        selector = ProxySelector(registry, FakeProbe({}))
        assert selector.get_default_or_named("unknown-endpoint") is path_relay

    def test_unknown_with_no_healthy_relay_terminates(self, registry):
        for d in registry:
            d.healthy = False
        selector = ProxySelector(registry, FakeProbe({}))
        with patch.object(registry, "first_healthy", wraps=registry.first_healthy) as spy:
            assert selector.get_default_or_named("unknown-endpoint") is None
        assert spy.call_count == 1

    def test_empty_registry(self):
        selector = ProxySelector(ProxyRegistry(), FakeProbe({}))
        assert selector.get_default_or_named() is None
        assert selector.get_default_or_named("unknown-endpoint") is None

    def test_does_not_probe(self, registry):
        probe = FakeProbe({})
        ProxySelector(registry, probe).get_default_or_named()
        assert probe.calls == []


class TestTransformRequest:
    def test_uses_named_relay(self, registry, query_relay):
        selector = ProxySelector(registry, FakeProbe({}))
        result = selector.transform_request(
            query_relay.endpoint, "https://api.example.com/events"
        )
        assert result.url.startswith(f"{query_relay.endpoint}?url=")

    def test_passthrough_when_nothing_resolves(self):
        selector = ProxySelector(ProxyRegistry(), FakeProbe({}))
        options = RequestOptions(method="PUT")
        result = selector.transform_request(None, "https://api.example.com/events", options)
        assert result.url == "https://api.example.com/events"
        assert result.options is options


class TestGraphqlEndpoint:
    def test_path_relay(self, registry, path_relay):
        selector = ProxySelector(registry, FakeProbe({}))
        assert selector.graphql_endpoint(path_relay.endpoint) == f"{path_relay.endpoint}/proxy/gql"

    def test_query_relay(self, registry, query_relay):
        selector = ProxySelector(registry, FakeProbe({}))
        assert selector.graphql_endpoint(query_relay.endpoint) == query_relay.endpoint

    def test_nothing_resolves(self):
        selector = ProxySelector(ProxyRegistry(), FakeProbe({}))
        assert selector.graphql_endpoint("https://x.example.com/") == "https://x.example.com/gql"


class TestHealthCheckLoop:
    @pytest.mark.asyncio
    async def test_loop_refreshes_each_interval(self, make_registry):
        registry = make_registry([1])
        selector = ProxySelector(registry, FakeProbe({}), health_check_interval_seconds=60)
        sleep = AsyncMock(side_effect=[None, None, asyncio.CancelledError()])

        with patch("corsrelay.proxy.selector.asyncio.sleep", sleep):
            with patch.object(selector, "refresh_health", new_callable=AsyncMock) as refresh:
                with pytest.raises(asyncio.CancelledError):
                    await selector.health_check_loop()

        assert refresh.call_count == 2
        sleep.assert_called_with(60)
