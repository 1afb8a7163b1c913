"""Shared test fixtures for the relay test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from corsrelay.config.settings import RelaySettings
from corsrelay.proxy.registry import ProxyRegistry
from corsrelay.proxy.transforms import PathRelayTransform, QueryRelayTransform
from corsrelay.proxy.types import ProxyDescriptor, UpstreamApi

PATH_RELAY = "https://relay-worker.example.dev"
QUERY_RELAY = "https://allorigins.example.org/raw"

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> RelaySettings:
    """Test settings pointing at a fake upstream API."""
    return RelaySettings(
        api_base_url="https://api.example.com",
        site_origin="https://app.example.com",
        probe_timeout_seconds=1.0,
    )


@pytest.fixture
def upstream(settings: RelaySettings) -> UpstreamApi:
    return settings.upstream()


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def path_relay(upstream: UpstreamApi) -> ProxyDescriptor:
    return ProxyDescriptor(
        endpoint=PATH_RELAY,
        priority=1,
        transform=PathRelayTransform(upstream),
        requires_credentials=True,
    )


@pytest.fixture
def query_relay(upstream: UpstreamApi) -> ProxyDescriptor:
    return ProxyDescriptor(
        endpoint=QUERY_RELAY,
        priority=2,
        transform=QueryRelayTransform(upstream),
    )


@pytest.fixture
def registry(path_relay: ProxyDescriptor, query_relay: ProxyDescriptor) -> ProxyRegistry:
    return ProxyRegistry([query_relay, path_relay], clock=lambda: FIXED_NOW)


@pytest.fixture
def make_registry(upstream: UpstreamApi):
    """Factory for registries of path relays at ``https://relayN.example.net``."""

    def _make(priorities: list[int]) -> ProxyRegistry:
        return ProxyRegistry(
            ProxyDescriptor(
                endpoint=f"https://relay{i}.example.net",
                priority=priority,
                transform=PathRelayTransform(upstream),
            )
            for i, priority in enumerate(priorities)
        )

    return _make
