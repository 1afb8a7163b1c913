"""Relay pool package: registry, health probes, selection, and request transforms."""

from corsrelay.proxy.client import RelayClient
from corsrelay.proxy.probe import HealthProbe
from corsrelay.proxy.registry import ProxyRegistry
from corsrelay.proxy.selector import ProxySelector
from corsrelay.proxy.types import (
    ProxyDescriptor,
    RelayKind,
    RequestOptions,
    TransformedRequest,
    UpstreamApi,
)

__all__ = [
    "HealthProbe",
    "ProxyDescriptor",
    "ProxyRegistry",
    "ProxySelector",
    "RelayClient",
    "RelayKind",
    "RequestOptions",
    "TransformedRequest",
    "UpstreamApi",
]
