"""Relay selection: probe every relay, then pick the best live one.

``select_healthy_proxy`` pays probe latency for a fresh decision;
``get_default_or_named`` answers immediately from the current health flags.
Probes run concurrently and each writes only its own descriptor, so no
locking is needed; a selection made while probes are in flight may see a
partially refreshed view.
"""

from __future__ import annotations

import asyncio
import logging

from corsrelay.proxy.probe import HealthProbe
from corsrelay.proxy.registry import ProxyRegistry
from corsrelay.proxy.types import ProxyDescriptor, RequestOptions, TransformedRequest

logger = logging.getLogger(__name__)


class ProxySelector:
    """Chooses relays from a registry, refreshing health via a probe."""

    def __init__(
        self,
        registry: ProxyRegistry,
        probe: HealthProbe,
        health_check_interval_seconds: float = 60,
    ) -> None:
        self._registry = registry
        self._probe = probe
        self._health_check_interval_seconds = health_check_interval_seconds

    @property
    def registry(self) -> ProxyRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    async def _probe_and_record(self, descriptor: ProxyDescriptor) -> bool:
        healthy = await self._probe.check(descriptor)
        self._registry.mark_healthy(descriptor.endpoint, healthy)
        return healthy

    async def refresh_health(self) -> dict[str, bool]:
        """Probe all relays concurrently and record each result as it lands."""
        descriptors = list(self._registry)
        results = await asyncio.gather(*(self._probe_and_record(d) for d in descriptors))
        return {d.endpoint: healthy for d, healthy in zip(descriptors, results)}

    async def select_healthy_proxy(self) -> str | None:
        """Refresh health, then return the best healthy relay's endpoint or ``None``."""
        await self.refresh_health()
        descriptor = self._registry.first_healthy()
        logger.info(
            "Selected healthy relay: %s",
            descriptor.endpoint if descriptor else "none available",
        )
        return descriptor.endpoint if descriptor else None

    async def health_check_loop(self) -> None:
        """Re-probe every relay every ``health_check_interval_seconds``."""
        while True:
            await asyncio.sleep(self._health_check_interval_seconds)
            await self.refresh_health()

    # ------------------------------------------------------------------
    # Fast path
    # ------------------------------------------------------------------

    def get_default_or_named(self, endpoint: str | None = None) -> ProxyDescriptor | None:
        """Resolve *endpoint*, or the best currently-healthy relay when omitted.

        An unresolvable endpoint falls back to the default once, inside
        ``resolve_by_url``.
        """
        if not endpoint:
            return self._registry.first_healthy()

        descriptor = self._registry.resolve_by_url(endpoint)
        if descriptor is None:
            logger.warning("Could not resolve relay for %s", endpoint)
        return descriptor

    def transform_request(
        self,
        proxy_url: str | None,
        url: str,
        options: RequestOptions | None = None,
    ) -> TransformedRequest:
        """Rewrite a request for the relay behind *proxy_url*.

        The request passes through unchanged when no relay resolves.
        """
        options = options or RequestOptions()
        descriptor = self.get_default_or_named(proxy_url)
        if descriptor is None:
            return TransformedRequest(url=url, options=options)
        return descriptor.apply(url, options)

    def graphql_endpoint(self, proxy_url: str) -> str:
        """GraphQL URL to call through the relay behind *proxy_url*."""
        descriptor = self.get_default_or_named(proxy_url)
        if descriptor is None:
            return f"{proxy_url.rstrip('/')}/gql"
        return descriptor.graphql_endpoint()
