"""Dispatch requests through relays with failover.

The client resolves a relay, rewrites the request for it, and sends it with
httpx. A transport error or a 5xx from the relay records a failure (marking
the relay unhealthy) and the next healthy relay is tried; each relay is
tried at most once per call.
"""

from __future__ import annotations

import logging
import time

import httpx

from corsrelay.middleware.error_handler import NoHealthyProxyError
from corsrelay.proxy.selector import ProxySelector
from corsrelay.proxy.types import ProxyDescriptor, RequestOptions, TransformedRequest

logger = logging.getLogger(__name__)


class RelayClient:
    """Sends application requests through the relay pool.

    Parameters
    ----------
    selector:
        Selector whose registry holds the relays.
    client:
        Shared ``httpx.AsyncClient``; its cookie jar is forwarded only for
        requests whose transformed options say ``credentials="include"``.
    """

    def __init__(self, selector: ProxySelector, client: httpx.AsyncClient) -> None:
        self._selector = selector
        self._client = client

    async def _initial_descriptor(self, proxy_url: str | None) -> ProxyDescriptor | None:
        descriptor = self._selector.get_default_or_named(proxy_url)
        if descriptor is not None:
            return descriptor
        endpoint = await self._selector.select_healthy_proxy()
        return self._selector.registry.find(endpoint) if endpoint else None

    def _next_descriptor(self, tried: set[str]) -> ProxyDescriptor | None:
        for descriptor in self._selector.registry.ordered_by_priority():
            if descriptor.healthy and descriptor.endpoint not in tried:
                return descriptor
        return None

    def _build(self, transformed: TransformedRequest) -> httpx.Request:
        options = transformed.options
        body = options.body
        request = self._client.build_request(
            options.method or "GET",
            transformed.url,
            headers=options.headers,
            json=body if isinstance(body, dict) else None,
            content=body if isinstance(body, str) else None,
        )
        if options.credentials != "include":
            request.headers.pop("cookie", None)
        return request

    async def request(
        self,
        target_url: str,
        options: RequestOptions | None = None,
        proxy_url: str | None = None,
    ) -> httpx.Response:
        """Send *target_url*/*options* through the best available relay.

        Raises
        ------
        InvalidRequestBodyError
            If the body cannot be rewritten for the relay; nothing is sent.
        NoHealthyProxyError
            If no relay is healthy or every relay failed.
        """
        options = options or RequestOptions()
        tried: set[str] = set()
        descriptor = await self._initial_descriptor(proxy_url)

        while descriptor is not None:
            tried.add(descriptor.endpoint)
            transformed = descriptor.apply(target_url, options)
            started = time.monotonic()
            try:
                response = await self._client.send(
                    self._build(transformed), follow_redirects=True
                )
            except httpx.TransportError as exc:
                logger.warning(
                    "Relay %s failed: %r",
                    descriptor.endpoint,
                    exc,
                    extra={
                        "relay_endpoint": descriptor.endpoint,
                        "target_url": target_url,
                        "error_reason": repr(exc),
                    },
                )
                self._selector.registry.record_failure(descriptor.endpoint)
            else:
                duration_ms = round((time.monotonic() - started) * 1000, 1)
                if response.status_code < 500:
                    self._selector.registry.record_success(descriptor.endpoint)
                    logger.info(
                        "Relayed %s via %s",
                        target_url,
                        descriptor.endpoint,
                        extra={
                            "relay_endpoint": descriptor.endpoint,
                            "target_url": target_url,
                            "status_code": response.status_code,
                            "duration_ms": duration_ms,
                        },
                    )
                    return response
                await response.aclose()
                logger.warning(
                    "Relay %s returned HTTP %d",
                    descriptor.endpoint,
                    response.status_code,
                    extra={
                        "relay_endpoint": descriptor.endpoint,
                        "target_url": target_url,
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                    },
                )
                self._selector.registry.record_failure(descriptor.endpoint)

            descriptor = self._next_descriptor(tried)

        raise NoHealthyProxyError(target_url=target_url, tried=sorted(tried))
