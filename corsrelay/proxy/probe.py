"""Liveness probe for a single relay.

Each relay's transform supplies the synthetic status request (method,
headers, credentials). A probe always resolves to a boolean: network errors,
timeouts, bad statuses, and unexpected content types all mean "unhealthy".
The probe never writes to the registry.
"""

from __future__ import annotations

import asyncio
import json
import logging

import httpx

from corsrelay.proxy.types import ProxyDescriptor

logger = logging.getLogger(__name__)

_ACCEPTED_CONTENT_TYPES = ("application/json", "text/plain", "text/html")
_STATUS_MARKERS = ("status", "ok")


class HealthProbe:
    """Sends one status request through a relay and judges the response.

    Parameters
    ----------
    timeout_seconds:
        Upper bound on a single probe, covering connect and body read.
    transport:
        Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def check(self, descriptor: ProxyDescriptor) -> bool:
        try:
            return await asyncio.wait_for(
                self._check(descriptor), timeout=self._timeout_seconds
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Health check error for relay %s: %r",
                descriptor.endpoint,
                exc,
                extra={"relay_endpoint": descriptor.endpoint, "error_reason": repr(exc)},
            )
            return False

    async def _check(self, descriptor: ProxyDescriptor) -> bool:
        probe = descriptor.transform.probe_request(descriptor.endpoint)
        method = probe.options.method or "GET"

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=httpx.Timeout(self._timeout_seconds),
            follow_redirects=True,
        ) as client:
            response = await client.request(method, probe.url, headers=probe.options.headers)
            body = await response.aread()

        if method == "OPTIONS" and response.is_success:
            logger.debug("Preflight accepted by relay %s", descriptor.endpoint)
            return True

        if not response.is_success:
            logger.warning(
                "Health check failed for relay %s: HTTP %d",
                descriptor.endpoint,
                response.status_code,
                extra={"relay_endpoint": descriptor.endpoint, "status_code": response.status_code},
            )
            return False

        content_type = response.headers.get("content-type", "")
        if not any(accepted in content_type for accepted in _ACCEPTED_CONTENT_TYPES):
            logger.warning(
                "Invalid content type from relay %s: %r",
                descriptor.endpoint,
                content_type,
                extra={"relay_endpoint": descriptor.endpoint},
            )
            return False

        text = body.decode(response.encoding or "utf-8")
        if descriptor.transform.accepts_any_probe_body:
            return True

        try:
            json.loads(text)
            return True
        except ValueError:
            return any(marker in text for marker in _STATUS_MARKERS)
