"""Relay management endpoints.

- GET /relays: relay stats in priority order
- POST /relays/select: probe all relays and return the best healthy one
- POST /relays/reset: mark every relay healthy
- POST /relays/mark-unhealthy: flag one relay unhealthy
- POST /relays/transform: rewrite a request for a relay without sending it
- GET /relays/graphql-endpoint: GraphQL URL for a relay
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from corsrelay.middleware.error_handler import NoHealthyProxyError
from corsrelay.models.requests import MarkUnhealthyRequest, TransformRequest
from corsrelay.models.responses import ApiResponse, relay_stats_response

if TYPE_CHECKING:
    from corsrelay.proxy.selector import ProxySelector


def create_relays_router(*, selector: "ProxySelector") -> APIRouter:
    """Factory that creates the relays router bound to *selector*."""

    relays_router = APIRouter(prefix="/relays", tags=["relays"])
    registry = selector.registry

    @relays_router.get("")
    async def list_relays() -> dict:
        return relay_stats_response(registry.get_stats())

    @relays_router.post("/select")
    async def select() -> dict:
        endpoint = await selector.select_healthy_proxy()
        if endpoint is None:
            raise NoHealthyProxyError()
        return ApiResponse(success=True, data={"endpoint": endpoint}).model_dump()

    @relays_router.post("/reset")
    async def reset() -> dict:
        registry.mark_all_healthy()
        return relay_stats_response(registry.get_stats())

    @relays_router.post("/mark-unhealthy")
    async def mark_unhealthy(payload: MarkUnhealthyRequest) -> dict:
        registry.mark_unhealthy(payload.endpoint)
        return relay_stats_response(registry.get_stats())

    @relays_router.post("/transform")
    async def transform(payload: TransformRequest) -> dict:
        """Rewrite a request for the named (or default) relay.

        Responds 422 for an invalid GraphQL body and 503 when no relay is
        available.
        """
        descriptor = selector.get_default_or_named(payload.proxy_url)
        if descriptor is None:
            raise NoHealthyProxyError()
        transformed = descriptor.apply(payload.target_url, payload.to_options())
        return ApiResponse(
            success=True,
            data={
                "relay": descriptor.endpoint,
                "url": transformed.url,
                "options": transformed.options.to_dict(),
            },
        ).model_dump()

    @relays_router.get("/graphql-endpoint")
    async def graphql_endpoint(proxy_url: str) -> dict:
        return ApiResponse(
            success=True,
            data={"url": selector.graphql_endpoint(proxy_url)},
        ).model_dump()

    return relays_router
