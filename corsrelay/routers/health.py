"""Health and readiness endpoints.

These endpoints do NOT require X-Service-Key authentication.
- GET /health: service status + relay stats
- GET /readiness: 200 only when at least one relay is healthy
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from corsrelay.models.responses import ApiResponse


def create_health_router(*, registry: Any = None) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health() -> dict:
        relay_stats = registry.get_stats() if registry else {}
        return ApiResponse(
            success=True,
            data={"status": "healthy", "relays": relay_stats},
        ).model_dump()

    @health_router.get("/readiness")
    async def readiness(response: Response) -> dict:
        """Readiness probe: 200 iff at least one relay is flagged healthy."""
        relay_stats = registry.get_stats() if registry else {"healthy": 0}
        relays_healthy = relay_stats.get("healthy", 0)
        is_ready = relays_healthy > 0

        if not is_ready:
            response.status_code = 503

        return ApiResponse(
            success=is_ready,
            data={"ready": is_ready, "relays_healthy": relays_healthy},
            error=None if is_ready else "Service not ready",
        ).model_dump()

    return health_router
