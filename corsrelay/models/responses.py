"""Response models for the relay service.

Every route wraps its payload in ``ApiResponse``:
{ success: bool, data: T | None, error: str | None, meta: dict | None }
Relay listings use ``RelayStats`` so the registry snapshot has a fixed shape.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope for all API responses."""

    success: bool
    data: T | None = None
    error: str | None = None
    meta: dict | None = None


class RelayStatus(BaseModel):
    """One relay as reported by ``ProxyRegistry.get_stats``."""

    endpoint: str
    priority: int
    kind: str
    requires_credentials: bool
    is_healthy: bool
    last_checked_at: str | None = None
    success_count: int = 0
    failure_count: int = 0


class RelayStats(BaseModel):
    total: int
    healthy: int
    unhealthy: int
    relays: list[RelayStatus]


def relay_stats_response(stats: dict) -> dict:
    """Validate a registry snapshot and wrap it in the envelope."""
    return ApiResponse[RelayStats](success=True, data=RelayStats(**stats)).model_dump()
