"""Pydantic models for the relay HTTP surface."""

from corsrelay.models.requests import MarkUnhealthyRequest, TransformRequest
from corsrelay.models.responses import ApiResponse, RelayStats, RelayStatus, relay_stats_response

__all__ = [
    "ApiResponse",
    "MarkUnhealthyRequest",
    "RelayStats",
    "RelayStatus",
    "TransformRequest",
    "relay_stats_response",
]
