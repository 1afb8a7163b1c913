"""Pydantic request models for the relay endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from corsrelay.proxy.types import RequestOptions


class TransformRequest(BaseModel):
    """An application request to rewrite for a relay."""

    target_url: str = Field(..., min_length=1)
    method: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | dict[str, Any] | None = None
    proxy_url: str | None = None

    def to_options(self) -> RequestOptions:
        return RequestOptions(method=self.method, headers=dict(self.headers), body=self.body)


class MarkUnhealthyRequest(BaseModel):
    endpoint: str = Field(..., min_length=1)
