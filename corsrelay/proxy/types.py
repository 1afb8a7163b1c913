"""Relay data models: descriptors, request options, and the upstream API shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from corsrelay.proxy.transforms.base import BaseTransform


class RelayKind(str, Enum):
    """Wire contract of a relay service."""

    PATH = "path"  # target embedded as a path segment: {endpoint}/proxy/...
    QUERY = "query"  # target embedded as a query parameter: {endpoint}?url=...


@dataclass
class RequestOptions:
    """Application-level request options, shaped after the fetch() init dict.

    ``body`` is either a JSON string or an already-decoded mapping.
    ``credentials`` is ``"include"`` when cookies must be forwarded.
    """

    method: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: str | dict[str, Any] | None = None
    credentials: str | None = None
    mode: str | None = None

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "headers": dict(self.headers),
            "body": self.body,
            "credentials": self.credentials,
            "mode": self.mode,
        }


@dataclass(frozen=True)
class TransformedRequest:
    """The concrete request to dispatch to a relay."""

    url: str
    options: RequestOptions


@dataclass(frozen=True)
class UpstreamApi:
    """The wrapped third-party API: its base URL and well-known paths."""

    base_url: str = "https://api.meetup.com"
    graphql_path: str = "/gql"
    status_path: str = "/status"
    site_origin: str = "https://yashrajnayak.github.io"

    def is_graphql(self, url: str) -> bool:
        """True when *url* targets the GraphQL endpoint."""
        path = urlsplit(url).path.rstrip("/")
        return path.endswith(self.graphql_path.rstrip("/"))

    def relative_path(self, url: str) -> str:
        """Path (plus query) of *url* relative to the API base.

        GraphQL calls always collapse to ``graphql_path``. URLs outside the
        API base keep their own path and query.
        """
        if self.is_graphql(url):
            return self.graphql_path
        base = self.base_url.rstrip("/")
        if url.startswith(base):
            return url[len(base):]
        parts = urlsplit(url)
        return f"{parts.path}?{parts.query}" if parts.query else parts.path

    def absolute_url(self, url: str) -> str:
        return f"{self.base_url.rstrip('/')}{self.relative_path(url)}"


@dataclass
class ProxyDescriptor:
    """One relay service with its priority, health, and transform strategy.

    Only ``healthy``, ``last_checked_at`` and the counters change after
    construction.
    """

    endpoint: str
    priority: int
    transform: BaseTransform
    requires_credentials: bool = False
    healthy: bool = True
    last_checked_at: datetime | None = None
    success_count: int = 0
    failure_count: int = 0

    @property
    def kind(self) -> RelayKind:
        return self.transform.kind

    def apply(self, target_url: str, options: RequestOptions | None = None) -> TransformedRequest:
        """Rewrite *target_url*/*options* into this relay's request shape."""
        return self.transform.apply(self.endpoint, target_url, options or RequestOptions())

    def graphql_endpoint(self) -> str:
        return self.transform.graphql_endpoint(self.endpoint)
