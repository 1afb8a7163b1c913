"""Abstract base class for relay-specific request transforms.

Each transform handles a single RelayKind and knows how to rewrite an
application request into the URL/headers/body that relay expects, plus how
to build the synthetic status request used to probe it.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from corsrelay.middleware.error_handler import InvalidRequestBodyError
from corsrelay.proxy.types import RelayKind, RequestOptions, TransformedRequest, UpstreamApi

logger = logging.getLogger(__name__)

JSON_HEADERS: dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def override_headers(headers: dict[str, str], overrides: dict[str, str]) -> dict[str, str]:
    """Layer *overrides* on *headers*, dropping caller keys that differ only in case."""
    replaced = {name.lower() for name in overrides}
    merged = {name: value for name, value in headers.items() if name.lower() not in replaced}
    merged.update(overrides)
    return merged


class BaseTransform(ABC):
    """Strategy that rewrites requests for one relay kind.

    Subclasses MUST set ``kind`` and implement the GraphQL and REST rewrites
    and the probe request. ``apply`` never performs I/O.
    """

    kind: RelayKind

    # When True, any readable body from the probe proves the upstream is reachable.
    accepts_any_probe_body: bool = False

    def __init__(self, upstream: UpstreamApi) -> None:
        self.upstream = upstream

    def apply(
        self, endpoint: str, target_url: str, options: RequestOptions
    ) -> TransformedRequest:
        """Classify *target_url* and rewrite it for the relay at *endpoint*.

        Raises
        ------
        InvalidRequestBodyError
            If a GraphQL body is not JSON or has no ``query``.
        """
        if self.upstream.is_graphql(target_url):
            return self.graphql(endpoint, target_url, options)
        return self.rest(endpoint, target_url, options)

    @abstractmethod
    def graphql(
        self, endpoint: str, target_url: str, options: RequestOptions
    ) -> TransformedRequest: ...

    @abstractmethod
    def rest(
        self, endpoint: str, target_url: str, options: RequestOptions
    ) -> TransformedRequest: ...

    @abstractmethod
    def probe_request(self, endpoint: str) -> TransformedRequest:
        """Build the status-check request sent through this relay."""

    @abstractmethod
    def graphql_endpoint(self, endpoint: str) -> str: ...

    @staticmethod
    def parse_graphql_body(body: str | dict[str, Any] | None) -> dict[str, Any]:
        """Decode a GraphQL body and check it carries a query.

        Returns a new dict; the caller's mapping is never mutated.
        """
        if body is None:
            raise InvalidRequestBodyError(reason="missing body")

        if isinstance(body, dict):
            parsed: Any = dict(body)
        else:
            try:
                parsed = json.loads(body)
            except ValueError as exc:
                logger.warning("GraphQL body is not valid JSON: %s", exc)
                raise InvalidRequestBodyError(reason="malformed JSON") from exc

        if not isinstance(parsed, dict) or not parsed.get("query"):
            raise InvalidRequestBodyError(reason="missing GraphQL query")
        return parsed
