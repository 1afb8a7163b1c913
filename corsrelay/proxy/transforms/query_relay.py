"""Transform for relays that take the full upstream URL as a ``url`` query parameter.

The relay does not forward custom headers, so a GraphQL credential is moved
into the JSON body as ``authorization`` (without its bearer prefix). Cookies
are never forwarded.
"""

from __future__ import annotations

import json
from urllib.parse import quote

from corsrelay.proxy.transforms.base import JSON_HEADERS, BaseTransform
from corsrelay.proxy.types import RelayKind, RequestOptions, TransformedRequest

_XHR_HEADERS = {**JSON_HEADERS, "X-Requested-With": "XMLHttpRequest"}
_BEARER_PREFIX = "bearer "


def encode_uri_component(value: str) -> str:
    """Percent-encode *value* the way ``encodeURIComponent`` does."""
    return quote(value, safe="!'()*")


def strip_bearer(credential: str) -> str:
    if credential[: len(_BEARER_PREFIX)].lower() == _BEARER_PREFIX:
        return credential[len(_BEARER_PREFIX):]
    return credential


class QueryRelayTransform(BaseTransform):
    kind = RelayKind.QUERY
    accepts_any_probe_body = True

    def _url(self, endpoint: str, target_url: str) -> str:
        return f"{endpoint}?url={encode_uri_component(target_url)}"

    def graphql(
        self, endpoint: str, target_url: str, options: RequestOptions
    ) -> TransformedRequest:
        body = self.parse_graphql_body(options.body)
        authorization = options.header("Authorization")
        if authorization:
            body["authorization"] = strip_bearer(authorization)

        return TransformedRequest(
            url=self._url(endpoint, self.upstream.absolute_url(target_url)),
            options=RequestOptions(
                method="POST",
                headers=dict(JSON_HEADERS),
                body=json.dumps(body),
                mode="cors",
            ),
        )

    def rest(
        self, endpoint: str, target_url: str, options: RequestOptions
    ) -> TransformedRequest:
        return TransformedRequest(
            url=self._url(endpoint, self.upstream.absolute_url(target_url)),
            options=RequestOptions(
                method=options.method or "GET",
                headers=dict(_XHR_HEADERS),
                body=options.body,
                mode="cors",
            ),
        )

    def probe_request(self, endpoint: str) -> TransformedRequest:
        status_url = f"{self.upstream.base_url.rstrip('/')}{self.upstream.status_path}"
        return TransformedRequest(
            url=self._url(endpoint, status_url),
            options=RequestOptions(method="GET", headers=dict(_XHR_HEADERS), mode="cors"),
        )

    def graphql_endpoint(self, endpoint: str) -> str:
        return endpoint
