"""Transform for relays that take the upstream path as a literal path segment.

``https://api.meetup.com/events`` becomes ``{endpoint}/proxy/events``. The
relay forwards custom headers, so Authorization travels as a header. REST
calls spoof the site origin and forward cookies.
"""

from __future__ import annotations

import json

from corsrelay.proxy.transforms.base import JSON_HEADERS, BaseTransform, override_headers
from corsrelay.proxy.types import RelayKind, RequestOptions, TransformedRequest

_PREFLIGHT_HEADERS = "authorization,content-type,origin,referer"


class PathRelayTransform(BaseTransform):
    kind = RelayKind.PATH

    def _url(self, endpoint: str, path: str) -> str:
        return f"{endpoint.rstrip('/')}/proxy{path}"

    def _origin_headers(self) -> dict[str, str]:
        origin = self.upstream.site_origin.rstrip("/")
        return {"Origin": origin, "Referer": f"{origin}/"}

    def graphql(
        self, endpoint: str, target_url: str, options: RequestOptions
    ) -> TransformedRequest:
        headers = dict(JSON_HEADERS)
        authorization = options.header("Authorization")
        if authorization:
            headers["Authorization"] = authorization

        body = self.parse_graphql_body(options.body)
        return TransformedRequest(
            url=self._url(endpoint, self.upstream.graphql_path),
            options=RequestOptions(
                method="POST",
                headers=headers,
                body=json.dumps(body),
                mode="cors",
            ),
        )

    def rest(
        self, endpoint: str, target_url: str, options: RequestOptions
    ) -> TransformedRequest:
        headers = override_headers(options.headers, {**JSON_HEADERS, **self._origin_headers()})
        return TransformedRequest(
            url=self._url(endpoint, self.upstream.relative_path(target_url)),
            options=RequestOptions(
                method=options.method or "GET",
                headers=headers,
                body=options.body,
                credentials="include",
                mode="cors",
            ),
        )

    def probe_request(self, endpoint: str) -> TransformedRequest:
        headers = {
            **JSON_HEADERS,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": _PREFLIGHT_HEADERS,
            **self._origin_headers(),
        }
        return TransformedRequest(
            url=self._url(endpoint, self.upstream.status_path),
            options=RequestOptions(
                method="OPTIONS",
                headers=headers,
                credentials="include",
                mode="cors",
            ),
        )

    def graphql_endpoint(self, endpoint: str) -> str:
        return self._url(endpoint, self.upstream.graphql_path)
