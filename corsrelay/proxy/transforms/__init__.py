"""Relay transform variants, one per RelayKind."""

from __future__ import annotations

from corsrelay.proxy.transforms.base import BaseTransform
from corsrelay.proxy.transforms.path_relay import PathRelayTransform
from corsrelay.proxy.transforms.query_relay import QueryRelayTransform
from corsrelay.proxy.types import (
    ProxyDescriptor,
    RelayKind,
    RequestOptions,
    TransformedRequest,
    UpstreamApi,
)

_TRANSFORMS: dict[RelayKind, type[BaseTransform]] = {
    RelayKind.PATH: PathRelayTransform,
    RelayKind.QUERY: QueryRelayTransform,
}


def build_transform(kind: RelayKind, upstream: UpstreamApi) -> BaseTransform:
    """Instantiate the transform registered for *kind*."""
    try:
        transform_cls = _TRANSFORMS[RelayKind(kind)]
    except (KeyError, ValueError):
        raise KeyError(f"No transform registered for relay kind '{kind}'") from None
    return transform_cls(upstream)


def apply_transform(
    descriptor: ProxyDescriptor,
    target_url: str,
    options: RequestOptions | None = None,
) -> TransformedRequest:
    """Rewrite a request for *descriptor*'s relay."""
    return descriptor.apply(target_url, options)


__all__ = [
    "BaseTransform",
    "PathRelayTransform",
    "QueryRelayTransform",
    "apply_transform",
    "build_transform",
]
