"""Relay definitions and YAML loader.

Provides typed Pydantic models for relay entries and builds the
ProxyRegistry from them. A missing or unreadable file falls back to the
built-in relays.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from corsrelay.proxy.registry import ProxyRegistry
from corsrelay.proxy.transforms import build_transform
from corsrelay.proxy.types import ProxyDescriptor, RelayKind, UpstreamApi

logger = logging.getLogger(__name__)


class RelayConfig(BaseModel):
    """Static configuration of one relay."""

    endpoint: str = Field(min_length=1)
    priority: int
    kind: RelayKind
    requires_credentials: bool = False


DEFAULT_RELAYS: list[RelayConfig] = [
    RelayConfig(
        endpoint="https://meetup-proxy.oneyashraj.workers.dev",
        priority=1,
        kind=RelayKind.PATH,
        requires_credentials=True,
    ),
    RelayConfig(
        endpoint="https://api.allorigins.win/raw",
        priority=2,
        kind=RelayKind.QUERY,
    ),
]


def load_relays(yaml_path: str) -> list[RelayConfig]:
    """Parse a relays YAML file into RelayConfig entries.

    Invalid entries are skipped. Falls back to ``DEFAULT_RELAYS`` when the
    file is missing, unparsable, or yields no valid entry.
    """
    path = Path(yaml_path)

    if not path.exists():
        logger.warning("Relays file not found at %s; using built-in relays", yaml_path)
        return list(DEFAULT_RELAYS)

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Failed to parse relays YAML at %s: %s", yaml_path, exc)
        return list(DEFAULT_RELAYS)

    if not isinstance(raw, dict) or not isinstance(raw.get("relays"), list):
        logger.warning("Relays YAML missing 'relays' list; using built-in relays")
        return list(DEFAULT_RELAYS)

    relays: list[RelayConfig] = []
    for index, entry in enumerate(raw["relays"]):
        try:
            relays.append(RelayConfig.model_validate(entry))
        except Exception as exc:
            logger.error("Invalid relay entry #%d: %s; skipping", index, exc)

    if not relays:
        logger.warning("No valid relays in %s; using built-in relays", yaml_path)
        return list(DEFAULT_RELAYS)

    return relays


def build_registry(relays: list[RelayConfig], upstream: UpstreamApi) -> ProxyRegistry:
    """Construct descriptors (with their transforms) and wrap them in a registry."""
    return ProxyRegistry(
        ProxyDescriptor(
            endpoint=relay.endpoint,
            priority=relay.priority,
            transform=build_transform(relay.kind, upstream),
            requires_credentials=relay.requires_credentials,
        )
        for relay in relays
    )
