"""Configuration module: settings and relay definitions."""

from corsrelay.config.relays import DEFAULT_RELAYS, RelayConfig, build_registry, load_relays
from corsrelay.config.settings import RelaySettings

__all__ = [
    "DEFAULT_RELAYS",
    "RelayConfig",
    "RelaySettings",
    "build_registry",
    "load_relays",
]
