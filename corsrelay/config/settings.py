"""Pydantic Settings for the relay service.

All environment variables use the RELAY_ prefix.
Example: RELAY_PORT=8002, RELAY_PROBE_TIMEOUT_SECONDS=5
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from corsrelay.proxy.types import UpstreamApi

_BUNDLED_RELAYS = str(Path(__file__).with_name("relays.yaml"))


class RelaySettings(BaseSettings):
    """Relay service configuration validated from environment variables."""

    # Service
    port: int = 8002
    log_level: str = "INFO"
    service_key: str | None = None  # X-Service-Key; auth disabled when unset

    # Upstream API
    api_base_url: str = "https://api.meetup.com"
    graphql_path: str = "/gql"
    status_path: str = "/status"
    site_origin: str = "https://yashrajnayak.github.io"

    # Relays
    relays_path: str = _BUNDLED_RELAYS
    probe_timeout_seconds: float = Field(default=10.0, gt=0)
    health_check_interval_seconds: int = Field(default=60, ge=1)

    model_config = {"env_prefix": "RELAY_"}

    def upstream(self) -> UpstreamApi:
        return UpstreamApi(
            base_url=self.api_base_url,
            graphql_path=self.graphql_path,
            status_path=self.status_path,
            site_origin=self.site_origin,
        )
