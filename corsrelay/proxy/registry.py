"""Ordered set of relay descriptors and their mutable health state.

Descriptors are fixed at construction; only health fields and counters
change afterwards. Lookups match a descriptor whose ``endpoint`` is a prefix
of the candidate URL, so fully-qualified proxied URLs resolve to the relay
that serves them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime, timezone

from corsrelay.proxy.types import ProxyDescriptor

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProxyRegistry:
    """Owns the relay descriptors for the lifetime of the process.

    Parameters
    ----------
    descriptors:
        Relays to manage. Priorities are assumed unique.
    clock:
        Wall-clock source used for ``last_checked_at``.
    """

    def __init__(
        self,
        descriptors: Iterable[ProxyDescriptor] = (),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._descriptors: list[ProxyDescriptor] = list(descriptors)
        self._clock = clock
        logger.info("Proxy registry initialized with %d relays", len(self._descriptors))

    def __iter__(self) -> Iterator[ProxyDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def ordered_by_priority(self) -> list[ProxyDescriptor]:
        """Descriptors sorted ascending by priority (stable)."""
        return sorted(self._descriptors, key=lambda d: d.priority)

    def find(self, candidate_url: str) -> ProxyDescriptor | None:
        """Return the descriptor whose endpoint prefixes *candidate_url*, if any.

        The longest matching endpoint wins so overlapping endpoints still
        resolve to a single relay.
        """
        matches = [d for d in self._descriptors if candidate_url.startswith(d.endpoint)]
        if not matches:
            return None
        return max(matches, key=lambda d: len(d.endpoint))

    def first_healthy(self) -> ProxyDescriptor | None:
        """Highest-priority descriptor currently flagged healthy."""
        for descriptor in self.ordered_by_priority():
            if descriptor.healthy:
                return descriptor
        return None

    def resolve_by_url(self, candidate_url: str) -> ProxyDescriptor | None:
        """Resolve *candidate_url* to a descriptor, falling back to the default.

        Returns ``None`` only when nothing matches and no relay is healthy.
        """
        descriptor = self.find(candidate_url)
        if descriptor is not None:
            return descriptor
        logger.warning("No relay matches %s; falling back to default", candidate_url)
        return self.first_healthy()

    # ------------------------------------------------------------------
    # Health tracking
    # ------------------------------------------------------------------

    def mark_healthy(self, endpoint: str, healthy: bool) -> None:
        """Set the health flag for the relay serving *endpoint*; no-op when unknown."""
        descriptor = self.find(endpoint)
        if descriptor is None:
            return
        descriptor.healthy = healthy
        descriptor.last_checked_at = self._clock()
        logger.debug(
            "Updated relay health: %s healthy=%s",
            descriptor.endpoint,
            healthy,
            extra={"relay_endpoint": descriptor.endpoint},
        )

    def mark_unhealthy(self, endpoint: str) -> None:
        self.mark_healthy(endpoint, False)

    def mark_all_healthy(self) -> None:
        """Reset every relay to healthy, e.g. after a burst of false negatives."""
        now = self._clock()
        for descriptor in self._descriptors:
            descriptor.healthy = True
            descriptor.last_checked_at = now
        logger.info("Reset health for all %d relays", len(self._descriptors))

    def record_success(self, endpoint: str) -> None:
        descriptor = self.find(endpoint)
        if descriptor is not None:
            descriptor.success_count += 1

    def record_failure(self, endpoint: str) -> None:
        """Count a failed dispatch and mark the relay unhealthy."""
        descriptor = self.find(endpoint)
        if descriptor is None:
            return
        descriptor.failure_count += 1
        self.mark_healthy(descriptor.endpoint, False)
        logger.warning(
            "Relay marked unhealthy: %s (failures: %d)",
            descriptor.endpoint,
            descriptor.failure_count,
            extra={"relay_endpoint": descriptor.endpoint},
        )

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Return relay statistics for the health endpoints."""
        ordered = self.ordered_by_priority()
        healthy = sum(1 for d in ordered if d.healthy)
        return {
            "total": len(ordered),
            "healthy": healthy,
            "unhealthy": len(ordered) - healthy,
            "relays": [
                {
                    "endpoint": d.endpoint,
                    "priority": d.priority,
                    "kind": d.kind.value,
                    "requires_credentials": d.requires_credentials,
                    "is_healthy": d.healthy,
                    "last_checked_at": d.last_checked_at.isoformat() if d.last_checked_at else None,
                    "success_count": d.success_count,
                    "failure_count": d.failure_count,
                }
                for d in ordered
            ],
        }
