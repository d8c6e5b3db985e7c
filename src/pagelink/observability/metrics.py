"""Metrics hook protocol and no-op default implementation.

pagelink emits counters, timings, and gauges at key points (remote
requests, retries, links, freshness checks, applied syncs).  By default a
:class:`NoopMetricsHook` is used.  Callers can supply their own object
satisfying :class:`MetricsHook` to route metrics to any backend.

Emitted metric names are the module-level constants below.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

# Counters
REQUESTS_TOTAL = "pagelink.requests_total"
RETRIES_TOTAL = "pagelink.retries_total"
RATE_LIMITED_TOTAL = "pagelink.rate_limited_total"
LINKS_TOTAL = "pagelink.links_total"
NESTED_REJECTIONS_TOTAL = "pagelink.nested_rejections_total"
SYNC_CHECKS_TOTAL = "pagelink.sync_checks_total"
SYNC_APPLIED_TOTAL = "pagelink.sync_applied_total"

# Timings
REQUEST_DURATION_MS = "pagelink.request_duration_ms"
RATE_LIMIT_WAIT_MS = "pagelink.rate_limit_wait_ms"

# Gauges
CATALOG_PAGES = "pagelink.catalog_pages"


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
