"""pagelink.remote_api -- HTTP transport and endpoint wrappers.

This sub-package provides:

* :mod:`.rate_limit` -- Async token bucket rate limiter.
* :mod:`.retries` -- Retry decision logic and exponential backoff.
* :mod:`.transport` -- HTTP transport with retries and rate limiting.
* :mod:`.integrations` -- Backend credential endpoints.
* :mod:`.pages` -- Provider proxy page endpoints.
"""

from __future__ import annotations

from .integrations import AsyncIntegrationAPI
from .pages import AsyncPageSourceAPI, page_title
from .rate_limit import AsyncTokenBucket
from .retries import compute_backoff, should_retry
from .transport import AsyncRemoteTransport

__all__ = [
    "AsyncIntegrationAPI",
    "AsyncPageSourceAPI",
    "AsyncRemoteTransport",
    "AsyncTokenBucket",
    "compute_backoff",
    "page_title",
    "should_retry",
]
