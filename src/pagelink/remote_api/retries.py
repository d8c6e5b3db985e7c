"""Retry decision logic and exponential backoff computation.

Two pure functions used by the transport layer:

* :func:`should_retry` -- decide whether a failed request is retryable.
* :func:`compute_backoff` -- compute the delay before the next attempt.

Both remote ends share one policy.  The provider proxy answers ``429`` when
the provider throttles the integration and ``502``/``503``/``504`` when it
cannot reach the provider; the credential backend answers ``5xx`` while it
restarts.  Any other ``4xx`` (a revoked token, a missing page, a rejected
credential record) is final.

Retries only cover a single HTTP request.  The connection lifecycle and
the sync flows never retry on their own.
"""

from __future__ import annotations

import random

import httpx

# Throttling from the provider proxy, plus transient upstream failures.
_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# The server closing the connection mid-response counts as a network blip.
_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether a request should be retried.

    Parameters
    ----------
    status_code:
        HTTP status code from the response, or ``None`` if no response was
        received.
    exception:
        The exception raised, or ``None`` if a response was received.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Maximum total attempts allowed (including the initial request).
    """
    if attempt + 1 >= max_attempts:
        return False

    if exception is not None:
        return isinstance(exception, _RETRYABLE_EXCEPTIONS)

    if status_code is not None:
        return status_code in _RETRYABLE_STATUSES

    return False


def compute_backoff(
    attempt: int,
    base: float = 0.5,
    maximum: float = 10.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Compute the delay before the next retry attempt.

    A server-provided ``Retry-After`` value is used directly; otherwise the
    delay is ``base * 2^attempt`` capped at *maximum*.  With *jitter* the
    delay is scaled to between 50 % and 100 % of its value.
    """
    if retry_after is not None:
        delay = retry_after
    else:
        delay = min(base * (2 ** attempt), maximum)

    if jitter:
        delay *= 0.5 + random.random() * 0.5

    return delay
