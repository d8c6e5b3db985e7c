"""Async HTTP transport for the backend and provider-proxy endpoints.

Each request goes through the same lifecycle:

1. Acquire a token-bucket slot (wait if needed).
2. Send the HTTP request.
3. On ``2xx`` -- return the parsed JSON body (``None`` for empty bodies).
4. On ``429`` -- honour ``Retry-After``, sleep, and retry.
5. On ``5xx`` / network error -- exponential backoff and retry.
6. On non-retryable ``4xx`` -- raise the matching typed error immediately.
7. On max attempts exceeded -- raise :class:`PageLinkRetryExhaustedError`.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from typing import Any

import httpx

from pagelink.config import PageLinkConfig
from pagelink.errors import (
    PageLinkAuthError,
    PageLinkNetworkError,
    PageLinkNotFoundError,
    PageLinkPermissionError,
    PageLinkRetryExhaustedError,
    PageLinkValidationError,
)
from pagelink.observability import NoopMetricsHook, get_logger
from pagelink.observability.metrics import (
    RATE_LIMIT_WAIT_MS,
    RATE_LIMITED_TOTAL,
    REQUEST_DURATION_MS,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
)
from pagelink.utils.redact import redact

from .rate_limit import AsyncTokenBucket
from .retries import _RETRYABLE_STATUSES, compute_backoff, should_retry

log = get_logger("pagelink.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    """Return ``(message, body)`` for an error response.

    The backend reports errors as ``{"detail": ...}``, the provider proxy as
    ``{"error": ...}``; anything else falls back to the raw text.
    """
    try:
        body = response.json()
    except ValueError:
        body = {}
    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            if body.get(key):
                return str(body[key]), body
    return response.text[:500], body


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the typed error for a non-retryable ``4xx`` response."""
    status = response.status_code
    message, body = _error_message(response)

    if status == 401:
        raise PageLinkAuthError(
            message=f"Authentication failed on {method} {path}: {message}",
            context={"status_code": status},
        )
    if status == 403:
        raise PageLinkPermissionError(
            message=f"Permission denied on {method} {path}: {message}",
            context={"status_code": status, "operation": f"{method} {path}"},
        )
    if status == 404:
        raise PageLinkNotFoundError(
            message=f"Resource not found on {method} {path}: {message}",
            context={"status_code": status, "path": path},
        )
    raise PageLinkValidationError(
        message=f"Client error {status} on {method} {path}: {message}",
        context={"status_code": status, "body": body},
    )


def _parse_json_body(response: httpx.Response, method: str, path: str) -> Any:
    """Decode a ``2xx`` body; a non-JSON body (a proxy error page) is an error."""
    try:
        return response.json()
    except ValueError as exc:
        raise PageLinkValidationError(
            message=f"Non-JSON response body on {method} {path}",
            context={"status_code": response.status_code, "body": response.text[:500]},
            cause=exc,
        ) from exc


def _dump_payload(
    method: str,
    url: str,
    payload: Any,
    response_status: int | None,
    response_body: Any,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    dump: dict[str, Any] = {"method": method, "url": url}
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(_json.dumps(redact(dump), indent=2, default=str), file=sys.stderr)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class AsyncRemoteTransport:
    """Asynchronous HTTP transport with retry and rate limiting.

    Parameters
    ----------
    config:
        A :class:`PageLinkConfig` controlling retries, pacing and timeouts.
    base_url:
        Root URL every request path is resolved against.
    """

    def __init__(self, config: PageLinkConfig, base_url: str) -> None:
        self._config = config
        self._bucket = AsyncTokenBucket(rate_rps=config.rate_limit_rps, burst=10)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Execute an HTTP request and return the parsed JSON body.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST``, ``DELETE``...).
        path:
            Path relative to the transport's base URL.
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request` (``json=``,
            ``params=``...).

        Raises
        ------
        PageLinkAuthError
            On 401 responses.
        PageLinkPermissionError
            On 403 responses.
        PageLinkNotFoundError
            On 404 responses.
        PageLinkValidationError
            On 400 and other non-retryable 4xx responses, or a 2xx response
            whose body is not JSON.
        PageLinkNetworkError
            On transport-level failures once retries are exhausted.
        PageLinkRetryExhaustedError
            When every attempt ended with a retryable status.
        """
        max_attempts = self._config.retry_max_attempts
        last_status: int | None = None
        json_payload = kwargs.get("json")

        for attempt in range(max_attempts):
            wait = await self._bucket.acquire()
            if wait > 0:
                self._metrics.timing(
                    RATE_LIMIT_WAIT_MS,
                    wait * 1000,
                    tags={"method": method, "path": path},
                )

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                last_status = None
                delay = self._handle_network_exception(method, path, exc, attempt)
                await asyncio.sleep(delay)
                continue
            elapsed_ms = (time.monotonic() - t0) * 1000

            last_status = response.status_code
            tags = {"method": method, "path": path, "status": str(response.status_code)}
            self._metrics.increment(REQUESTS_TOTAL, tags=tags)
            self._metrics.timing(REQUEST_DURATION_MS, elapsed_ms, tags=tags)

            if self._config.debug_dump_payload:
                self._emit_debug_dump(method, response, json_payload)

            if 200 <= response.status_code < 300:
                if response.status_code == 204 or not response.content:
                    return None
                return _parse_json_body(response, method, path)

            if response.status_code not in _RETRYABLE_STATUSES:
                _raise_for_status(response, method, path)

            if not should_retry(response.status_code, None, attempt, max_attempts):
                break

            retry_after: float | None = None
            reason = "server_error"
            if response.status_code == 429:
                retry_after = _parse_retry_after(response)
                reason = "rate_limited"
                self._metrics.increment(
                    RATE_LIMITED_TOTAL,
                    tags={"method": method, "path": path},
                )
                log.warning(
                    "Rate limited by remote endpoint",
                    extra={
                        "extra_fields": {
                            "op": "request",
                            "method": method,
                            "path": path,
                            "retry_after": retry_after,
                            "attempt": attempt + 1,
                        }
                    },
                )

            delay = compute_backoff(
                attempt,
                base=self._config.retry_base_delay,
                maximum=self._config.retry_max_delay,
                jitter=self._config.retry_jitter,
                retry_after=retry_after,
            )
            self._metrics.increment(
                RETRIES_TOTAL,
                tags={"method": method, "path": path, "reason": reason},
            )
            await asyncio.sleep(delay)

        raise PageLinkRetryExhaustedError(
            message=(
                f"All {max_attempts} attempts exhausted for {method} {path} "
                f"(last status: {last_status})"
            ),
            context={"attempts": max_attempts, "last_status_code": last_status},
        )

    def _handle_network_exception(
        self,
        method: str,
        path: str,
        exc: Exception,
        attempt: int,
    ) -> float:
        """Return the backoff delay for a retryable transport error.

        Timeouts, connection failures and dropped connections are retried;
        proxy and unsupported-protocol errors are not.  Raises :class:`PageLinkNetworkError` once no retry
        is left.
        """
        self._metrics.increment(
            REQUESTS_TOTAL,
            tags={"method": method, "path": path, "status": "error"},
        )
        log.warning(
            "Request network error",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "attempt": attempt + 1,
                    "error": type(exc).__name__,
                }
            },
        )
        if should_retry(None, exc, attempt, self._config.retry_max_attempts):
            self._metrics.increment(
                RETRIES_TOTAL,
                tags={"method": method, "path": path, "reason": "network_error"},
            )
            return compute_backoff(
                attempt,
                base=self._config.retry_base_delay,
                maximum=self._config.retry_max_delay,
                jitter=self._config.retry_jitter,
            )
        raise PageLinkNetworkError(
            message=f"Network error on {method} {path}: {exc}",
            context={"url": path, "attempt": attempt + 1},
            cause=exc,
        ) from exc

    def _emit_debug_dump(self, method: str, response: httpx.Response, json_payload: Any) -> None:
        try:
            resp_body = response.json()
        except ValueError:
            resp_body = response.text[:1000]
        _dump_payload(method, str(response.url), json_payload, response.status_code, resp_body)

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncRemoteTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
