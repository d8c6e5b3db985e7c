"""Configuration for pagelink.

:class:`PageLinkConfig` is a dataclass that captures every tuneable knob
used by the transport, the integration layer and the sync coordinator.
Instances are passed to :class:`AsyncPageLinkClient` and, from there, to
every component it builds.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any

DEFAULT_PROVIDER_TYPE = "notion"

DEFAULT_AUTHORIZE_URL = "https://api.notion.com/v1/oauth/authorize"

DEFAULT_PAGE_TITLE = "New page"
"""Title shown for remote pages whose title property is empty."""

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


@dataclass
class PageLinkConfig:
    """Complete configuration for a pagelink client.

    Parameters
    ----------
    backend_url:
        Root URL of the backend that stores integration credentials
        (``/integrations/`` endpoints).
    app_url:
        Root URL of the application server exposing the provider proxy
        endpoints (``/api/integrations/...``).
    provider_type:
        Integration type stored with credentials and link blocks.
    oauth_client_id:
        Provider OAuth client id used to build the authorize URL.
        Masked in ``repr``.
    oauth_authorize_url:
        Provider OAuth authorize endpoint.
    default_page_title:
        Title used when a remote page has no title.
    retry_max_attempts:
        Maximum attempts per request for retryable HTTP errors.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Add random jitter to backoff intervals.
    rate_limit_rps:
        Target requests per second for client-side pacing (token bucket).
    timeout_seconds:
        HTTP request timeout in seconds.  This is the only timeout applied
        to remote fetches.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~pagelink.observability.MetricsHook` backend.
    debug_dump_payload:
        Write the (redacted) request/response payload to *stderr*.
    """

    # ── Endpoints ───────────────────────────────────────────────────────
    backend_url: str = "http://localhost:8001"

    app_url: str = "http://localhost:3000"

    # ── Provider ────────────────────────────────────────────────────────
    provider_type: str = DEFAULT_PROVIDER_TYPE

    oauth_client_id: str = ""

    oauth_authorize_url: str = DEFAULT_AUTHORIZE_URL

    default_page_title: str = DEFAULT_PAGE_TITLE

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 3

    retry_base_delay: float = 0.5

    retry_max_delay: float = 10.0

    retry_jitter: bool = True

    rate_limit_rps: float = 3.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        for name in ("backend_url", "app_url", "oauth_authorize_url"):
            parsed = urlparse(getattr(self, name))
            if parsed.scheme not in ("http", "https"):
                raise ValueError(f"{name} must be an http(s) URL, got {getattr(self, name)!r}")
            if parsed.scheme == "http" and parsed.hostname not in _LOCAL_HOSTS:
                raise ValueError(
                    f"{name} uses insecure HTTP for non-local host '{parsed.hostname}'. "
                    "Use HTTPS to protect access tokens, or target localhost for testing."
                )

        if not self.provider_type:
            raise ValueError("provider_type must be a non-empty string")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: Any) -> PageLinkConfig:
        """Build a config from ``PAGELINK_*`` environment variables.

        Recognised variables: ``PAGELINK_BACKEND_URL``, ``PAGELINK_APP_URL``,
        ``PAGELINK_PROVIDER_TYPE``, ``PAGELINK_OAUTH_CLIENT_ID``,
        ``PAGELINK_TIMEOUT_SECONDS`` and ``PAGELINK_HTTP_PROXY``.  Explicit
        keyword *overrides* win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name, var in (
            ("backend_url", "PAGELINK_BACKEND_URL"),
            ("app_url", "PAGELINK_APP_URL"),
            ("provider_type", "PAGELINK_PROVIDER_TYPE"),
            ("oauth_client_id", "PAGELINK_OAUTH_CLIENT_ID"),
            ("http_proxy", "PAGELINK_HTTP_PROXY"),
        ):
            if env.get(var):
                values[field_name] = env[var]
        if env.get("PAGELINK_TIMEOUT_SECONDS"):
            values["timeout_seconds"] = float(env["PAGELINK_TIMEOUT_SECONDS"])
        values.update(overrides)
        return cls(**values)

    def __repr__(self) -> str:
        """Mask the OAuth client id to keep it out of logs."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "oauth_client_id":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"oauth_client_id='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"PageLinkConfig({', '.join(parts)})"
