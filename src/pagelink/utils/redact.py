"""Token / payload redaction for safe logging.

Access tokens travel in request bodies (``token``, ``access_token``) and in
query strings (``?token=...``).  Before a payload or URL is written to a
debug dump, :func:`redact` must be applied:

* values under **sensitive keys** are masked;
* ``token=`` / ``access_token=`` **query parameters** are masked;
* the explicit *token*, when supplied, is scrubbed from every string.
"""

from __future__ import annotations

import copy
import re
from typing import Any

# If any of these appear in a key name (case-insensitive), the value is
# redacted.  Catches ``access_token``, ``client_secret``, etc.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "api_key",
})

_QUERY_TOKEN_RE = re.compile(r"([?&](?:access_)?token=)[^&#\s]+")


def _mask_token(value: str, token: str | None) -> str:
    """Replace token strings with a safe placeholder."""
    if token and token in value:
        suffix = token[-4:] if len(token) >= 8 else "****"
        value = value.replace(token, f"<redacted:...{suffix}>")
    value = _QUERY_TOKEN_RE.sub(lambda m: f"{m.group(1)}<redacted>", value)
    return re.sub(r"(Bearer\s+)\S+", lambda m: f"{m.group(1)}<redacted>", value)


def _redact_value(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, token)
    if isinstance(value, list):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, str):
        return _mask_token(value, token)
    return value


def _redact_dict(d: dict, token: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = "<redacted>"
        else:
            result[key] = _redact_value(value, token)
    return result


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitise (a request body, a debug dump, ...).
    token:
        An access token.  If supplied, every occurrence of this exact
        string is replaced.

    Examples
    --------
    >>> redact({"pageId": "p1", "token": "secret_abc"})
    {'pageId': 'p1', 'token': '<redacted>'}

    >>> redact({"url": "/api/integrations/fetchPages?token=secret_abc"})
    {'url': '/api/integrations/fetchPages?token=<redacted>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, token)
