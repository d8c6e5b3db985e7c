"""Full error hierarchy for pagelink.

Every public error class inherits from PageLinkError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error pagelink can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    NOT_CONNECTED = "NOT_CONNECTED"
    CATALOG_ERROR = "CATALOG_ERROR"
    CONTENT_FETCH_ERROR = "CONTENT_FETCH_ERROR"
    UNSUPPORTED_CONTENT = "UNSUPPORTED_CONTENT"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class PageLinkError(Exception):
    """Base exception for all pagelink errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class PageLinkValidationError(PageLinkError):
    """The remote endpoint returned 400 (or another non-retryable 4xx).

    Context keys: ``status_code``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class PageLinkAuthError(PageLinkError):
    """The remote endpoint returned 401: the access token is invalid or
    was revoked by the provider.

    Context keys: ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.AUTH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class PageLinkPermissionError(PageLinkError):
    """The remote endpoint returned 403: the integration lacks access.

    Context keys: ``status_code``, ``operation``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PERMISSION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class PageLinkNotFoundError(PageLinkError):
    """The remote endpoint returned 404.

    Context keys: ``status_code``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class PageLinkRetryExhaustedError(PageLinkError):
    """All retry attempts have been exhausted for a retryable request.

    Context keys: ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RETRY_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )


class PageLinkNetworkError(PageLinkError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Synchronization errors
# ---------------------------------------------------------------------------

class PageLinkNotConnectedError(PageLinkError):
    """No credential is available for the configured provider.

    Context keys: ``provider_type``, ``resource_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_CONNECTED,
            message=message,
            context=context,
            cause=cause,
        )


class PageLinkCatalogError(PageLinkError):
    """Listing the selectable remote pages failed.

    Context keys: ``provider_type``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CATALOG_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class PageLinkContentFetchError(PageLinkError):
    """Fetching a remote page's blocks failed or returned an error shape.

    Context keys: ``resource_id``, ``response``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONTENT_FETCH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class PageLinkUnsupportedContentError(PageLinkError):
    """The linked remote page now contains nested pages or databases.

    Only raised (as a surfaced error) for published documents; drafts
    handle the same condition by clearing their content.

    Context keys: ``resource_id``, ``status``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNSUPPORTED_CONTENT,
            message=message,
            context=context,
            cause=cause,
        )
