"""pagelink — keep a local document in sync with a linked remote page.

Public re-exports
-----------------

* **Client:** :class:`AsyncPageLinkClient`
* **Configuration:** :class:`PageLinkConfig`
* **Errors:** Every :class:`PageLinkError` subclass and :class:`ErrorCode`
* **Models:** Records, results and enums
* **Events:** Coordinator events and the :class:`SyncListener` protocol

Usage::

    from pagelink import AsyncPageLinkClient, LocalDocument, PublicationStatus

    async with AsyncPageLinkClient(owner_id="42") as client:
        await client.check_connection()
        coordinator = client.coordinator(LocalDocument(status=PublicationStatus.PUBLISHED))
        await coordinator.edit_mode_entered()
"""

from __future__ import annotations

# ── Client ──────────────────────────────────────────────────────────────
from pagelink.async_client import AsyncPageLinkClient

# ── Configuration ───────────────────────────────────────────────────────
from pagelink.config import DEFAULT_PAGE_TITLE, DEFAULT_PROVIDER_TYPE, PageLinkConfig

# ── Errors ──────────────────────────────────────────────────────────────
from pagelink.errors import (
    ErrorCode,
    PageLinkAuthError,
    PageLinkCatalogError,
    PageLinkContentFetchError,
    PageLinkError,
    PageLinkNetworkError,
    PageLinkNotConnectedError,
    PageLinkNotFoundError,
    PageLinkPermissionError,
    PageLinkRetryExhaustedError,
    PageLinkUnsupportedContentError,
    PageLinkValidationError,
)

# ── Events ──────────────────────────────────────────────────────────────
from pagelink.events import (
    ConfirmationRequired,
    ContentReplaced,
    LoadingChanged,
    NestedPageUnsupported,
    NoopSyncListener,
    PageLinked,
    PageUnlinked,
    SourceIncompatible,
    SyncAvailable,
    SyncEvent,
    SyncFailed,
    SyncListener,
)

# ── Components ──────────────────────────────────────────────────────────
from pagelink.integration import ConnectionManager, PageCatalog, PageSource

# ── Models ──────────────────────────────────────────────────────────────
from pagelink.models import (
    CatalogOutcome,
    ConnectionState,
    ConnectionStatus,
    FetchResult,
    IntegrationCredential,
    LinkedResource,
    LocalDocument,
    PageListing,
    PendingAction,
    PublicationStatus,
    RemotePage,
    SyncCheckState,
    SyncOutcome,
    SyncState,
)
from pagelink.sync import SyncCoordinator

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Client
    "AsyncPageLinkClient",
    # Configuration
    "PageLinkConfig",
    "DEFAULT_PAGE_TITLE",
    "DEFAULT_PROVIDER_TYPE",
    # Error base + code enum
    "PageLinkError",
    "ErrorCode",
    # Transport errors
    "PageLinkValidationError",
    "PageLinkAuthError",
    "PageLinkPermissionError",
    "PageLinkNotFoundError",
    "PageLinkRetryExhaustedError",
    "PageLinkNetworkError",
    # Domain errors
    "PageLinkNotConnectedError",
    "PageLinkCatalogError",
    "PageLinkContentFetchError",
    "PageLinkUnsupportedContentError",
    # Components
    "ConnectionManager",
    "PageCatalog",
    "PageSource",
    "SyncCoordinator",
    # Events
    "SyncEvent",
    "SyncListener",
    "NoopSyncListener",
    "LoadingChanged",
    "ContentReplaced",
    "ConfirmationRequired",
    "PageLinked",
    "PageUnlinked",
    "NestedPageUnsupported",
    "SourceIncompatible",
    "SyncAvailable",
    "SyncFailed",
    # Models — records
    "IntegrationCredential",
    "RemotePage",
    "LinkedResource",
    "LocalDocument",
    "SyncCheckState",
    # Models — results
    "ConnectionStatus",
    "PageListing",
    "FetchResult",
    # Models — enums
    "ConnectionState",
    "PublicationStatus",
    "SyncState",
    "CatalogOutcome",
    "PendingAction",
    "SyncOutcome",
]
