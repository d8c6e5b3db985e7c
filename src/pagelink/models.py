"""Public data models for pagelink.

This module contains every enum, record and result type referenced by the
public API surface.  Records that are snapshots of remote state are frozen
so they can be compared, hashed and shared safely between components.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pagelink.errors import PageLinkError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ConnectionState(str, Enum):
    """Authorization lifecycle of one owner for one provider."""

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    """The last authorization exchange was rejected.  Treated as not
    connected by every consumer."""


class PublicationStatus(str, Enum):
    """Publication status of the local document."""

    DRAFT = "draft"
    """Remote changes are applied automatically."""

    PUBLISHED = "published"
    """Remote changes wait for an explicit manual sync."""


class SyncState(str, Enum):
    """States of the :class:`~pagelink.sync.SyncCoordinator` machine."""

    IDLE = "idle"
    CHECKING_COMPATIBILITY = "checking_compatibility"
    AUTO_APPLYING = "auto_applying"
    AWAITING_USER_SYNC = "awaiting_user_sync"
    BLOCKED = "blocked"
    ERROR = "error"


QUIESCENT_STATES: frozenset[SyncState] = frozenset({
    SyncState.IDLE,
    SyncState.AWAITING_USER_SYNC,
    SyncState.BLOCKED,
    SyncState.ERROR,
})
"""States in which the coordinator accepts a new trigger."""


class CatalogOutcome(str, Enum):
    """Outcome of a :meth:`PageCatalog.list_pages` call."""

    PAGES = "pages"
    NO_PAGES_FOUND = "no_pages_found"
    FETCH_FAILED = "fetch_failed"


class PendingAction(str, Enum):
    """The destructive action awaiting user confirmation while BLOCKED."""

    LINK = "link"
    UNLINK = "unlink"


class SyncOutcome(str, Enum):
    """What a coordinator trigger ended up doing."""

    LINKED = "linked"
    CONFIRMATION_REQUIRED = "confirmation_required"
    CANCELLED = "cancelled"
    NESTED_PAGE_UNSUPPORTED = "nested_page_unsupported"
    APPLIED = "applied"
    CONTENT_CLEARED = "content_cleared"
    SYNC_AVAILABLE = "sync_available"
    UNCHANGED = "unchanged"
    NOOP = "noop"
    ALREADY_CHECKED = "already_checked"
    NOTHING_TO_SYNC = "nothing_to_sync"
    UNLINKED = "unlinked"
    STATUS_UPDATED = "status_updated"
    FAILED = "failed"
    BUSY = "busy"
    ABANDONED = "abandoned"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IntegrationCredential:
    """A stored authorization for one owner and provider.

    Attributes
    ----------
    id:
        Backend identifier of the integration record.  Stored in link
        blocks so the token can be resolved again later.
    owner_id:
        The user who authorized the provider.
    provider_type:
        Integration type, e.g. ``"notion"``.
    token:
        Provider access token.  Never logged; masked in ``repr``.
    """

    id: str
    owner_id: str
    provider_type: str
    token: str = field(repr=False)

    def __repr__(self) -> str:
        masked = f"...{self.token[-4:]}" if len(self.token) >= 8 else "****"
        return (
            f"IntegrationCredential(id={self.id!r}, owner_id={self.owner_id!r}, "
            f"provider_type={self.provider_type!r}, token='{masked}')"
        )


@dataclass(frozen=True)
class RemotePage:
    """A selectable page as listed by the provider."""

    id: str
    title: str


@dataclass(frozen=True)
class LinkedResource:
    """The local record of which remote page is attached to a document.

    Lives inside the document as the props of the link block; see
    :mod:`pagelink.blocks`.
    """

    provider_type: str
    resource_id: str
    resource_name: str
    integration_id: str | None = None


@dataclass
class LocalDocument:
    """The editor-owned document the coordinator reads and replaces.

    Attributes
    ----------
    blocks:
        The ordered block sequence in the editor's boundary shape.
    status:
        Publication status; selects the reconciliation policy.
    """

    blocks: list[dict[str, Any]] = field(default_factory=list)
    status: PublicationStatus = PublicationStatus.DRAFT


@dataclass
class SyncCheckState:
    """Per-session freshness bookkeeping.

    ``checked`` holds the ``(session, resource_id)`` key of the last
    completed check, so moving to a new session or a new resource resets
    the guard without any extra bookkeeping.
    """

    session: int = 0
    checked: tuple[int, str] | None = None
    pending_change: bool = False

    def has_checked(self, resource_id: str | None) -> bool:
        return resource_id is not None and self.checked == (self.session, resource_id)

    def mark_checked(self, resource_id: str) -> None:
        self.checked = (self.session, resource_id)

    def new_session(self) -> None:
        self.session += 1
        self.checked = None
        self.pending_change = False


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class ConnectionStatus:
    """Result of :meth:`ConnectionManager.check_connection`."""

    connected: bool
    credential: IntegrationCredential | None = None


@dataclass
class PageListing:
    """Result of :meth:`PageCatalog.list_pages`.

    Attributes
    ----------
    outcome:
        Which of the three listing outcomes occurred.
    pages:
        The listed pages (empty unless ``outcome`` is ``PAGES``).
    error:
        The underlying error for ``FETCH_FAILED``.
    no_pages_found:
        Display state: ``True`` whenever there is nothing to show and the
        caller should offer to reconnect.
    """

    outcome: CatalogOutcome
    pages: list[RemotePage] = field(default_factory=list)
    error: PageLinkError | None = None
    no_pages_found: bool = False


@dataclass
class FetchResult:
    """Output of the compatibility-checked fetch path.

    Attributes
    ----------
    blocks:
        The fetched top-level blocks of the remote page.
    title:
        The page title, or the caller-supplied fallback when the title
        lookup failed.
    has_nested_pages:
        ``True`` if the block tree contains child pages or databases.
    """

    blocks: list[dict[str, Any]] = field(default_factory=list)
    title: str | None = None
    has_nested_pages: bool = False
