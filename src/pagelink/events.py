"""Typed events emitted by the sync coordinator.

The coordinator never calls back into the editor directly.  Every side
effect the caller must act on (replace the document, show a prompt, toggle
a spinner, surface an error) is delivered as one of the event dataclasses
below to a :class:`SyncListener`.

Usage::

    class EditorBridge:
        def handle(self, event: SyncEvent) -> None:
            if isinstance(event, ContentReplaced):
                editor.replace_blocks(event.blocks)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Union, runtime_checkable

from pagelink.errors import PageLinkError
from pagelink.models import LinkedResource, PendingAction


@dataclass(frozen=True)
class LoadingChanged:
    """A remote fetch started (``True``) or finished (``False``)."""

    loading: bool


@dataclass(frozen=True)
class ContentReplaced:
    """The coordinator proposes this full block sequence for the document."""

    blocks: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ConfirmationRequired:
    """A destructive action waits for :meth:`confirm` or :meth:`cancel`."""

    action: PendingAction
    page_id: str | None = None
    page_title: str | None = None


@dataclass(frozen=True)
class PageLinked:
    """A remote page is now attached to the document."""

    resource: LinkedResource


@dataclass(frozen=True)
class PageUnlinked:
    """The previously attached page was removed from the document."""

    resource: LinkedResource | None


@dataclass(frozen=True)
class NestedPageUnsupported:
    """The selected page contains nested pages or databases; not linked."""

    page_id: str
    page_title: str | None = None


@dataclass(frozen=True)
class SourceIncompatible:
    """A linked draft's source became unsupported and its content was cleared."""

    resource: LinkedResource


@dataclass(frozen=True)
class SyncAvailable:
    """The remote copy of a published document diverged from the stored copy."""

    resource: LinkedResource
    blocks_changed: bool
    title_changed: bool


@dataclass(frozen=True)
class SyncFailed:
    """A recoverable, dismissable error to show to the user."""

    message: str
    error: PageLinkError | None = None


SyncEvent = Union[
    LoadingChanged,
    ContentReplaced,
    ConfirmationRequired,
    PageLinked,
    PageUnlinked,
    NestedPageUnsupported,
    SourceIncompatible,
    SyncAvailable,
    SyncFailed,
]


@runtime_checkable
class SyncListener(Protocol):
    """Receiver of coordinator events."""

    def handle(self, event: SyncEvent) -> None:
        ...


class NoopSyncListener:
    """Default listener that ignores every event."""

    __slots__ = ()

    def handle(self, event: SyncEvent) -> None:
        pass
