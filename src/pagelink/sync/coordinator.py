"""State machine tying page selection, freshness checks and sync together.

One :class:`SyncCoordinator` serves one document instance.  Triggers are
explicit async methods; each returns a :class:`SyncOutcome` and reports
side effects to the :class:`SyncListener` as typed events.

State transitions::

    IDLE --trigger--> CHECKING_COMPATIBILITY --+--> AUTO_APPLYING --> IDLE
                                               +--> AWAITING_USER_SYNC
                                               +--> IDLE
    IDLE --gate/unlink--> BLOCKED --confirm--> CHECKING_COMPATIBILITY ...
                                  --cancel--> (previous state)
    any fetch step --error--> ERROR

A trigger arriving while a fetch is in flight returns ``BUSY`` without
side effects.  While ``BLOCKED`` only :meth:`page_selected`,
:meth:`confirm`, :meth:`cancel` and :meth:`status_changed` are accepted.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from pagelink.blocks import (
    build_link_block,
    find_link_block,
    linked_resource_from_block,
    placeholder_document,
    replace_link_content,
)
from pagelink.config import PageLinkConfig
from pagelink.errors import (
    PageLinkContentFetchError,
    PageLinkError,
    PageLinkNotConnectedError,
    PageLinkUnsupportedContentError,
)
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
from pagelink.models import (
    QUIESCENT_STATES,
    FetchResult,
    IntegrationCredential,
    LinkedResource,
    LocalDocument,
    PendingAction,
    PublicationStatus,
    SyncCheckState,
    SyncOutcome,
    SyncState,
)
from pagelink.observability import NoopMetricsHook, get_logger
from pagelink.observability.metrics import LINKS_TOTAL, SYNC_APPLIED_TOTAL, SYNC_CHECKS_TOTAL

from .differ import blocks_changed, title_changed
from .gate import requires_confirmation

if TYPE_CHECKING:
    from pagelink.integration import ConnectionManager, PageCatalog, PageSource

log = get_logger("pagelink.sync")

NESTED_PAGE_MESSAGE = (
    "This page contains nested pages or databases which are not supported. "
    "Please select a different page."
)

NESTED_SYNC_MESSAGE = (
    "This page now contains sub-pages or databases which are not supported for syncing"
)


class SyncCoordinator:
    """Link, refresh and sync one document against a remote page.

    Parameters
    ----------
    document:
        The editor-owned document.  Its ``blocks`` are replaced in place
        whenever a :class:`ContentReplaced` event is emitted.
    source:
        The compatibility-checked fetch path.
    catalog:
        Supplies titles for selected pages.
    connection:
        Supplies the owner's credential.
    config:
        Supplies the provider type and metrics hook.
    listener:
        Receives every event; defaults to :class:`NoopSyncListener`.
    """

    def __init__(
        self,
        document: LocalDocument,
        *,
        source: PageSource,
        catalog: PageCatalog,
        connection: ConnectionManager,
        config: PageLinkConfig,
        listener: SyncListener | None = None,
    ) -> None:
        self._document = document
        self._source = source
        self._catalog = catalog
        self._connection = connection
        self._config = config
        self._listener: SyncListener = listener if listener is not None else NoopSyncListener()
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

        self._state = SyncState.IDLE
        self._check = SyncCheckState()
        self._loading = False
        self._closed = False
        self._inflight: asyncio.Future[FetchResult] | None = None

        self._pending_action: PendingAction | None = None
        self._pending_page: tuple[str, str] | None = None
        self._resume_state = SyncState.IDLE

    # ── Properties ──────────────────────────────────────────────────────

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_loading(self) -> bool:
        """``True`` while a remote fetch is in flight."""
        return self._loading

    @property
    def sync_available(self) -> bool:
        """``True`` when a published document has a pending remote change."""
        return self._check.pending_change

    @property
    def pending_action(self) -> PendingAction | None:
        return self._pending_action

    @property
    def document(self) -> LocalDocument:
        return self._document

    @property
    def linked_resource(self) -> LinkedResource | None:
        block = find_link_block(self._document.blocks, self._config.provider_type)
        return linked_resource_from_block(block) if block is not None else None

    @property
    def check_state(self) -> SyncCheckState:
        return self._check

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Triggers ────────────────────────────────────────────────────────

    async def page_selected(self, page_id: str) -> SyncOutcome:
        """The user picked *page_id* from the catalog.

        Links immediately when the document holds nothing worth keeping;
        otherwise enters ``BLOCKED`` and asks for confirmation.  While
        already blocked, the new page replaces the pending selection.
        """
        refused = self._refuse(allow_blocked=True)
        if refused is not None:
            return refused

        title = self._catalog.title_for(page_id)
        if self._state is SyncState.BLOCKED or requires_confirmation(
            self._document, self._config.provider_type
        ):
            return self._block(PendingAction.LINK, page_id, title)
        return await self._link(page_id, title)

    async def confirm(self) -> SyncOutcome:
        """Proceed with the action awaiting confirmation."""
        if self._closed:
            return SyncOutcome.ABANDONED
        if self._state is not SyncState.BLOCKED or self._pending_action is None:
            return SyncOutcome.NOOP

        action, page = self._pending_action, self._pending_page
        self._pending_action = None
        self._pending_page = None
        self._state = self._resume_state

        if action is PendingAction.UNLINK:
            return self._unlink()
        assert page is not None
        return await self._link(*page)

    def cancel(self) -> SyncOutcome:
        """Discard the action awaiting confirmation; nothing else changes."""
        if self._closed:
            return SyncOutcome.ABANDONED
        if self._state is not SyncState.BLOCKED:
            return SyncOutcome.NOOP
        log.debug(
            "Pending action cancelled",
            extra={"extra_fields": {"op": "cancel", "action": self._pending_action}},
        )
        self._pending_action = None
        self._pending_page = None
        self._state = self._resume_state
        return SyncOutcome.CANCELLED

    async def edit_mode_entered(self) -> SyncOutcome:
        """Check the linked page for remote changes, once per session.

        Draft documents take the remote content immediately.  Published
        documents only raise :attr:`sync_available` and emit
        :class:`SyncAvailable`; nothing is applied until
        :meth:`manual_sync_requested`.
        """
        refused = self._refuse()
        if refused is not None:
            return refused

        block = find_link_block(self._document.blocks, self._config.provider_type)
        resource = linked_resource_from_block(block) if block is not None else None
        if block is None or resource is None or not block.get("content"):
            return SyncOutcome.NOOP
        if self._check.has_checked(resource.resource_id):
            return SyncOutcome.ALREADY_CHECKED

        session = self._check.session
        self._check.mark_checked(resource.resource_id)
        self._metrics.increment(
            SYNC_CHECKS_TOTAL,
            tags={"status": self._document.status.value},
        )

        self._state = SyncState.CHECKING_COMPATIBILITY
        try:
            result = await self._fetch_linked(resource)
            if result is None:
                return SyncOutcome.ABANDONED
            if isinstance(result, SyncOutcome):
                return result
            if self._check.session != session:
                log.debug(
                    "Discarding refresh from a previous session",
                    extra={"extra_fields": {
                        "op": "edit_mode_entered",
                        "resource_id": resource.resource_id,
                    }},
                )
                return SyncOutcome.ABANDONED
            return self._reconcile(block, resource, result)
        finally:
            self._settle()

    async def manual_sync_requested(self) -> SyncOutcome:
        """Apply the pending remote change of a published document."""
        refused = self._refuse()
        if refused is not None:
            return refused
        if not self._check.pending_change:
            return SyncOutcome.NOTHING_TO_SYNC

        resource = self.linked_resource
        if resource is None:
            self._check.pending_change = False
            return SyncOutcome.NOTHING_TO_SYNC

        self._state = SyncState.CHECKING_COMPATIBILITY
        try:
            result = await self._fetch_linked(resource)
            if result is None:
                return SyncOutcome.ABANDONED
            if isinstance(result, SyncOutcome):
                return result

            if result.has_nested_pages:
                self._emit(SyncFailed(
                    message=NESTED_SYNC_MESSAGE,
                    error=PageLinkUnsupportedContentError(
                        message=NESTED_SYNC_MESSAGE,
                        context={"resource_id": resource.resource_id},
                    ),
                ))
                self._state = SyncState.AWAITING_USER_SYNC
                return SyncOutcome.NESTED_PAGE_UNSUPPORTED
            if not result.blocks:
                return self._fail(PageLinkContentFetchError(
                    message=f"Remote page {resource.resource_id} returned no content",
                    context={"resource_id": resource.resource_id},
                ))

            self._state = SyncState.AUTO_APPLYING
            self._apply(result)
            self._check.pending_change = False
            self._state = SyncState.IDLE
            return SyncOutcome.APPLIED
        finally:
            self._settle()

    async def status_changed(self, status: PublicationStatus) -> SyncOutcome:
        """Record a publication status change.

        A real change starts a new check session so the next
        :meth:`edit_mode_entered` re-evaluates under the new policy.
        """
        refused = self._refuse(allow_blocked=True)
        if refused is not None:
            return refused
        if status == self._document.status:
            return SyncOutcome.NOOP

        self._document.status = status
        self._check.new_session()
        if self._state is SyncState.BLOCKED:
            if self._resume_state is SyncState.AWAITING_USER_SYNC:
                self._resume_state = SyncState.IDLE
        else:
            self._state = SyncState.IDLE
        log.info(
            "Publication status changed",
            extra={"extra_fields": {"op": "status_changed", "status": status.value}},
        )
        return SyncOutcome.STATUS_UPDATED

    async def request_unlink(self) -> SyncOutcome:
        """Ask to remove the linked page; waits for :meth:`confirm`."""
        refused = self._refuse()
        if refused is not None:
            return refused
        resource = self.linked_resource
        if resource is None:
            return SyncOutcome.NOOP
        return self._block(PendingAction.UNLINK, resource.resource_id, resource.resource_name)

    def reset_session(self) -> None:
        """Start a new edit session; the next edit-mode entry checks again.

        A refresh still in flight from the previous session is discarded.
        """
        self._check.new_session()
        if self._state is SyncState.AWAITING_USER_SYNC:
            self._state = SyncState.IDLE

    async def close(self) -> None:
        """Cancel any outstanding fetch; its result is never applied."""
        self._closed = True
        task = self._inflight
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    # ── Flows ───────────────────────────────────────────────────────────

    async def _link(self, page_id: str, title: str) -> SyncOutcome:
        credential = self._connection.credential
        if credential is None:
            return self._fail(PageLinkNotConnectedError(
                message="Connect the provider before linking a page",
                context={"provider_type": self._config.provider_type},
            ))

        self._state = SyncState.CHECKING_COMPATIBILITY
        try:
            result = await self._fetch(page_id, credential, title)
            if result is None:
                return SyncOutcome.ABANDONED
            if isinstance(result, SyncOutcome):
                return result

            if result.has_nested_pages:
                log.info(
                    "Selected page has nested content, not linking",
                    extra={"extra_fields": {"op": "link", "resource_id": page_id}},
                )
                self._emit(NestedPageUnsupported(page_id=page_id, page_title=title))
                self._state = SyncState.IDLE
                return SyncOutcome.NESTED_PAGE_UNSUPPORTED

            resource = LinkedResource(
                provider_type=self._config.provider_type,
                resource_id=page_id,
                resource_name=result.title or title,
                integration_id=credential.id,
            )
            block = build_link_block(resource, result.blocks)
            self._document.blocks = [block]
            self._check.pending_change = False
            self._check.mark_checked(page_id)
            self._emit(ContentReplaced(blocks=list(self._document.blocks)))
            self._emit(PageLinked(resource=resource))
            self._metrics.increment(
                LINKS_TOTAL,
                tags={"provider": self._config.provider_type},
            )
            log.info(
                "Page linked",
                extra={"extra_fields": {
                    "op": "link",
                    "resource_id": page_id,
                    "block_count": len(result.blocks),
                }},
            )
            self._state = SyncState.IDLE
            return SyncOutcome.LINKED
        finally:
            self._settle()

    def _unlink(self) -> SyncOutcome:
        resource = self.linked_resource
        self._document.blocks = placeholder_document()
        self._check.new_session()
        self._state = SyncState.IDLE
        self._emit(ContentReplaced(blocks=list(self._document.blocks)))
        self._emit(PageUnlinked(resource=resource))
        log.info(
            "Page unlinked",
            extra={"extra_fields": {
                "op": "unlink",
                "resource_id": resource.resource_id if resource else None,
            }},
        )
        return SyncOutcome.UNLINKED

    def _reconcile(
        self,
        block: dict[str, Any],
        resource: LinkedResource,
        result: FetchResult,
    ) -> SyncOutcome:
        draft = self._document.status is PublicationStatus.DRAFT

        if result.has_nested_pages:
            if draft:
                self._document.blocks = []
                self._emit(ContentReplaced(blocks=[]))
                self._emit(SourceIncompatible(resource=resource))
                self._state = SyncState.IDLE
                return SyncOutcome.CONTENT_CLEARED
            self._emit(SyncFailed(
                message=NESTED_SYNC_MESSAGE,
                error=PageLinkUnsupportedContentError(
                    message=NESTED_SYNC_MESSAGE,
                    context={"resource_id": resource.resource_id},
                ),
            ))
            self._state = SyncState.IDLE
            return SyncOutcome.NESTED_PAGE_UNSUPPORTED

        if not result.blocks:
            self._state = SyncState.IDLE
            return SyncOutcome.UNCHANGED

        content_changed = blocks_changed(block.get("content") or [], result.blocks)
        name_changed = title_changed(resource, result.title)
        if not (content_changed or name_changed):
            self._state = SyncState.IDLE
            return SyncOutcome.UNCHANGED

        if draft:
            self._state = SyncState.AUTO_APPLYING
            self._apply(result)
            self._state = SyncState.IDLE
            return SyncOutcome.APPLIED

        if not self._check.pending_change:
            self._check.pending_change = True
            self._emit(SyncAvailable(
                resource=resource,
                blocks_changed=content_changed,
                title_changed=name_changed,
            ))
        self._state = SyncState.AWAITING_USER_SYNC
        return SyncOutcome.SYNC_AVAILABLE

    def _apply(self, result: FetchResult) -> None:
        self._document.blocks = replace_link_content(
            self._document.blocks, result.blocks, result.title, self._config.provider_type,
        )
        self._emit(ContentReplaced(blocks=list(self._document.blocks)))
        self._metrics.increment(
            SYNC_APPLIED_TOTAL,
            tags={"status": self._document.status.value},
        )

    # ── Fetch plumbing ──────────────────────────────────────────────────

    async def _fetch_linked(self, resource: LinkedResource) -> FetchResult | SyncOutcome | None:
        credential = await self._credential_for(resource)
        if self._closed:
            return None
        if credential is None:
            return self._fail(PageLinkNotConnectedError(
                message="No credential available for the linked page",
                context={
                    "resource_id": resource.resource_id,
                    "integration_id": resource.integration_id,
                },
            ))
        return await self._fetch(resource.resource_id, credential, resource.resource_name)

    async def _credential_for(self, resource: LinkedResource) -> IntegrationCredential | None:
        own = self._connection.credential
        if own is not None and resource.integration_id in (None, own.id):
            return own
        if resource.integration_id is None:
            return None
        task = asyncio.ensure_future(self._connection.resolve_credential(resource.integration_id))
        self._inflight = task
        try:
            return await task
        except asyncio.CancelledError:
            if not self._closed:
                raise
            log.debug(
                "Credential lookup abandoned on close",
                extra={"extra_fields": {
                    "op": "resolve_credential",
                    "resource_id": resource.resource_id,
                }},
            )
            return None
        finally:
            self._inflight = None

    async def _fetch(
        self,
        resource_id: str,
        credential: IntegrationCredential,
        current_title: str | None,
    ) -> FetchResult | SyncOutcome | None:
        """Run one fetch as a tracked task.

        Returns the result, a ``FAILED`` outcome after reporting the error,
        or ``None`` when :meth:`close` abandoned the fetch.
        """
        if self._closed:
            return None
        self._set_loading(True)
        task = asyncio.ensure_future(self._source.fetch(resource_id, credential, current_title))
        self._inflight = task
        try:
            return await task
        except asyncio.CancelledError:
            if not self._closed:
                raise
            log.debug(
                "Fetch abandoned on close",
                extra={"extra_fields": {"op": "fetch", "resource_id": resource_id}},
            )
            return None
        except PageLinkError as exc:
            return self._fail(exc)
        finally:
            self._inflight = None
            self._set_loading(False)

    # ── Helpers ─────────────────────────────────────────────────────────

    def _refuse(self, allow_blocked: bool = False) -> SyncOutcome | None:
        if self._closed:
            return SyncOutcome.ABANDONED
        if self._state not in QUIESCENT_STATES:
            return SyncOutcome.BUSY
        if self._state is SyncState.BLOCKED and not allow_blocked:
            return SyncOutcome.BUSY
        return None

    def _block(self, action: PendingAction, page_id: str, title: str) -> SyncOutcome:
        if self._state is not SyncState.BLOCKED:
            self._resume_state = self._state
        self._state = SyncState.BLOCKED
        self._pending_action = action
        self._pending_page = (page_id, title)
        self._emit(ConfirmationRequired(action=action, page_id=page_id, page_title=title))
        return SyncOutcome.CONFIRMATION_REQUIRED

    def _fail(self, error: PageLinkError) -> SyncOutcome:
        log.error(
            "Sync step failed",
            extra={"extra_fields": {
                "op": "sync",
                "error_code": error.code,
                "state": self._state.value,
            }},
        )
        self._state = SyncState.ERROR
        self._emit(SyncFailed(message=error.message, error=error))
        return SyncOutcome.FAILED

    def _settle(self) -> None:
        if self._state not in QUIESCENT_STATES:
            self._state = SyncState.IDLE

    def _set_loading(self, loading: bool) -> None:
        self._loading = loading
        self._emit(LoadingChanged(loading=loading))

    def _emit(self, event: SyncEvent) -> None:
        self._listener.handle(event)
