"""Listing of the remote pages an owner can link.

:class:`PageCatalog` distinguishes three outcomes: pages were found, the
provider returned none (the user shared nothing during consent), or the
listing failed.  Both of the latter put the caller in the "no pages,
offer reconnect" display state.
"""

from __future__ import annotations

from pagelink.config import PageLinkConfig
from pagelink.errors import (
    PageLinkAuthError,
    PageLinkCatalogError,
    PageLinkError,
    PageLinkPermissionError,
)
from pagelink.models import CatalogOutcome, IntegrationCredential, PageListing, RemotePage
from pagelink.observability import NoopMetricsHook, get_logger
from pagelink.observability.metrics import CATALOG_PAGES
from pagelink.remote_api.pages import page_title

from .connection import ConnectionManager
from .source import PageSource

log = get_logger("pagelink.catalog")


class PageCatalog:
    """Cached page listing for the connected owner.

    Parameters
    ----------
    connection:
        Notified via :meth:`ConnectionManager.mark_revoked` when the
        provider rejects the credential.
    source:
        Performs the listing request.
    config:
        Supplies the default page title and the metrics hook.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        source: PageSource,
        config: PageLinkConfig,
    ) -> None:
        self._connection = connection
        self._source = source
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._pages: list[RemotePage] = []

    @property
    def pages(self) -> list[RemotePage]:
        """The pages from the last successful listing."""
        return list(self._pages)

    async def list_pages(self, credential: IntegrationCredential) -> PageListing:
        """List the pages *credential* grants access to."""
        try:
            raw_pages = await self._source.list_pages(credential.token)
        except PageLinkError as exc:
            if isinstance(exc, (PageLinkAuthError, PageLinkPermissionError)):
                self._connection.mark_revoked()
            error = PageLinkCatalogError(
                message=f"Failed to list pages: {exc.message}",
                context={"integration_id": credential.id, "error_code": exc.code},
                cause=exc,
            )
            log.error(
                "Page listing failed",
                extra={"extra_fields": {
                    "op": "list_pages",
                    "integration_id": credential.id,
                    "error_code": exc.code,
                }},
            )
            self._pages = []
            return PageListing(
                outcome=CatalogOutcome.FETCH_FAILED,
                error=error,
                no_pages_found=True,
            )

        pages = [
            RemotePage(
                id=str(raw["id"]),
                title=page_title(raw, self._config.default_page_title),
            )
            for raw in raw_pages
            if raw.get("id")
        ]
        self._pages = pages
        self._metrics.gauge(CATALOG_PAGES, float(len(pages)))

        if not pages:
            log.info(
                "No pages shared with the integration",
                extra={"extra_fields": {"op": "list_pages", "integration_id": credential.id}},
            )
            return PageListing(outcome=CatalogOutcome.NO_PAGES_FOUND, no_pages_found=True)
        return PageListing(outcome=CatalogOutcome.PAGES, pages=list(pages))

    def title_for(self, page_id: str) -> str:
        """Return the cached title of *page_id*, or the default title."""
        for page in self._pages:
            if page.id == page_id:
                return page.title
        return self._config.default_page_title

    def invalidate(self) -> None:
        """Forget the cached listing, e.g. after the user shared more pages."""
        self._pages = []
