"""Tests for pagelink.integration.catalog.PageCatalog."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from pagelink.errors import (
    PageLinkAuthError,
    PageLinkCatalogError,
    PageLinkNetworkError,
    PageLinkPermissionError,
)
from pagelink.integration.catalog import PageCatalog
from pagelink.integration.connection import ConnectionManager
from pagelink.integration.source import PageSource
from pagelink.models import CatalogOutcome, RemotePage


def raw_page(page_id: str, title: str | None) -> dict:
    segments = [{"plain_text": title}] if title is not None else []
    return {"object": "page", "id": page_id, "properties": {"title": {"title": segments}}}


def make_catalog(config, pages=None, error=None):
    connection = MagicMock(spec=ConnectionManager)
    source = MagicMock(spec=PageSource)
    source.list_pages = AsyncMock(return_value=pages or [], side_effect=error)
    return PageCatalog(connection, source, config), connection, source


class TestListPages:
    async def test_pages_found(self, config, credential):
        catalog, _, source = make_catalog(
            config, [raw_page("p1", "Meeting notes"), raw_page("p2", "Notes")],
        )

        listing = await catalog.list_pages(credential)

        assert listing.outcome is CatalogOutcome.PAGES
        assert listing.pages == [RemotePage("p1", "Meeting notes"), RemotePage("p2", "Notes")]
        assert not listing.no_pages_found
        assert listing.error is None
        source.list_pages.assert_awaited_once_with("secret_token_abcd")

    async def test_untitled_page_gets_default_title(self, config, credential):
        catalog, _, _ = make_catalog(config, [raw_page("p1", None), raw_page("p2", "")])
        listing = await catalog.list_pages(credential)
        assert [p.title for p in listing.pages] == ["New page", "New page"]

    async def test_no_pages_is_distinct_outcome(self, config, credential):
        catalog, connection, _ = make_catalog(config, [])

        listing = await catalog.list_pages(credential)

        assert listing.outcome is CatalogOutcome.NO_PAGES_FOUND
        assert listing.no_pages_found
        assert listing.error is None
        connection.mark_revoked.assert_not_called()

    async def test_transport_failure(self, config, credential):
        catalog, connection, _ = make_catalog(config, error=PageLinkNetworkError(message="down"))

        listing = await catalog.list_pages(credential)

        assert listing.outcome is CatalogOutcome.FETCH_FAILED
        assert listing.no_pages_found
        assert isinstance(listing.error, PageLinkCatalogError)
        assert isinstance(listing.error.cause, PageLinkNetworkError)
        connection.mark_revoked.assert_not_called()

    async def test_auth_failure_marks_revoked(self, config, credential):
        catalog, connection, _ = make_catalog(config, error=PageLinkAuthError(message="revoked"))
        listing = await catalog.list_pages(credential)
        assert listing.outcome is CatalogOutcome.FETCH_FAILED
        connection.mark_revoked.assert_called_once_with()

    async def test_permission_failure_marks_revoked(self, config, credential):
        catalog, connection, _ = make_catalog(
            config, error=PageLinkPermissionError(message="forbidden"),
        )
        await catalog.list_pages(credential)
        connection.mark_revoked.assert_called_once_with()


class TestCache:
    async def test_title_for_uses_cache(self, config, credential):
        catalog, _, _ = make_catalog(config, [raw_page("p1", "Meeting notes")])
        await catalog.list_pages(credential)
        assert catalog.title_for("p1") == "Meeting notes"
        assert catalog.title_for("unknown") == "New page"

    async def test_pages_property_returns_copy(self, config, credential):
        catalog, _, _ = make_catalog(config, [raw_page("p1", "Meeting notes")])
        await catalog.list_pages(credential)
        catalog.pages.clear()
        assert len(catalog.pages) == 1

    async def test_invalidate_drops_cache(self, config, credential):
        catalog, _, _ = make_catalog(config, [raw_page("p1", "Meeting notes")])
        await catalog.list_pages(credential)
        catalog.invalidate()
        assert catalog.pages == []
        assert catalog.title_for("p1") == "New page"

    async def test_failure_clears_cache(self, config, credential):
        catalog, _, source = make_catalog(config, [raw_page("p1", "Meeting notes")])
        await catalog.list_pages(credential)
        source.list_pages.side_effect = PageLinkNetworkError(message="down")
        await catalog.list_pages(credential)
        assert catalog.pages == []
