"""Tests for AsyncPageLinkClient.

Both HTTP transports are mocked at ``request`` so that these tests run
entirely offline while still going through the real endpoint wrappers,
integration components and coordinator.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from conftest import RecordingListener, remote_paragraph

from pagelink import AsyncPageLinkClient
from pagelink.errors import PageLinkNotConnectedError, PageLinkValidationError
from pagelink.events import PageLinked
from pagelink.models import CatalogOutcome, ConnectionState, LocalDocument, SyncOutcome


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_RECORD = {"id": 7, "user_id": "42", "integration_type": "notion", "access_token": "secret_tok_1234"}


def _page(page_id: str, title: str) -> dict[str, Any]:
    return {
        "object": "page",
        "id": page_id,
        "properties": {"title": {"title": [{"plain_text": title}]}},
    }


class _FakeBackend:
    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self.records = list(records or [])
        self.calls: list[tuple[str, str]] = []

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        self.calls.append((method, path))
        if method == "GET" and path == "/integrations/":
            return self.records
        if method == "POST":
            self.records.append({"id": 8, **kwargs["json"]})
            return self.records[-1]
        if method == "DELETE":
            self.records.clear()
            return None
        return {}


class _FakeApp:
    def __init__(self, pages: list[dict[str, Any]], blocks: list[dict[str, Any]]) -> None:
        self.pages = pages
        self.blocks = blocks

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        if path == "/api/integrations/fetchPages":
            return {"pages": self.pages}
        if path == "/api/integrations/fetchPageBlocks":
            return {"ok": True, "data": self.blocks}
        if path == "/api/integrations/fetchPage":
            page_id = kwargs["params"]["pageId"]
            for page in self.pages:
                if page["id"] == page_id:
                    return {"page": page}
        return {}


def _client(**kwargs: Any) -> AsyncPageLinkClient:
    kwargs.setdefault("owner_id", "42")
    return AsyncPageLinkClient(
        oauth_client_id="client-abc-1234",
        retry_base_delay=0.0,
        retry_jitter=False,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    async def test_config_built_from_kwargs(self):
        client = _client(provider_type="notion", timeout_seconds=5.0)
        assert client.config.timeout_seconds == 5.0
        assert client.connection.state is ConnectionState.UNCONNECTED
        assert client.catalog.pages == []
        await client.close()

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            AsyncPageLinkClient(owner_id="42", retry_max_attempts=0)

    async def test_owner_required_for_connection_ops(self):
        client = AsyncPageLinkClient()
        with pytest.raises(PageLinkValidationError):
            await client.check_connection()
        with pytest.raises(PageLinkValidationError):
            await client.disconnect()
        await client.close()

    async def test_authorization_url_needs_no_owner(self):
        client = AsyncPageLinkClient(oauth_client_id="client-abc-1234")
        url = client.authorization_url("https://app.example.com/editor/1")
        assert "client_id=client-abc-1234" in url
        await client.close()


# ---------------------------------------------------------------------------
# Connection and catalog
# ---------------------------------------------------------------------------

class TestConnectionFlow:
    async def test_check_connection_and_list_pages(self):
        client = _client()
        backend = _FakeBackend([_RECORD])
        app = _FakeApp([_page("p1", "Meeting notes"), _page("p2", "Roadmap")], [])
        with (
            patch.object(client._backend, "request", side_effect=backend.request),
            patch.object(client._app, "request", side_effect=app.request),
        ):
            status = await client.check_connection()
            listing = await client.list_pages()

        assert status.connected
        assert status.credential.id == "7"
        assert listing.outcome is CatalogOutcome.PAGES
        assert [page.title for page in listing.pages] == ["Meeting notes", "Roadmap"]
        assert client.catalog.title_for("p2") == "Roadmap"
        await client.close()

    async def test_list_pages_without_credential_raises(self):
        client = _client()
        with pytest.raises(PageLinkNotConnectedError):
            await client.list_pages()
        await client.close()

    async def test_callback_completes_authorization(self):
        client = _client()
        backend = _FakeBackend()
        with patch.object(client._backend, "request", side_effect=backend.request):
            cleaned = await client.consume_callback(
                "https://app.example.com/editor/1?access_token=secret_new_9999&tab=2",
            )

        assert cleaned == "https://app.example.com/editor/1?tab=2"
        assert client.connection.is_connected
        assert ("POST", "/integrations/") in backend.calls
        await client.close()

    async def test_disconnect_invalidates_catalog(self):
        client = _client()
        backend = _FakeBackend([_RECORD])
        app = _FakeApp([_page("p1", "Meeting notes")], [])
        with (
            patch.object(client._backend, "request", side_effect=backend.request),
            patch.object(client._app, "request", side_effect=app.request),
        ):
            await client.check_connection()
            await client.list_pages()
            assert await client.disconnect() is True

        assert client.catalog.pages == []
        assert client.connection.credential is None
        await client.close()


# ---------------------------------------------------------------------------
# Coordinators
# ---------------------------------------------------------------------------

class TestCoordinators:
    async def test_link_through_client(self):
        client = _client()
        backend = _FakeBackend([_RECORD])
        app = _FakeApp([_page("p1", "Meeting notes")], [remote_paragraph("Hello")])
        listener = RecordingListener()
        document = LocalDocument()
        with (
            patch.object(client._backend, "request", side_effect=backend.request),
            patch.object(client._app, "request", side_effect=app.request),
        ):
            await client.check_connection()
            await client.list_pages()
            coordinator = client.coordinator(document, listener=listener)
            outcome = await coordinator.page_selected("p1")

        assert outcome is SyncOutcome.LINKED
        assert len(document.blocks) == 1
        props = document.blocks[0]["props"]
        assert props["resource_id"] == "p1"
        assert props["integration_id"] == "7"
        assert props["resource_name"] == "Meeting notes"
        assert listener.of_type(PageLinked)[0].resource.resource_id == "p1"
        await client.close()

    async def test_close_closes_coordinators_and_transports(self):
        client = _client()
        coordinator = client.coordinator(LocalDocument())
        with (
            patch.object(client._backend, "close", new=AsyncMock()) as backend_close,
            patch.object(client._app, "close", new=AsyncMock()) as app_close,
        ):
            async with client:
                pass

        assert coordinator.closed
        backend_close.assert_awaited_once()
        app_close.assert_awaited_once()
