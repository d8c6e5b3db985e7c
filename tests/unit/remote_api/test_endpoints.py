"""Tests for the backend and provider-proxy endpoint wrappers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from pagelink.remote_api.integrations import AsyncIntegrationAPI
from pagelink.remote_api.pages import AsyncPageSourceAPI, page_title
from pagelink.remote_api.transport import AsyncRemoteTransport


def make_transport(result=None) -> MagicMock:
    transport = MagicMock(spec=AsyncRemoteTransport)
    transport.request = AsyncMock(return_value=result)
    return transport


class TestAsyncIntegrationAPI:
    async def test_list_for_user(self):
        transport = make_transport([{"id": 7, "integration_type": "notion"}, "junk"])
        api = AsyncIntegrationAPI(transport)

        records = await api.list_for_user("42")

        assert records == [{"id": 7, "integration_type": "notion"}]
        transport.request.assert_awaited_once_with(
            "GET", "/integrations/", params={"user_id": "42"},
        )

    async def test_list_for_user_non_list_body(self):
        api = AsyncIntegrationAPI(make_transport({"detail": "weird"}))
        assert await api.list_for_user("42") == []

    async def test_retrieve(self):
        transport = make_transport({"id": 7, "access_token": "t"})
        api = AsyncIntegrationAPI(transport)
        assert await api.retrieve("7") == {"id": 7, "access_token": "t"}
        transport.request.assert_awaited_once_with("GET", "/integrations/7")

    async def test_create(self):
        transport = make_transport({"id": 7})
        api = AsyncIntegrationAPI(transport)

        assert await api.create("42", "notion", "tok") == {"id": 7}
        transport.request.assert_awaited_once_with(
            "POST",
            "/integrations/",
            json={"user_id": "42", "integration_type": "notion", "access_token": "tok"},
        )

    async def test_create_without_body(self):
        api = AsyncIntegrationAPI(make_transport(None))
        assert await api.create("42", "notion", "tok") is None

    async def test_delete(self):
        transport = make_transport(None)
        api = AsyncIntegrationAPI(transport)
        await api.delete("42", "notion")
        transport.request.assert_awaited_once_with(
            "DELETE", "/integrations/", json={"user_id": "42", "integration_type": "notion"},
        )


class TestAsyncPageSourceAPI:
    async def test_fetch_pages_unwraps(self):
        transport = make_transport({"pages": [{"id": "p1"}, None]})
        api = AsyncPageSourceAPI(transport)

        assert await api.fetch_pages("tok") == [{"id": "p1"}]
        transport.request.assert_awaited_once_with(
            "GET", "/api/integrations/fetchPages", params={"token": "tok"},
        )

    async def test_fetch_pages_missing_key(self):
        api = AsyncPageSourceAPI(make_transport({}))
        assert await api.fetch_pages("tok") == []

    async def test_fetch_page_blocks(self):
        transport = make_transport({"ok": True, "data": []})
        api = AsyncPageSourceAPI(transport)

        assert await api.fetch_page_blocks("p1", "tok") == {"ok": True, "data": []}
        transport.request.assert_awaited_once_with(
            "POST", "/api/integrations/fetchPageBlocks", json={"pageId": "p1", "token": "tok"},
        )

    async def test_fetch_page_unwraps(self):
        transport = make_transport({"page": {"id": "p1"}})
        api = AsyncPageSourceAPI(transport)

        assert await api.fetch_page("p1", "tok") == {"id": "p1"}
        transport.request.assert_awaited_once_with(
            "GET", "/api/integrations/fetchPage", params={"token": "tok", "pageId": "p1"},
        )

    async def test_fetch_page_without_page(self):
        api = AsyncPageSourceAPI(make_transport({"error": "x"}))
        assert await api.fetch_page("p1", "tok") == {}


class TestPageTitle:
    def test_plain_text(self):
        page = {"properties": {"title": {"title": [{"plain_text": "Meeting notes"}, {"plain_text": "!"}]}}}
        assert page_title(page, "New page") == "Meeting notes"

    def test_defaults(self):
        assert page_title({}, "New page") == "New page"
        assert page_title({"properties": {"title": {"title": []}}}, "New page") == "New page"
        assert page_title({"properties": {"title": {"title": [{"plain_text": ""}]}}}, "D") == "D"
        assert page_title({"properties": None}, "D") == "D"
