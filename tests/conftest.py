"""Shared test fixtures for the pagelink test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from pagelink.blocks import build_link_block
from pagelink.config import PageLinkConfig
from pagelink.events import SyncEvent
from pagelink.integration import ConnectionManager, PageCatalog, PageSource
from pagelink.models import FetchResult, IntegrationCredential, LinkedResource


class RecordingListener:
    """Listener that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[SyncEvent] = []

    def handle(self, event: SyncEvent) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list[Any]:
        return [e for e in self.events if isinstance(e, kind)]


def paragraph(text: str, block_id: str | None = None) -> dict[str, Any]:
    """Editor paragraph block with a single text item."""
    block: dict[str, Any] = {
        "type": "paragraph",
        "props": {},
        "content": [{"type": "text", "text": text, "styles": {}}] if text else [],
    }
    if block_id is not None:
        block["id"] = block_id
    return block


def remote_paragraph(text: str, block_id: str = "r1", **annotations: bool) -> dict[str, Any]:
    """Provider paragraph block as returned by the page-blocks endpoint."""
    return {
        "object": "block",
        "id": block_id,
        "type": "paragraph",
        "created_time": "2025-01-01T00:00:00.000Z",
        "last_edited_time": "2025-01-01T00:00:00.000Z",
        "has_children": False,
        "paragraph": {
            "rich_text": [
                {
                    "type": "text",
                    "text": {"content": text, "link": None},
                    "plain_text": text,
                    "annotations": {
                        "bold": annotations.get("bold", False),
                        "italic": annotations.get("italic", False),
                        "strikethrough": False,
                        "underline": False,
                        "code": False,
                        "color": "default",
                    },
                    "href": None,
                }
            ],
        },
    }


def child_database(block_id: str = "db1") -> dict[str, Any]:
    return {
        "object": "block",
        "id": block_id,
        "type": "child_database",
        "child_database": {"title": "Tasks"},
    }


def link_block(
    resource_id: str = "page-1",
    name: str = "Meeting notes",
    content: list[dict[str, Any]] | None = None,
    integration_id: str | None = "7",
) -> dict[str, Any]:
    resource = LinkedResource(
        provider_type="notion",
        resource_id=resource_id,
        resource_name=name,
        integration_id=integration_id,
    )
    return build_link_block(resource, content if content is not None else [])


@pytest.fixture
def config() -> PageLinkConfig:
    """Default test configuration tuned for fast, deterministic tests."""
    return PageLinkConfig(
        oauth_client_id="client-abc-1234",
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
        rate_limit_rps=10_000.0,
    )


@pytest.fixture
def credential() -> IntegrationCredential:
    return IntegrationCredential(
        id="7", owner_id="42", provider_type="notion", token="secret_token_abcd",
    )


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def source() -> MagicMock:
    """PageSource double whose ``fetch`` returns an empty result by default."""
    mock = MagicMock(spec=PageSource)
    mock.fetch = AsyncMock(return_value=FetchResult(blocks=[], title=None))
    mock.list_pages = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def catalog() -> MagicMock:
    mock = MagicMock(spec=PageCatalog)
    mock.title_for.return_value = "Meeting notes"
    return mock


@pytest.fixture
def connection(credential: IntegrationCredential) -> MagicMock:
    mock = MagicMock(spec=ConnectionManager)
    mock.credential = credential
    mock.resolve_credential = AsyncMock(return_value=None)
    return mock
