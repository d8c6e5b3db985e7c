"""Page endpoints of the provider proxy.

The application server proxies the provider's API so the browser never
talks to it directly.  :class:`AsyncPageSourceAPI` wraps the three proxy
routes used for linking:

* ``GET  /api/integrations/fetchPages``      -- list shared pages
* ``POST /api/integrations/fetchPageBlocks`` -- fetch a page's block tree
* ``GET  /api/integrations/fetchPage``       -- fetch page metadata (title)
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncRemoteTransport


class AsyncPageSourceAPI:
    """Async wrapper for the provider proxy routes.

    Parameters
    ----------
    transport:
        An :class:`AsyncRemoteTransport` bound to the application URL.
    """

    def __init__(self, transport: AsyncRemoteTransport) -> None:
        self._transport = transport

    async def fetch_pages(self, token: str) -> list[dict[str, Any]]:
        """List the pages the access token has been granted.

        Returns
        -------
        list[dict]
            Raw provider page objects (``{"pages": [...]}`` unwrapped).
        """
        result = await self._transport.request(
            "GET", "/api/integrations/fetchPages", params={"token": token},
        )
        if not isinstance(result, dict):
            return []
        pages = result.get("pages") or []
        return [page for page in pages if isinstance(page, dict)]

    async def fetch_page_blocks(self, page_id: str, token: str) -> dict[str, Any]:
        """Fetch the block tree of *page_id*.

        Returns
        -------
        dict
            The proxy envelope, ``{"ok": true, "data": [...blocks]}`` on
            success.
        """
        result = await self._transport.request(
            "POST",
            "/api/integrations/fetchPageBlocks",
            json={"pageId": page_id, "token": token},
        )
        return result if isinstance(result, dict) else {}

    async def fetch_page(self, page_id: str, token: str) -> dict[str, Any]:
        """Fetch the page object of *page_id* (``{"page": {...}}`` unwrapped)."""
        result = await self._transport.request(
            "GET",
            "/api/integrations/fetchPage",
            params={"token": token, "pageId": page_id},
        )
        if not isinstance(result, dict):
            return {}
        page = result.get("page")
        return page if isinstance(page, dict) else {}


def page_title(page: dict[str, Any], default: str) -> str:
    """Extract the plain-text title of a provider page object.

    Reads ``properties.title.title[0].plain_text``; returns *default* when
    any step is missing or the text is empty.
    """
    properties = page.get("properties")
    if not isinstance(properties, dict):
        return default
    title_prop = properties.get("title")
    if not isinstance(title_prop, dict):
        return default
    segments = title_prop.get("title")
    if not isinstance(segments, list) or not segments:
        return default
    first = segments[0]
    if not isinstance(first, dict):
        return default
    text = first.get("plain_text")
    return text if isinstance(text, str) and text else default
