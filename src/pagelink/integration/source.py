"""The compatibility-checked fetch path for remote pages.

Linking, refreshing and manual sync all obtain remote content through
:meth:`PageSource.fetch`, so the nested-content check can never be
skipped.
"""

from __future__ import annotations

from typing import Any

from pagelink.config import PageLinkConfig
from pagelink.errors import PageLinkContentFetchError, PageLinkError
from pagelink.models import FetchResult, IntegrationCredential
from pagelink.observability import NoopMetricsHook, get_logger
from pagelink.observability.metrics import NESTED_REJECTIONS_TOTAL
from pagelink.remote_api.pages import AsyncPageSourceAPI, page_title
from pagelink.sync.compat import has_unsupported_nesting

log = get_logger("pagelink.source")


class PageSource:
    """Fetch remote pages and flag unsupported nesting.

    Parameters
    ----------
    api:
        Provider proxy endpoints.
    config:
        Supplies the default page title and the metrics hook.
    """

    def __init__(self, api: AsyncPageSourceAPI, config: PageLinkConfig) -> None:
        self._api = api
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    async def list_pages(self, token: str) -> list[dict[str, Any]]:
        """Return the raw provider page objects visible to *token*."""
        return await self._api.fetch_pages(token)

    async def fetch(
        self,
        resource_id: str,
        credential: IntegrationCredential,
        current_title: str | None = None,
    ) -> FetchResult:
        """Fetch the blocks and title of *resource_id*.

        Parameters
        ----------
        resource_id:
            Provider page id.
        credential:
            Credential whose token authorizes the fetch.
        current_title:
            Title to fall back on when the title lookup fails.

        Raises
        ------
        PageLinkContentFetchError
            If the proxy did not return a block list.
        PageLinkError
            Any transport error from the block fetch.
        """
        envelope = await self._api.fetch_page_blocks(resource_id, credential.token)
        data = envelope.get("data")
        if not envelope.get("ok") or not isinstance(data, list):
            raise PageLinkContentFetchError(
                message=f"No block data returned for page {resource_id}",
                context={"resource_id": resource_id, "error": envelope.get("error")},
            )

        title = await self._fetch_title(resource_id, credential, current_title)
        nested = has_unsupported_nesting(data)
        if nested:
            self._metrics.increment(
                NESTED_REJECTIONS_TOTAL,
                tags={"provider": credential.provider_type},
            )
        log.debug(
            "Fetched remote page",
            extra={"extra_fields": {
                "op": "fetch",
                "resource_id": resource_id,
                "block_count": len(data),
                "has_nested_pages": nested,
            }},
        )
        return FetchResult(blocks=data, title=title, has_nested_pages=nested)

    async def _fetch_title(
        self,
        resource_id: str,
        credential: IntegrationCredential,
        current_title: str | None,
    ) -> str | None:
        try:
            page = await self._api.fetch_page(resource_id, credential.token)
        except PageLinkError as exc:
            log.warning(
                "Title lookup failed, keeping current title",
                extra={"extra_fields": {
                    "op": "fetch_title",
                    "resource_id": resource_id,
                    "error_code": exc.code,
                }},
            )
            return current_title
        if not page:
            return current_title
        return page_title(page, self._config.default_page_title)
