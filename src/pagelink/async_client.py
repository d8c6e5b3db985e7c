"""Asynchronous pagelink client.

:class:`AsyncPageLinkClient` wires the transports, endpoint wrappers and
integration components together and hands out one
:class:`~pagelink.sync.SyncCoordinator` per open document.

Usage::

    import asyncio
    from pagelink import AsyncPageLinkClient, LocalDocument

    async def main():
        async with AsyncPageLinkClient(owner_id="42") as client:
            status = await client.check_connection()
            if status.connected:
                listing = await client.list_pages()
                coordinator = client.coordinator(LocalDocument(), listener=bridge)
                await coordinator.page_selected(listing.pages[0].id)

    asyncio.run(main())
"""

from __future__ import annotations

from typing import Any

from pagelink.config import PageLinkConfig
from pagelink.errors import PageLinkNotConnectedError, PageLinkValidationError
from pagelink.events import SyncListener
from pagelink.integration import ConnectionManager, PageCatalog, PageSource
from pagelink.models import ConnectionStatus, IntegrationCredential, LocalDocument, PageListing
from pagelink.remote_api.integrations import AsyncIntegrationAPI
from pagelink.remote_api.pages import AsyncPageSourceAPI
from pagelink.remote_api.transport import AsyncRemoteTransport
from pagelink.sync import SyncCoordinator


class AsyncPageLinkClient:
    """Asynchronous page-link client for one owner.

    Parameters
    ----------
    owner_id:
        The user whose credential is managed.  Needed for the connection
        lifecycle; viewers that only refresh linked documents may omit it.
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`PageLinkConfig`.
    """

    def __init__(self, owner_id: str | None = None, **kwargs: Any) -> None:
        self._owner_id = owner_id
        self._config = PageLinkConfig(**kwargs)
        self._backend = AsyncRemoteTransport(self._config, self._config.backend_url)
        self._app = AsyncRemoteTransport(self._config, self._config.app_url)
        self._integrations = AsyncIntegrationAPI(self._backend)
        self._pages = AsyncPageSourceAPI(self._app)
        self._connection = ConnectionManager(self._integrations, self._config)
        self._source = PageSource(self._pages, self._config)
        self._catalog = PageCatalog(self._connection, self._source, self._config)
        self._coordinators: list[SyncCoordinator] = []

    @property
    def config(self) -> PageLinkConfig:
        return self._config

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def catalog(self) -> PageCatalog:
        return self._catalog

    @property
    def source(self) -> PageSource:
        return self._source

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def check_connection(self) -> ConnectionStatus:
        """Look up the owner's stored credential."""
        return await self._connection.check_connection(self._require_owner())

    async def complete_authorization(self, callback_token: str) -> IntegrationCredential | None:
        """Store the token delivered by the OAuth callback."""
        return await self._connection.complete_authorization(callback_token, self._require_owner())

    def authorization_url(self, return_url: str) -> str:
        """Build the provider consent URL redirecting back to *return_url*."""
        return self._connection.authorization_url(return_url)

    async def consume_callback(self, url: str) -> str:
        """Finish authorization from a callback URL; returns the cleaned URL."""
        return await self._connection.consume_callback(url, self._require_owner())

    async def disconnect(self) -> bool:
        """Remove the owner's stored credential and forget cached pages."""
        removed = await self._connection.disconnect(self._require_owner())
        if removed:
            self._catalog.invalidate()
        return removed

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_pages(self) -> PageListing:
        """List the remote pages the connected owner can link.

        Raises
        ------
        PageLinkNotConnectedError
            If no credential is loaded; call :meth:`check_connection` first.
        """
        credential = self._connection.credential
        if credential is None:
            raise PageLinkNotConnectedError(
                message="No credential loaded; check the connection first",
                context={"provider_type": self._config.provider_type},
            )
        return await self._catalog.list_pages(credential)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def coordinator(
        self,
        document: LocalDocument,
        listener: SyncListener | None = None,
    ) -> SyncCoordinator:
        """Create the coordinator for one open *document*."""
        coordinator = SyncCoordinator(
            document,
            source=self._source,
            catalog=self._catalog,
            connection=self._connection,
            config=self._config,
            listener=listener,
        )
        self._coordinators.append(coordinator)
        return coordinator

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close open coordinators and both HTTP transports."""
        for coordinator in self._coordinators:
            await coordinator.close()
        self._coordinators.clear()
        await self._backend.close()
        await self._app.close()

    async def __aenter__(self) -> AsyncPageLinkClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _require_owner(self) -> str:
        if not self._owner_id:
            raise PageLinkValidationError(
                message="owner_id is required for connection operations",
                context={"field": "owner_id"},
            )
        return self._owner_id
