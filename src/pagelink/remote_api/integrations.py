"""Credential endpoints of the backend.

:class:`AsyncIntegrationAPI` is a thin wrapper around the backend's
``/integrations/`` resource.  All HTTP concerns (retries, pacing, error
mapping) live in the underlying transport.
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncRemoteTransport


class AsyncIntegrationAPI:
    """Async wrapper for the backend integrations resource.

    Parameters
    ----------
    transport:
        An :class:`AsyncRemoteTransport` bound to the backend URL.
    """

    def __init__(self, transport: AsyncRemoteTransport) -> None:
        self._transport = transport

    async def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        """Return every integration record stored for *user_id*.

        Each record carries ``id``, ``integration_type`` and
        ``access_token``.  A non-list body is treated as no records.
        """
        result = await self._transport.request(
            "GET", "/integrations/", params={"user_id": user_id},
        )
        if not isinstance(result, list):
            return []
        return [item for item in result if isinstance(item, dict)]

    async def retrieve(self, integration_id: str) -> dict[str, Any]:
        """Return a single integration record by its backend id."""
        result = await self._transport.request("GET", f"/integrations/{integration_id}")
        return result if isinstance(result, dict) else {}

    async def create(
        self,
        user_id: str,
        integration_type: str,
        access_token: str,
    ) -> dict[str, Any] | None:
        """Store a freshly exchanged access token for *user_id*.

        Returns
        -------
        dict or None
            The created record, when the backend echoes one.
        """
        body = {
            "user_id": user_id,
            "integration_type": integration_type,
            "access_token": access_token,
        }
        result = await self._transport.request("POST", "/integrations/", json=body)
        return result if isinstance(result, dict) else None

    async def delete(self, user_id: str, integration_type: str) -> None:
        """Remove the stored integration of *integration_type* for *user_id*."""
        await self._transport.request(
            "DELETE",
            "/integrations/",
            json={"user_id": user_id, "integration_type": integration_type},
        )
