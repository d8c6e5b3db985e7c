"""Per-owner authorization lifecycle for the remote provider.

:class:`ConnectionManager` tracks whether an owner has a stored credential
for the configured provider type and drives the OAuth round trip::

    UNCONNECTED --complete_authorization--> CONNECTING --> CONNECTED
                                                     \\--> ERROR

Every operation fails soft: transport errors are logged and reported as
"not connected", never raised.  Nothing here retries on its own; callers
re-invoke explicitly.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from pagelink.config import PageLinkConfig
from pagelink.errors import (
    PageLinkAuthError,
    PageLinkError,
    PageLinkNotConnectedError,
    PageLinkValidationError,
)
from pagelink.models import ConnectionState, ConnectionStatus, IntegrationCredential
from pagelink.observability import get_logger
from pagelink.remote_api.integrations import AsyncIntegrationAPI

log = get_logger("pagelink.connection")

_CALLBACK_PARAMS = frozenset({"access_token", "error", "error_description"})


class ConnectionManager:
    """Authorization state of one owner for one provider.

    Parameters
    ----------
    api:
        Backend credential endpoints.
    config:
        Supplies the provider type and OAuth settings.
    """

    def __init__(self, api: AsyncIntegrationAPI, config: PageLinkConfig) -> None:
        self._api = api
        self._config = config
        self._state = ConnectionState.UNCONNECTED
        self._credential: IntegrationCredential | None = None
        self._last_error: PageLinkError | None = None

    # ── Properties ──────────────────────────────────────────────────────

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def credential(self) -> IntegrationCredential | None:
        """The current credential, or ``None`` when not connected."""
        return self._credential

    @property
    def last_error(self) -> PageLinkError | None:
        """Why the last authorization exchange failed, if it did."""
        return self._last_error

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._credential is not None

    # ── Lifecycle ───────────────────────────────────────────────────────

    async def check_connection(self, owner_id: str) -> ConnectionStatus:
        """Look up the owner's stored credential for the provider type.

        A failed lookup is reported as not connected.
        """
        try:
            records = await self._api.list_for_user(owner_id)
        except PageLinkError as exc:
            log.warning(
                "Integration lookup failed",
                extra={"extra_fields": {
                    "op": "check_connection",
                    "owner_id": owner_id,
                    "error_code": exc.code,
                }},
            )
            self._set_disconnected()
            return ConnectionStatus(connected=False)

        credential = self._select_credential(records, owner_id)
        if credential is None:
            self._set_disconnected()
            return ConnectionStatus(connected=False)

        self._credential = credential
        self._state = ConnectionState.CONNECTED
        self._last_error = None
        log.debug(
            "Integration found",
            extra={"extra_fields": {
                "op": "check_connection",
                "owner_id": owner_id,
                "integration_id": credential.id,
            }},
        )
        return ConnectionStatus(connected=True, credential=credential)

    async def complete_authorization(
        self,
        callback_token: str,
        owner_id: str,
    ) -> IntegrationCredential | None:
        """Store the token delivered by the OAuth callback.

        Returns the new credential, or ``None`` when the backend rejected
        the exchange (state ``ERROR``, :attr:`last_error` set).
        """
        self._state = ConnectionState.CONNECTING
        try:
            await self._api.create(owner_id, self._config.provider_type, callback_token)
        except PageLinkError as exc:
            log.error(
                "Authorization exchange rejected",
                extra={"extra_fields": {
                    "op": "complete_authorization",
                    "owner_id": owner_id,
                    "error_code": exc.code,
                }},
            )
            self._credential = None
            self._state = ConnectionState.ERROR
            self._last_error = exc
            return None

        status = await self.check_connection(owner_id)
        if not status.connected:
            self._state = ConnectionState.ERROR
            self._last_error = PageLinkNotConnectedError(
                message="Authorization completed but no credential was stored",
                context={"owner_id": owner_id, "provider_type": self._config.provider_type},
            )
            return None

        log.info(
            "Provider connected",
            extra={"extra_fields": {
                "op": "complete_authorization",
                "owner_id": owner_id,
                "provider_type": self._config.provider_type,
            }},
        )
        return status.credential

    def authorization_url(self, return_url: str) -> str:
        """Build the provider consent URL that redirects back to *return_url*.

        Raises
        ------
        PageLinkValidationError
            If no OAuth client id is configured.
        """
        if not self._config.oauth_client_id:
            raise PageLinkValidationError(
                message="oauth_client_id must be configured to start authorization",
                context={"field": "oauth_client_id"},
            )
        params = {
            "owner": "user",
            "client_id": self._config.oauth_client_id,
            "response_type": "code",
            "state": return_url,
        }
        query = "&".join(f"{key}={quote(value, safe='')}" for key, value in params.items())
        return f"{self._config.oauth_authorize_url}?{query}"

    async def consume_callback(self, url: str, owner_id: str) -> str:
        """Complete authorization from a callback URL and return it cleaned.

        ``access_token`` completes the exchange; ``error`` records a
        rejected consent as not connected.  Both parameters are removed
        from the returned URL so reloading it does not repeat the exchange.
        """
        parts = urlsplit(url)
        params = parse_qsl(parts.query, keep_blank_values=True)
        values = dict(params)

        if values.get("error"):
            log.warning(
                "Authorization declined",
                extra={"extra_fields": {
                    "op": "consume_callback",
                    "owner_id": owner_id,
                    "error": values["error"],
                }},
            )
            self._credential = None
            self._state = ConnectionState.ERROR
            self._last_error = PageLinkAuthError(
                message=f"Authorization was declined: {values['error']}",
                context={"error": values["error"]},
            )
        elif values.get("access_token"):
            await self.complete_authorization(values["access_token"], owner_id)

        kept = [(key, value) for key, value in params if key not in _CALLBACK_PARAMS]
        return urlunsplit(parts._replace(query=urlencode(kept)))

    async def disconnect(self, owner_id: str) -> bool:
        """Remove the stored credential for the provider type.

        Returns ``False`` (with :attr:`last_error` set) if the backend
        refused; the local state is left as it was in that case.
        """
        try:
            await self._api.delete(owner_id, self._config.provider_type)
        except PageLinkError as exc:
            log.error(
                "Disconnect failed",
                extra={"extra_fields": {
                    "op": "disconnect",
                    "owner_id": owner_id,
                    "error_code": exc.code,
                }},
            )
            self._last_error = exc
            return False
        self._credential = None
        self._state = ConnectionState.UNCONNECTED
        self._last_error = None
        log.info(
            "Provider disconnected",
            extra={"extra_fields": {"op": "disconnect", "owner_id": owner_id}},
        )
        return True

    async def resolve_credential(self, integration_id: str) -> IntegrationCredential | None:
        """Load the credential a link block refers to by its integration id.

        Lets a viewer refresh a linked document authored by someone else.
        Returns ``None`` when the record is missing or unreadable.
        """
        try:
            record = await self._api.retrieve(integration_id)
        except PageLinkError as exc:
            log.warning(
                "Integration resolve failed",
                extra={"extra_fields": {
                    "op": "resolve_credential",
                    "integration_id": integration_id,
                    "error_code": exc.code,
                }},
            )
            return None
        token = record.get("access_token")
        if not token:
            return None
        return IntegrationCredential(
            id=str(record.get("id", integration_id)),
            owner_id=str(record.get("user_id", "")),
            provider_type=str(record.get("integration_type") or self._config.provider_type),
            token=str(token),
        )

    def mark_revoked(self) -> None:
        """Drop the credential after the provider rejected it."""
        if self._state is not ConnectionState.CONNECTED:
            return
        log.warning(
            "Credential revoked by provider",
            extra={"extra_fields": {
                "op": "mark_revoked",
                "integration_id": self._credential.id if self._credential else None,
            }},
        )
        self._credential = None
        self._state = ConnectionState.UNCONNECTED

    # ── Internals ───────────────────────────────────────────────────────

    def _select_credential(
        self,
        records: list[dict[str, Any]],
        owner_id: str,
    ) -> IntegrationCredential | None:
        for record in records:
            if record.get("integration_type") != self._config.provider_type:
                continue
            token = record.get("access_token")
            if not token:
                continue
            return IntegrationCredential(
                id=str(record.get("id", "")),
                owner_id=owner_id,
                provider_type=self._config.provider_type,
                token=str(token),
            )
        return None

    def _set_disconnected(self) -> None:
        self._credential = None
        if self._state is not ConnectionState.ERROR:
            self._state = ConnectionState.UNCONNECTED
