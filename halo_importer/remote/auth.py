"""OAuth2 client-credentials token lifecycle for the Halo API."""

from __future__ import annotations

import asyncio
import datetime as dt
import typing as typ

import httpx
import msgspec

from halo_importer.remote.errors import (
    AuthenticationError,
    ProtocolError,
    RemoteRejectionError,
    TransportError,
)
from halo_importer.remote.observability import RemoteEventLogger
from halo_importer.remote.token import AuthToken, utcnow

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from halo_importer.config import ImporterConfig

_HTTP_ERROR_STATUS_THRESHOLD = 400
_CREDENTIAL_REJECTION_STATUSES = frozenset({400, 401, 403})


class TokenResponse(msgspec.Struct, kw_only=True):
    """Successful response from the identity endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: float


class OAuthErrorResponse(msgspec.Struct, kw_only=True):
    """OAuth ``error`` body returned for a refused exchange."""

    error: str
    error_description: str = ""


class TokenLifecycleManager:
    """Own the current access token and replace it when it goes stale.

    A single :class:`asyncio.Lock` guards both the validity check and the
    fetch-and-install step, so concurrent callers on an expired token queue
    behind one request to the identity endpoint and all observe its result.

    Parameters
    ----------
    config
        Importer configuration providing credentials, the token endpoint and
        the safety margin.
    http_client
        Optional shared client. When omitted, the manager creates and owns
        its own client.
    clock
        Callable returning the current aware UTC time.
    event_logger
        Optional structured event logger.

    """

    def __init__(
        self,
        config: ImporterConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
        event_logger: RemoteEventLogger | None = None,
    ) -> None:
        """Initialise the manager without fetching a token."""
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._clock = clock
        self._events = event_logger or RemoteEventLogger()
        self._margin = dt.timedelta(seconds=config.token_safety_margin_s)
        self._lock = asyncio.Lock()
        self._token: AuthToken | None = None

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get_valid_token(self) -> AuthToken:
        """Return the held token while valid, otherwise fetch a new one.

        Raises
        ------
        AuthenticationError
            If the identity endpoint rejects the client credentials.
        ProtocolError
            If the identity response cannot be decoded.
        TransportError
            If the request fails before a response is received.
        RemoteRejectionError
            For any other non-success status.

        """
        async with self._lock:
            token = self._token
            if token is not None and not token.is_expired(
                self._clock(), margin=self._margin
            ):
                return token
            return await self._fetch_and_install()

    async def refresh(self, stale: AuthToken | None) -> AuthToken:
        """Force a new token after ``stale`` was refused by the API.

        When another caller has already replaced ``stale`` with a token that
        is still valid, that token is returned without another fetch.
        """
        async with self._lock:
            token = self._token
            if (
                token is not None
                and token is not stale
                and not token.is_expired(self._clock(), margin=self._margin)
            ):
                return token
            return await self._fetch_and_install()

    async def _fetch_and_install(self) -> AuthToken:
        token = await self._fetch()
        self._token = token
        self._events.log_token_acquired(
            scheme=token.scheme, expires_at=token.expires_at
        )
        return token

    async def _fetch(self) -> AuthToken:
        resource = str(self._config.token_url)
        form = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "grant_type": "client_credentials",
            "scope": "all",
        }
        try:
            response = await self._client.post(
                self._config.token_url,
                data=form,
                headers={"Accept": "application/json"},
            )
        except httpx.RequestError as exc:
            raise TransportError.request_failed(resource, str(exc)) from exc

        received_at = self._clock()
        body = response.text
        status_code = response.status_code

        oauth_error = _decode_oauth_error(response.content)
        if oauth_error is not None:
            raise AuthenticationError.oauth_error(
                resource, status_code, oauth_error.error, oauth_error.error_description
            )
        if status_code in _CREDENTIAL_REJECTION_STATUSES:
            raise AuthenticationError.invalid_credentials(resource, status_code, body)
        if status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise RemoteRejectionError.http_error(resource, status_code, body)

        try:
            payload = msgspec.json.decode(response.content, type=TokenResponse)
        except msgspec.DecodeError as exc:
            raise ProtocolError.invalid_body(resource, str(exc), body) from exc

        return AuthToken.issued(
            payload.access_token,
            payload.token_type,
            payload.expires_in,
            now=received_at,
        )


def _decode_oauth_error(content: bytes) -> OAuthErrorResponse | None:
    """Return the OAuth error body, or ``None`` when ``content`` is not one."""
    try:
        return msgspec.json.decode(content, type=OAuthErrorResponse)
    except msgspec.DecodeError:
        return None
