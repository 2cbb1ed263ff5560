"""Submit action records to the Halo actions endpoint."""

from __future__ import annotations

import asyncio
import typing as typ

import httpx
import msgspec

from halo_importer.logging import get_logger, log_debug
from halo_importer.remote.errors import (
    AuthExpiredError,
    RemoteRejectionError,
    TransportError,
)
from halo_importer.remote.observability import RemoteEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from halo_importer.config import ImporterConfig
    from halo_importer.records.models import ActionRecord
    from halo_importer.remote.auth import TokenLifecycleManager
    from halo_importer.remote.token import AuthToken

logger = get_logger(__name__)

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_UNAUTHORIZED = 401


class ActionSubmitter:
    """Post one action record at a time, throttled by a fixed delay.

    Parameters
    ----------
    config
        Importer configuration providing the actions endpoint, the custom
        field identifier and the submission delay.
    tokens
        Token manager used to authorise every request.
    http_client
        Optional shared client. When omitted, the submitter creates and owns
        its own client.
    sleep
        Awaitable used for the pre-submission delay.
    event_logger
        Optional structured event logger.

    """

    def __init__(  # noqa: PLR0913
        self,
        config: ImporterConfig,
        tokens: TokenLifecycleManager,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: cabc.Callable[[float], cabc.Awaitable[None]] = asyncio.sleep,
        event_logger: RemoteEventLogger | None = None,
    ) -> None:
        """Initialise the submitter."""
        self._config = config
        self._tokens = tokens
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._sleep = sleep
        self._events = event_logger or RemoteEventLogger()

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def submit(self, record: ActionRecord) -> None:
        """Create ``record`` as a Halo action.

        Raises
        ------
        AuthExpiredError
            If the request is still unauthorized after a token refresh.
        RemoteRejectionError
            If Halo answers with any other non-success status.
        TransportError
            If the request fails before a response is received.

        """
        await self._sleep(self._config.submit_delay_s)
        body = msgspec.json.encode(
            [record.to_wire(self._config.action_id_custom_field_id)]
        )
        resource = str(self._config.actions_url)

        token = await self._tokens.get_valid_token()
        response = await self._post(body, token)
        if response.status_code == _HTTP_UNAUTHORIZED:
            self._events.log_auth_retry(resource=resource)
            token = await self._tokens.refresh(token)
            response = await self._post(body, token)
            if response.status_code == _HTTP_UNAUTHORIZED:
                raise AuthExpiredError.repeated(resource, response.text)

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise RemoteRejectionError.http_error(
                resource, response.status_code, response.text
            )
        log_debug(logger, "Submitted action %s", record.action_id)

    async def _post(self, body: bytes, token: AuthToken) -> httpx.Response:
        try:
            return await self._client.post(
                self._config.actions_url,
                content=body,
                headers={
                    "Authorization": token.header_value,
                    "Content-Type": "application/json; charset=utf-8",
                },
            )
        except httpx.RequestError as exc:
            raise TransportError.request_failed(
                str(self._config.actions_url), str(exc)
            ) from exc
