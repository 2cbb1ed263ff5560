"""Reconcile action identifiers already present in Halo."""

from __future__ import annotations

import asyncio
import typing as typ

import httpx
import msgspec

from halo_importer.remote.errors import (
    AuthExpiredError,
    EmptyReportError,
    ProtocolError,
    RemoteRejectionError,
    TransientRemoteError,
    TransportError,
)
from halo_importer.remote.observability import RemoteEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from halo_importer.config import ImporterConfig
    from halo_importer.remote.auth import TokenLifecycleManager
    from halo_importer.remote.token import AuthToken

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_UNAUTHORIZED = 401
_GATEWAY_STATUSES = frozenset({502, 503, 504})

_ReportRows = list[dict[str, typ.Any]]


def split_identifiers(raw: str) -> list[str]:
    """Split a comma-delimited identifier list, dropping blank entries."""
    return [part.strip() for part in raw.split(",") if part.strip()]


class IdentifierReconciler:
    """Build the set of action identifiers Halo already holds.

    Each configured report resource returns a JSON array of rows whose
    identifier field is a comma-delimited string. The union across every
    resource is computed once per run and never updated afterwards.

    Parameters
    ----------
    config
        Importer configuration providing report resources, the identifier
        field name and the gateway retry policy.
    tokens
        Token manager used to authorise every request.
    http_client
        Optional shared client. When omitted, the reconciler creates and owns
        its own client.
    sleep
        Awaitable used for gateway cooldowns.
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
        """Initialise the reconciler."""
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

    async def fetch_existing_ids(self) -> frozenset[str]:
        """Return the union of identifiers across all report resources.

        Raises
        ------
        TransientRemoteError
            If a resource keeps failing with a gateway status past the
            configured retry limit.
        AuthExpiredError
            If a resource is still unauthorized after a token refresh.
        RemoteRejectionError
            For any other non-success status.
        EmptyReportError
            If a resource returns an empty body or an empty array.
        ProtocolError
            If a resource returns rows of an unexpected shape.

        """
        known: set[str] = set()
        for resource in self._config.action_ids_resources:
            identifiers = await self._fetch_resource(resource)
            known.update(identifiers)
            self._events.log_resource_completed(
                resource=str(resource),
                identifiers=len(identifiers),
                running_total=len(known),
            )
        return frozenset(known)

    async def _fetch_resource(self, resource: httpx.URL) -> list[str]:
        name = str(resource)
        token = await self._tokens.get_valid_token()
        gateway_failures = 0
        refreshed = False
        while True:
            response = await self._get(resource, token)
            status_code = response.status_code

            if status_code in _GATEWAY_STATUSES:
                gateway_failures += 1
                if gateway_failures > self._config.gateway_retry_limit:
                    raise TransientRemoteError.retries_exhausted(
                        name, status_code, gateway_failures
                    )
                self._events.log_gateway_backoff(
                    resource=name,
                    status_code=status_code,
                    attempt=gateway_failures,
                    cooldown_s=self._config.gateway_cooldown_s,
                )
                await self._sleep(self._config.gateway_cooldown_s)
                token = await self._tokens.get_valid_token()
                continue

            if status_code == _HTTP_UNAUTHORIZED:
                if refreshed:
                    raise AuthExpiredError.repeated(name, response.text)
                refreshed = True
                self._events.log_auth_retry(resource=name)
                token = await self._tokens.refresh(token)
                continue

            if status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
                raise RemoteRejectionError.http_error(name, status_code, response.text)

            return self._parse_report(name, response)

    async def _get(self, resource: httpx.URL, token: AuthToken) -> httpx.Response:
        try:
            return await self._client.get(
                resource,
                headers={
                    "Authorization": token.header_value,
                    "Accept": "application/json",
                },
            )
        except httpx.RequestError as exc:
            raise TransportError.request_failed(str(resource), str(exc)) from exc

    def _parse_report(self, resource: str, response: httpx.Response) -> list[str]:
        content = response.content
        if not content.strip():
            raise EmptyReportError.for_resource(resource)
        try:
            rows = msgspec.json.decode(content, type=_ReportRows)
        except msgspec.DecodeError as exc:
            raise ProtocolError.invalid_body(resource, str(exc), response.text) from exc
        if not rows:
            raise EmptyReportError.for_resource(resource)

        field = self._config.report_id_field
        identifiers: list[str] = []
        for index, row in enumerate(rows):
            raw = row.get(field)
            if not isinstance(raw, str):
                detail = f"row {index} has no string field {field!r}"
                raise ProtocolError.invalid_body(resource, detail, response.text)
            identifiers.extend(split_identifiers(raw))
        return identifiers
