"""Structured log events for Halo API interactions.

Events are emitted as ``[event.type] key=value`` lines through femtologging
so that token lifecycle and reconciliation progress can be traced from the
console output alone. Token values are never logged.
"""

from __future__ import annotations

import enum
import typing as typ

from halo_importer.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

logger = get_logger(__name__)


class RemoteEventType(enum.StrEnum):
    """Structured log event types for Halo API calls."""

    TOKEN_ACQUIRED = "remote.auth.token_acquired"
    AUTH_RETRY = "remote.auth.retry"
    RESOURCE_COMPLETED = "remote.reconcile.resource_completed"
    GATEWAY_BACKOFF = "remote.reconcile.gateway_backoff"


class RemoteEventLogger:
    """Emit structured remote events via femtologging."""

    def log_token_acquired(self, *, scheme: str, expires_at: dt.datetime) -> None:
        """Log a freshly issued token's scheme and expiry."""
        log_info(
            logger,
            "[%s] scheme=%s expires_at=%s",
            RemoteEventType.TOKEN_ACQUIRED,
            scheme,
            expires_at.isoformat(),
        )

    def log_auth_retry(self, *, resource: str) -> None:
        """Log a 401 response that triggers a forced token refresh."""
        log_warning(
            logger,
            "[%s] resource=%s reason=unauthorized",
            RemoteEventType.AUTH_RETRY,
            resource,
        )

    def log_resource_completed(
        self, *, resource: str, identifiers: int, running_total: int
    ) -> None:
        """Log a report resource that was read successfully.

        Parameters
        ----------
        resource
            URL of the report resource.
        identifiers
            Number of identifiers read from this resource.
        running_total
            Size of the accumulated identifier set after this resource.

        """
        log_info(
            logger,
            "[%s] resource=%s identifiers=%d running_total=%d",
            RemoteEventType.RESOURCE_COMPLETED,
            resource,
            identifiers,
            running_total,
        )

    def log_gateway_backoff(
        self,
        *,
        resource: str,
        status_code: int,
        attempt: int,
        cooldown_s: float,
    ) -> None:
        """Log a gateway-class failure before the cooldown wait."""
        log_warning(
            logger,
            "[%s] resource=%s status_code=%d attempt=%d cooldown_seconds=%.1f",
            RemoteEventType.GATEWAY_BACKOFF,
            resource,
            status_code,
            attempt,
            cooldown_s,
        )
