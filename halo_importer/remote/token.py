"""Access token value type."""

from __future__ import annotations

import dataclasses
import datetime as dt

_DEFAULT_SCHEME = "Bearer"


def utcnow() -> dt.datetime:
    """Return the current aware UTC time, the default token clock."""
    return dt.datetime.now(dt.UTC)


@dataclasses.dataclass(frozen=True, slots=True)
class AuthToken:
    """Bearer credential issued by the Halo identity endpoint.

    Tokens are replaced on refresh rather than mutated, and never persisted
    across runs.
    """

    value: str
    scheme: str
    expires_at: dt.datetime

    @classmethod
    def issued(
        cls,
        value: str,
        scheme: str,
        expires_in: float,
        *,
        now: dt.datetime,
    ) -> AuthToken:
        """Build a token from an identity response received at ``now``."""
        return cls(
            value=value,
            scheme=scheme.strip() or _DEFAULT_SCHEME,
            expires_at=now + dt.timedelta(seconds=expires_in),
        )

    @property
    def header_value(self) -> str:
        """Return the ``Authorization`` header value for this token."""
        return f"{self.scheme} {self.value}"

    def is_expired(self, now: dt.datetime, *, margin: dt.timedelta) -> bool:
        """Return True once ``now`` is within ``margin`` of the expiry instant."""
        return now >= self.expires_at - margin

    def __repr__(self) -> str:
        """Describe the token without leaking its value."""
        return (
            f"AuthToken(scheme={self.scheme!r}, "
            f"expires_at={self.expires_at.isoformat()!r})"
        )
