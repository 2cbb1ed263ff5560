"""Errors raised while talking to the Halo API."""

from __future__ import annotations

import typing as typ

from halo_importer.errors import ImporterError

# Body preview length for error messages
_BODY_PREVIEW_LIMIT = 200


def body_preview(body: str) -> str:
    """Return ``body`` truncated for inclusion in an error message."""
    text = body.strip()
    if len(text) > _BODY_PREVIEW_LIMIT:
        return text[:_BODY_PREVIEW_LIMIT] + "..."
    return text


class RemoteError(ImporterError):
    """Base class for failures of a Halo API call.

    Attributes
    ----------
    resource
        URL of the resource that failed.
    status_code
        HTTP status code, when a response was received.
    body
        Truncated response body, when a response was received.

    """

    def __init__(
        self,
        message: str,
        *,
        resource: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        """Initialise with the failing resource and optional response context."""
        self.resource = resource
        self.status_code = status_code
        self.body = body
        super().__init__(message)

    @classmethod
    def _from_response(
        cls, prefix: str, resource: str, status_code: int, body: str
    ) -> typ.Self:
        preview = body_preview(body)
        message = f"{prefix} ({resource}): status {status_code}, error: {preview}"
        return cls(message, resource=resource, status_code=status_code, body=preview)


class AuthenticationError(RemoteError):
    """Raised when Halo rejects the configured client credentials."""

    @classmethod
    def invalid_credentials(
        cls, resource: str, status_code: int, body: str
    ) -> AuthenticationError:
        """Return an error for a rejected client-credentials exchange."""
        return cls._from_response(
            "Authentication failed: invalid credentials", resource, status_code, body
        )

    @classmethod
    def oauth_error(
        cls, resource: str, status_code: int, error: str, description: str
    ) -> AuthenticationError:
        """Return an error for an OAuth ``error`` response body."""
        message = f"Authentication error ({resource}): {error}: {description}"
        return cls(message, resource=resource, status_code=status_code)


class AuthExpiredError(AuthenticationError):
    """Raised when a request is still unauthorized after a token refresh."""

    @classmethod
    def repeated(cls, resource: str, body: str) -> AuthExpiredError:
        """Return an error for a second consecutive 401 response."""
        preview = body_preview(body)
        message = (
            f"Request to {resource} still unauthorized after token refresh: {preview}"
        )
        return cls(message, resource=resource, status_code=401, body=preview)


class TransientRemoteError(RemoteError):
    """Raised when a gateway-class failure persists past the retry limit."""

    @classmethod
    def retries_exhausted(
        cls, resource: str, status_code: int, attempts: int
    ) -> TransientRemoteError:
        """Return an error once the gateway retry budget is spent."""
        message = (
            f"Gateway failure for {resource} persisted after {attempts} attempts "
            f"(last status {status_code})"
        )
        return cls(message, resource=resource, status_code=status_code)


class RemoteRejectionError(RemoteError):
    """Raised for any non-success status that is not retried."""

    @classmethod
    def http_error(
        cls, resource: str, status_code: int, body: str
    ) -> RemoteRejectionError:
        """Return an error carrying the status code and body excerpt."""
        return cls._from_response("Request failed", resource, status_code, body)


class EmptyReportError(RemoteError):
    """Raised when a report resource returns no rows."""

    @classmethod
    def for_resource(cls, resource: str) -> EmptyReportError:
        """Return an error for an empty report response."""
        return cls(f"Report response is empty: {resource}", resource=resource)


class ProtocolError(RemoteError):
    """Raised when a response body cannot be parsed into the expected shape."""

    @classmethod
    def invalid_body(cls, resource: str, detail: str, body: str) -> ProtocolError:
        """Return an error for a malformed response body."""
        preview = body_preview(body)
        message = f"Unexpected response from {resource}: {detail} (body: {preview})"
        return cls(message, resource=resource, body=preview)


class TransportError(RemoteError):
    """Raised when a request fails before a response is received."""

    @classmethod
    def request_failed(cls, resource: str, detail: str) -> TransportError:
        """Return an error for network, TLS or timeout failures."""
        return cls(f"Request to {resource} failed: {detail}", resource=resource)


__all__ = [
    "AuthExpiredError",
    "AuthenticationError",
    "EmptyReportError",
    "ProtocolError",
    "RemoteError",
    "RemoteRejectionError",
    "TransientRemoteError",
    "TransportError",
    "body_preview",
]
