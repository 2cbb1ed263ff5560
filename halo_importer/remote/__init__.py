"""Clients for the Halo identity, report and actions endpoints."""

from __future__ import annotations

from .actions import ActionSubmitter
from .auth import TokenLifecycleManager
from .errors import (
    AuthenticationError,
    AuthExpiredError,
    EmptyReportError,
    ProtocolError,
    RemoteError,
    RemoteRejectionError,
    TransientRemoteError,
    TransportError,
)
from .observability import RemoteEventLogger, RemoteEventType
from .reports import IdentifierReconciler
from .token import AuthToken

__all__ = [
    "ActionSubmitter",
    "AuthExpiredError",
    "AuthToken",
    "AuthenticationError",
    "EmptyReportError",
    "IdentifierReconciler",
    "ProtocolError",
    "RemoteError",
    "RemoteEventLogger",
    "RemoteEventType",
    "RemoteRejectionError",
    "TokenLifecycleManager",
    "TransientRemoteError",
    "TransportError",
]
