"""Classify and submit decoded records one at a time.

The orchestrator consumes a :class:`~halo_importer.records.RecordSource`
strictly in order. Each row becomes a :class:`RowOutcome`: skipped when its
identifier is already known remotely, imported once submitted (or, in
parse-only mode, once it would have been), and failed otherwise. Row-level
failures never stop the file; credential rejection and protocol errors from
the identity endpoint propagate and abort the run.
"""

from __future__ import annotations

import dataclasses
import enum
import time
import typing as typ

from halo_importer.records.errors import RowFormatError
from halo_importer.remote.errors import (
    AuthExpiredError,
    RemoteRejectionError,
    TransportError,
)
from halo_importer.sync.observability import SyncEventLogger
from halo_importer.sync.progress import ProgressTracker

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from halo_importer.records.models import ActionRecord
    from halo_importer.records.sources import RecordSource

UNKNOWN_IDENTIFIER = "unknown"


class OutcomeKind(enum.StrEnum):
    """Classification of one input row."""

    SKIPPED = "skipped"
    IMPORTED = "imported"
    FAILED = "failed"


class OutcomeReason(enum.StrEnum):
    """Why a row received its classification."""

    ALREADY_EXISTS = "already_exists"
    DUPLICATE_IN_RUN = "duplicate_in_run"
    SUBMITTED = "submitted"
    PARSE_ONLY = "parse_only"
    ROW_FORMAT = "row_format"
    AUTH_EXPIRED = "auth_expired"
    REMOTE_REJECTED = "remote_rejected"
    TRANSPORT = "transport"


_SUBMISSION_FAILURES: tuple[tuple[type[Exception], OutcomeReason], ...] = (
    (AuthExpiredError, OutcomeReason.AUTH_EXPIRED),
    (RemoteRejectionError, OutcomeReason.REMOTE_REJECTED),
    (TransportError, OutcomeReason.TRANSPORT),
)


@dataclasses.dataclass(frozen=True, slots=True)
class RowOutcome:
    """Result of handling one input row.

    Attributes
    ----------
    kind
        Whether the row was skipped, imported or failed.
    reason
        Detail behind ``kind``.
    identifier
        Action identifier, or ``unknown`` for rows that did not decode.
    message
        Failure description for failed rows.
    duration_s
        Time spent handling the row, including any submission.

    """

    kind: OutcomeKind
    reason: OutcomeReason
    identifier: str
    message: str | None = None
    duration_s: float = 0.0


@dataclasses.dataclass(slots=True)
class FileResult:
    """Counts accumulated while processing one input file."""

    name: str
    processed: int = 0
    imported: int = 0
    skipped: int = 0
    failed: list[tuple[str, str]] = dataclasses.field(default_factory=list)
    duration_s: float = 0.0

    def add(self, outcome: RowOutcome) -> None:
        """Account for one row outcome.

        Rows that failed to decode are recorded as failures but do not count
        as processed.
        """
        if outcome.reason is not OutcomeReason.ROW_FORMAT:
            self.processed += 1
        match outcome.kind:
            case OutcomeKind.SKIPPED:
                self.skipped += 1
            case OutcomeKind.IMPORTED:
                self.imported += 1
            case OutcomeKind.FAILED:
                self.failed.append((outcome.identifier, outcome.message or ""))


class SupportsSubmit(typ.Protocol):
    """Anything that can create an action remotely."""

    async def submit(self, record: ActionRecord) -> None:
        """Create ``record`` remotely, raising on failure."""
        ...


class SyncOrchestrator:
    """Drive records from a source to the action submitter.

    Parameters
    ----------
    existing_ids
        Identifiers already present remotely; fixed for the whole run.
    submitter
        Submitter used for new records. ``None`` selects parse-only mode, in
        which new records are classified as imported without any request.
    event_logger
        Optional structured event logger.
    clock
        Monotonic clock used for row and file timings.

    """

    def __init__(
        self,
        existing_ids: frozenset[str],
        submitter: SupportsSubmit | None,
        *,
        event_logger: SyncEventLogger | None = None,
        clock: cabc.Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise the orchestrator for one run."""
        self._existing_ids = existing_ids
        self._submitter = submitter
        self._events = event_logger or SyncEventLogger()
        self._clock = clock
        self._imported_ids: set[str] = set()

    @property
    def parse_only(self) -> bool:
        """Return True when no submissions are made."""
        return self._submitter is None

    async def iter_outcomes(
        self, source: RecordSource
    ) -> cabc.AsyncIterator[RowOutcome]:
        """Yield one outcome per row of ``source`` in input order."""
        for item in source:
            started = self._clock()
            outcome = await self._handle(source.name, item)
            yield dataclasses.replace(outcome, duration_s=self._clock() - started)

    async def process_source(
        self,
        source: RecordSource,
        *,
        position: int = 1,
        total_files: int = 1,
    ) -> FileResult:
        """Process every row of ``source`` and return the file's counts."""
        started = self._clock()
        result = FileResult(name=source.name)
        self._events.log_file_started(
            file_name=source.name,
            position=position,
            total_files=total_files,
            total_rows=source.total_rows,
        )
        tracker = ProgressTracker(
            file_name=source.name,
            total_rows=source.total_rows,
            position=position,
            total_files=total_files,
            clock=self._clock,
            event_logger=self._events,
        )
        async for outcome in self.iter_outcomes(source):
            result.add(outcome)
            if outcome.reason is not OutcomeReason.ROW_FORMAT:
                tracker.record_row(
                    processed=result.processed,
                    imported=result.imported,
                    skipped=result.skipped,
                    duration_s=outcome.duration_s,
                )
        result.duration_s = self._clock() - started
        self._events.log_file_completed(
            file_name=source.name,
            position=position,
            total_files=total_files,
            processed=result.processed,
            imported=result.imported,
            skipped=result.skipped,
            failed=len(result.failed),
            duration_s=result.duration_s,
        )
        return result

    async def _handle(
        self, file_name: str, item: ActionRecord | RowFormatError
    ) -> RowOutcome:
        if isinstance(item, RowFormatError):
            return self._failed(
                file_name, UNKNOWN_IDENTIFIER, OutcomeReason.ROW_FORMAT, str(item)
            )

        action_id = item.action_id
        skip_reason = None
        if action_id in self._existing_ids:
            skip_reason = OutcomeReason.ALREADY_EXISTS
        elif action_id in self._imported_ids:
            skip_reason = OutcomeReason.DUPLICATE_IN_RUN
        if skip_reason is not None:
            self._events.log_row_skipped(
                file_name=file_name, action_id=action_id, reason=skip_reason
            )
            return RowOutcome(OutcomeKind.SKIPPED, skip_reason, action_id)

        if self._submitter is None:
            reason = OutcomeReason.PARSE_ONLY
        else:
            try:
                await self._submitter.submit(item)
            except (AuthExpiredError, RemoteRejectionError, TransportError) as exc:
                message = f"Failed to import action ID {action_id}: {exc}"
                return self._failed(
                    file_name, action_id, _submission_reason(exc), message
                )
            reason = OutcomeReason.SUBMITTED

        self._imported_ids.add(action_id)
        self._events.log_row_imported(
            file_name=file_name, action_id=action_id, parse_only=self.parse_only
        )
        return RowOutcome(OutcomeKind.IMPORTED, reason, action_id)

    def _failed(
        self,
        file_name: str,
        identifier: str,
        reason: OutcomeReason,
        message: str,
    ) -> RowOutcome:
        self._events.log_row_failed(
            file_name=file_name, identifier=identifier, reason=reason, message=message
        )
        return RowOutcome(OutcomeKind.FAILED, reason, identifier, message)


def _submission_reason(exc: Exception) -> OutcomeReason:
    for exc_type, reason in _SUBMISSION_FAILURES:
        if isinstance(exc, exc_type):
            return reason
    return OutcomeReason.REMOTE_REJECTED
