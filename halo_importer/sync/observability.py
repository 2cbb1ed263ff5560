"""Emit structured observability events for import runs.

``SyncOrchestrator`` and ``ImportRunner`` report row outcomes, per-file
lifecycle and progress through :class:`SyncEventLogger`.

Usage
-----
>>> event_logger = SyncEventLogger()
>>> event_logger.log_row_skipped(file_name="actions.csv", action_id="456")

"""

from __future__ import annotations

import enum
import typing as typ

from halo_importer.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from halo_importer.sync.progress import ProgressSnapshot
    from halo_importer.sync.summary import ImportSummary

logger = get_logger(__name__)


class SyncEventType(enum.StrEnum):
    """Structured log event types for import runs."""

    ROW_SKIPPED = "sync.row.skipped"
    ROW_IMPORTED = "sync.row.imported"
    ROW_FAILED = "sync.row.failed"
    FILE_STARTED = "sync.file.started"
    FILE_COMPLETED = "sync.file.completed"
    FILE_FAILED = "sync.file.failed"
    PROGRESS = "sync.progress"
    RUN_COMPLETED = "sync.run.completed"


def _optional(value: object) -> str:
    return "None" if value is None else str(value)


class SyncEventLogger:
    """Emit structured import events via femtologging."""

    def log_row_skipped(
        self, *, file_name: str, action_id: str, reason: str = "already_exists"
    ) -> None:
        """Log a record that is not submitted because its identifier is known."""
        log_info(
            logger,
            "[%s] file=%s action_id=%s reason=%s",
            SyncEventType.ROW_SKIPPED,
            file_name,
            action_id,
            reason,
        )

    def log_row_imported(
        self, *, file_name: str, action_id: str, parse_only: bool
    ) -> None:
        """Log a record that was submitted, or would be in parse-only mode."""
        log_info(
            logger,
            "[%s] file=%s action_id=%s parse_only=%s",
            SyncEventType.ROW_IMPORTED,
            file_name,
            action_id,
            parse_only,
        )

    def log_row_failed(
        self, *, file_name: str, identifier: str, reason: str, message: str
    ) -> None:
        """Log a row that could not be decoded or submitted.

        Parameters
        ----------
        file_name
            Source file of the row.
        identifier
            Action identifier, or ``unknown`` when the row did not decode.
        reason
            Failure category.
        message
            Human-readable failure description.

        """
        log_error(
            logger,
            "[%s] file=%s action_id=%s reason=%s error_message=%s",
            SyncEventType.ROW_FAILED,
            file_name,
            identifier,
            reason,
            message,
        )

    def log_file_started(
        self,
        *,
        file_name: str,
        position: int,
        total_files: int,
        total_rows: int | None,
    ) -> None:
        """Log the start of one input file."""
        log_info(
            logger,
            "[%s] file=%s position=%d total_files=%d total_rows=%s",
            SyncEventType.FILE_STARTED,
            file_name,
            position,
            total_files,
            _optional(total_rows),
        )

    def log_file_completed(  # noqa: PLR0913
        self,
        *,
        file_name: str,
        position: int,
        total_files: int,
        processed: int,
        imported: int,
        skipped: int,
        failed: int,
        duration_s: float,
    ) -> None:
        """Log the counts and duration of a finished input file."""
        log_info(
            logger,
            "[%s] file=%s position=%d total_files=%d processed=%d imported=%d "
            "skipped=%d failed=%d duration_seconds=%.3f",
            SyncEventType.FILE_COMPLETED,
            file_name,
            position,
            total_files,
            processed,
            imported,
            skipped,
            failed,
            duration_s,
        )

    def log_file_failed(self, *, file_name: str, error: BaseException) -> None:
        """Log an input file that could not be read and was skipped."""
        log_warning(
            logger,
            "[%s] file=%s error_type=%s error_message=%s",
            SyncEventType.FILE_FAILED,
            file_name,
            type(error).__name__,
            str(error),
        )

    def log_progress(self, snapshot: ProgressSnapshot) -> None:
        """Log a periodic progress snapshot for the current file."""
        percent = None if snapshot.percent is None else f"{snapshot.percent:.1f}"
        remaining = (
            None
            if snapshot.estimated_remaining_s is None
            else f"{snapshot.estimated_remaining_s:.1f}"
        )
        log_info(
            logger,
            "[%s] file=%s position=%d total_files=%d processed=%d total_rows=%s "
            "percent=%s imported=%d skipped=%d avg_seconds_per_row=%.2f "
            "estimated_remaining_seconds=%s",
            SyncEventType.PROGRESS,
            snapshot.file_name,
            snapshot.position,
            snapshot.total_files,
            snapshot.processed,
            _optional(snapshot.total_rows),
            _optional(percent),
            snapshot.imported,
            snapshot.skipped,
            snapshot.avg_row_s,
            _optional(remaining),
        )

    def log_run_completed(self, summary: ImportSummary) -> None:
        """Log the totals of a finished run."""
        log_info(
            logger,
            "[%s] processed=%d imported=%d skipped=%d failed=%d "
            "skipped_files=%d parse_only=%s duration_seconds=%.3f",
            SyncEventType.RUN_COMPLETED,
            summary.total_processed,
            summary.total_imported,
            summary.total_skipped,
            summary.total_failed,
            len(summary.skipped_files),
            summary.parse_only,
            summary.total_runtime_s,
        )
