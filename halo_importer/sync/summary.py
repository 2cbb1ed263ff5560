"""Run totals and the end-of-run summary block."""

from __future__ import annotations

import dataclasses
import typing as typ

from halo_importer.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    from halo_importer.logging import SupportsLog
    from halo_importer.sync.orchestrator import FileResult

logger = get_logger(__name__)

_SECONDS_PER_MINUTE = 60.0


def format_number(value: int) -> str:
    """Render ``value`` with thousands separators."""
    return f"{value:,}"


@dataclasses.dataclass(frozen=True, slots=True)
class ImportSummary:
    """Totals for one import run.

    Attributes
    ----------
    total_processed
        Records that decoded and were classified.
    total_imported
        Records submitted, or that would be submitted in parse-only mode.
    total_skipped
        Records whose identifier already existed.
    total_failed
        Rows that failed to decode or submit.
    skipped_files
        ``name: reason`` entries for files that could not be read.
    failures
        ``(identifier, message)`` pairs for every failed row.
    file_durations_s
        Processing time of each file that was read.
    total_runtime_s
        Wall-clock duration of the run.
    parse_only
        Whether the run skipped submissions.

    """

    total_processed: int = 0
    total_imported: int = 0
    total_skipped: int = 0
    total_failed: int = 0
    skipped_files: tuple[str, ...] = ()
    failures: tuple[tuple[str, str], ...] = ()
    file_durations_s: tuple[float, ...] = ()
    total_runtime_s: float = 0.0
    parse_only: bool = False

    @classmethod
    def from_results(
        cls,
        results: typ.Sequence[FileResult],
        *,
        skipped_files: typ.Sequence[str] = (),
        total_runtime_s: float = 0.0,
        parse_only: bool = False,
    ) -> ImportSummary:
        """Aggregate per-file results into run totals."""
        failures = tuple(failure for result in results for failure in result.failed)
        return cls(
            total_processed=sum(result.processed for result in results),
            total_imported=sum(result.imported for result in results),
            total_skipped=sum(result.skipped for result in results),
            total_failed=len(failures),
            skipped_files=tuple(skipped_files),
            failures=failures,
            file_durations_s=tuple(result.duration_s for result in results),
            total_runtime_s=total_runtime_s,
            parse_only=parse_only,
        )

    @property
    def average_file_s(self) -> float:
        """Return the mean processing time per file read."""
        if not self.file_durations_s:
            return 0.0
        return sum(self.file_durations_s) / len(self.file_durations_s)

    @property
    def is_clean(self) -> bool:
        """Return True when no row failed and every file was read."""
        return self.total_failed == 0 and not self.skipped_files


def log_summary(summary: ImportSummary, *, log: SupportsLog | None = None) -> None:
    """Write the human-readable summary and performance statistics."""
    target = log or logger
    log_info(target, "=== Import Summary ===")
    log_info(
        target, "Total actions processed: %s", format_number(summary.total_processed)
    )
    log_info(
        target,
        "Actions skipped (already exist): %s",
        format_number(summary.total_skipped),
    )
    log_info(
        target,
        "Actions successfully imported: %s",
        format_number(summary.total_imported),
    )
    log_info(
        target, "Actions failed to import: %s", format_number(summary.total_failed)
    )
    if summary.skipped_files:
        log_warning(
            target,
            "Files that could not be read: %s",
            format_number(len(summary.skipped_files)),
        )
    if summary.parse_only and summary.is_clean:
        log_info(
            target,
            "Success: %s/%s actions parsed successfully",
            format_number(summary.total_imported + summary.total_skipped),
            format_number(summary.total_processed),
        )

    if summary.total_processed == 0:
        return

    runtime = summary.total_runtime_s
    per_minute = (
        summary.total_processed / runtime * _SECONDS_PER_MINUTE if runtime > 0 else 0.0
    )
    log_info(target, "=== Performance Stats ===")
    log_info(
        target,
        "Total runtime: %.2fs (%.2fm)",
        runtime,
        runtime / _SECONDS_PER_MINUTE,
    )
    log_info(target, "Time per entry: %.3fs", runtime / summary.total_processed)
    log_info(target, "Entries per minute: %.1f", per_minute)
    if summary.file_durations_s:
        log_info(target, "Average time per file: %.2fs", summary.average_file_s)
