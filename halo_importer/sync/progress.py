"""Periodic progress reporting while a file is processed."""

from __future__ import annotations

import dataclasses
import time
import typing as typ

from halo_importer.sync.observability import SyncEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_DEFAULT_EVERY_ROWS = 300
_DEFAULT_EVERY_S = 60.0


@dataclasses.dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Progress of one file at the moment it was logged."""

    file_name: str
    position: int
    total_files: int
    processed: int
    total_rows: int | None
    imported: int
    skipped: int
    avg_row_s: float

    @property
    def percent(self) -> float | None:
        """Return percent complete, or ``None`` when the total is unknown."""
        if self.total_rows is None:
            return None
        if self.total_rows == 0:
            return 0.0
        return self.processed / self.total_rows * 100

    @property
    def estimated_remaining_s(self) -> float | None:
        """Return the projected seconds left for this file, when known."""
        if self.total_rows is None:
            return None
        return self.avg_row_s * max(self.total_rows - self.processed, 0)


class ProgressTracker:
    """Decide when to log progress for the file being processed.

    Progress is logged every ``every_rows`` processed rows and whenever
    ``every_s`` seconds have passed since the previous log line.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        file_name: str,
        total_rows: int | None = None,
        position: int = 1,
        total_files: int = 1,
        clock: cabc.Callable[[], float] = time.monotonic,
        event_logger: SyncEventLogger | None = None,
        every_rows: int = _DEFAULT_EVERY_ROWS,
        every_s: float = _DEFAULT_EVERY_S,
    ) -> None:
        """Initialise the tracker and start its interval timer."""
        self._file_name = file_name
        self._total_rows = total_rows
        self._position = position
        self._total_files = total_files
        self._clock = clock
        self._events = event_logger or SyncEventLogger()
        self._every_rows = every_rows
        self._every_s = every_s
        self._last_logged_at = clock()
        self._row_seconds = 0.0
        self._rows_timed = 0

    def record_row(
        self, *, processed: int, imported: int, skipped: int, duration_s: float
    ) -> ProgressSnapshot | None:
        """Account for one processed row and log progress when due.

        Returns
        -------
        ProgressSnapshot | None
            The snapshot that was logged, or ``None`` when no log was due.

        """
        self._row_seconds += duration_s
        self._rows_timed += 1
        now = self._clock()
        due_by_rows = processed > 0 and processed % self._every_rows == 0
        due_by_time = now - self._last_logged_at >= self._every_s
        if not (due_by_rows or due_by_time):
            return None

        snapshot = ProgressSnapshot(
            file_name=self._file_name,
            position=self._position,
            total_files=self._total_files,
            processed=processed,
            total_rows=self._total_rows,
            imported=imported,
            skipped=skipped,
            avg_row_s=self._row_seconds / self._rows_timed,
        )
        self._events.log_progress(snapshot)
        self._last_logged_at = now
        return snapshot
