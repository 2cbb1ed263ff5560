"""Unit tests for progress tracking and the end-of-run summary."""

from __future__ import annotations

import pytest

from halo_importer.sync import (
    FileResult,
    ImportSummary,
    ProgressSnapshot,
    ProgressTracker,
    format_number,
    log_summary,
)
from tests.unit.conftest import RecordingLogger, capture_module_logger


class ManualClock:
    """Monotonic clock set explicitly by the test."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestProgressTracker:
    """Tests for ProgressTracker.record_row."""

    def test_logs_every_n_rows(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A snapshot is logged when the processed count hits the interval."""
        recorder = capture_module_logger(
            monkeypatch, "halo_importer.sync.observability"
        )
        tracker = ProgressTracker(
            file_name="a.csv", total_rows=10, clock=ManualClock(), every_rows=3
        )

        snapshots = [
            tracker.record_row(processed=n, imported=n, skipped=0, duration_s=0.5)
            for n in range(1, 7)
        ]

        logged = [s for s in snapshots if s is not None]
        assert [s.processed for s in logged] == [3, 6]
        assert len(recorder.messages("sync.progress")) == 2

    def test_logs_after_interval(self) -> None:
        """A snapshot is logged once the time interval has elapsed."""
        clock = ManualClock()
        tracker = ProgressTracker(file_name="a.csv", clock=clock, every_s=60.0)

        first = tracker.record_row(processed=1, imported=1, skipped=0, duration_s=1.0)
        clock.now = 61.0
        snapshot = tracker.record_row(processed=2, imported=1, skipped=1, duration_s=3.0)

        assert first is None

        assert snapshot is not None
        assert snapshot.avg_row_s == 2.0
        assert snapshot.percent is None, "Unknown totals have no percentage."

    def test_snapshot_estimates(self) -> None:
        """Percent and remaining time derive from the running average."""
        snapshot = ProgressSnapshot(
            file_name="a.csv",
            position=1,
            total_files=2,
            processed=25,
            total_rows=100,
            imported=20,
            skipped=5,
            avg_row_s=0.5,
        )

        assert snapshot.percent == 25.0
        assert snapshot.estimated_remaining_s == 37.5


class TestImportSummary:
    """Tests for ImportSummary aggregation."""

    def test_from_results(self) -> None:
        """File results are summed into run totals."""
        first = FileResult(name="a.csv", processed=3, imported=2, skipped=1)
        second = FileResult(
            name="b.xlsx",
            processed=2,
            imported=1,
            failed=[("9", "boom"), ("unknown", "bad row")],
            duration_s=4.0,
        )
        first.duration_s = 2.0

        summary = ImportSummary.from_results(
            [first, second], skipped_files=["c.xls: broken"], total_runtime_s=10.0
        )

        assert summary.total_processed == 5
        assert summary.total_imported == 3
        assert summary.total_skipped == 1
        assert summary.total_failed == 2
        assert summary.failures == (("9", "boom"), ("unknown", "bad row"))
        assert summary.average_file_s == 3.0
        assert not summary.is_clean


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, "0"), (999, "999"), (1234567, "1,234,567")],
)
def test_format_number(value: int, expected: str) -> None:
    """Counts use thousands separators."""
    assert format_number(value) == expected


def test_log_summary_writes_totals_and_stats() -> None:
    """The summary block lists totals followed by performance stats."""
    recorder = RecordingLogger()
    summary = ImportSummary(
        total_processed=1200,
        total_imported=1000,
        total_skipped=200,
        total_runtime_s=60.0,
        file_durations_s=(60.0,),
    )

    log_summary(summary, log=recorder)

    messages = [message for _, message in recorder.calls]
    assert messages[:5] == [
        "=== Import Summary ===",
        "Total actions processed: 1,200",
        "Actions skipped (already exist): 200",
        "Actions successfully imported: 1,000",
        "Actions failed to import: 0",
    ]
    assert "=== Performance Stats ===" in messages
    assert "Entries per minute: 1200.0" in messages
    assert "Time per entry: 0.050s" in messages


def test_log_summary_reports_parse_only_success() -> None:
    """Clean parse-only runs report how many actions parsed."""
    recorder = RecordingLogger()
    summary = ImportSummary(
        total_processed=3, total_imported=2, total_skipped=1, parse_only=True
    )

    log_summary(summary, log=recorder)

    assert recorder.messages("Success: 3/3 actions parsed successfully")


def test_log_summary_omits_stats_when_nothing_processed() -> None:
    """Runs without processed rows print no performance section."""
    recorder = RecordingLogger()

    log_summary(ImportSummary(skipped_files=("a.csv: broken",)), log=recorder)

    assert not recorder.messages("Performance Stats")
    assert ("WARNING", "Files that could not be read: 1") in recorder.calls
