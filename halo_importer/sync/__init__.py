"""Import run orchestration: classification, progress and summaries."""

from __future__ import annotations

from .discovery import discover_files
from .observability import SyncEventLogger, SyncEventType
from .orchestrator import (
    FileResult,
    OutcomeKind,
    OutcomeReason,
    RowOutcome,
    SyncOrchestrator,
)
from .progress import ProgressSnapshot, ProgressTracker
from .runner import ImportRunner
from .summary import ImportSummary, format_number, log_summary

__all__ = [
    "FileResult",
    "ImportRunner",
    "ImportSummary",
    "OutcomeKind",
    "OutcomeReason",
    "ProgressSnapshot",
    "ProgressTracker",
    "RowOutcome",
    "SyncEventLogger",
    "SyncEventType",
    "SyncOrchestrator",
    "discover_files",
    "format_number",
    "log_summary",
]
