"""End-to-end import run over a list of input files."""

from __future__ import annotations

import asyncio
import time
import typing as typ

import httpx

from halo_importer.errors import NoInputFilesError
from halo_importer.logging import get_logger, log_info
from halo_importer.records.errors import SourceReadError, UnsupportedSourceError
from halo_importer.records.sources import open_record_source
from halo_importer.remote.actions import ActionSubmitter
from halo_importer.remote.auth import TokenLifecycleManager
from halo_importer.remote.reports import IdentifierReconciler
from halo_importer.remote.token import utcnow
from halo_importer.sync.observability import SyncEventLogger
from halo_importer.sync.orchestrator import SyncOrchestrator
from halo_importer.sync.summary import ImportSummary, format_number, log_summary

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt
    from pathlib import Path

    from halo_importer.config import ImporterConfig
    from halo_importer.records.sources import RecordSource
    from halo_importer.sync.orchestrator import FileResult

logger = get_logger(__name__)


class ImportRunner:
    """Authenticate, reconcile and import a sequence of files.

    One :class:`httpx.AsyncClient` is shared by the token manager, the
    reconciler and the submitter. The runner closes it in :meth:`aclose`
    only when it created the client itself.

    Parameters
    ----------
    config
        Importer configuration.
    parse_only
        When True, records are classified but never submitted.
    http_client
        Optional shared HTTP client, mainly for tests.
    sleep
        Awaitable used for gateway cooldowns and submission delays.
    token_clock
        Callable returning the current aware UTC time for token expiry.
    clock
        Monotonic clock used for run and file timings.
    open_source
        Callable that opens an input file as a record source.

    """

    def __init__(  # noqa: PLR0913
        self,
        config: ImporterConfig,
        *,
        parse_only: bool = False,
        http_client: httpx.AsyncClient | None = None,
        sleep: cabc.Callable[[float], cabc.Awaitable[None]] = asyncio.sleep,
        token_clock: cabc.Callable[[], dt.datetime] = utcnow,
        clock: cabc.Callable[[], float] = time.monotonic,
        open_source: cabc.Callable[[Path], RecordSource] = open_record_source,
    ) -> None:
        """Initialise the runner and its remote components."""
        self._config = config
        self._parse_only = parse_only
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._clock = clock
        self._open_source = open_source
        self._events = SyncEventLogger()
        self._tokens = TokenLifecycleManager(
            config, http_client=self._client, clock=token_clock
        )
        self._reconciler = IdentifierReconciler(
            config, self._tokens, http_client=self._client, sleep=sleep
        )
        self._submitter = ActionSubmitter(
            config, self._tokens, http_client=self._client, sleep=sleep
        )

    async def aclose(self) -> None:
        """Close the shared HTTP client when the runner owns it."""
        if self._owns_client:
            await self._client.aclose()

    async def run(self, files: typ.Sequence[tuple[Path, str]]) -> ImportSummary:
        """Import ``files`` in order and return the run summary.

        Parameters
        ----------
        files
            ``(path, display_name)`` pairs, as returned by
            :func:`~halo_importer.sync.discovery.discover_files`.

        Raises
        ------
        NoInputFilesError
            If ``files`` is empty; no request is made.
        RemoteError
            If authentication or reconciliation fails, before any submission.

        """
        if not files:
            raise NoInputFilesError

        started = self._clock()
        if self._parse_only:
            log_info(logger, "Parse-only mode: no actions will be submitted")

        await self._tokens.get_valid_token()
        log_info(logger, "Authentication successful")

        existing_ids = await self._reconciler.fetch_existing_ids()
        log_info(
            logger,
            "Found %s existing action IDs to skip",
            format_number(len(existing_ids)),
        )

        orchestrator = SyncOrchestrator(
            existing_ids,
            None if self._parse_only else self._submitter,
            event_logger=self._events,
            clock=self._clock,
        )
        results: list[FileResult] = []
        skipped_files: list[str] = []
        total_files = len(files)
        for position, (path, name) in enumerate(files, start=1):
            try:
                source = self._open_source(path)
                result = await orchestrator.process_source(
                    source, position=position, total_files=total_files
                )
            except (SourceReadError, UnsupportedSourceError) as exc:
                self._events.log_file_failed(file_name=name, error=exc)
                skipped_files.append(f"{name}: {exc}")
                continue
            results.append(result)

        summary = ImportSummary.from_results(
            results,
            skipped_files=skipped_files,
            total_runtime_s=self._clock() - started,
            parse_only=self._parse_only,
        )
        self._events.log_run_completed(summary)
        log_summary(summary)
        return summary
