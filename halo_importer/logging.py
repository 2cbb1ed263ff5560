"""femtologging set-up and percent-style log helpers for the importer.

Every run logs to the console and to ``log/<UTC timestamp>.log``. Modules
obtain a logger with :func:`get_logger` and emit through the ``log_*``
helpers, which format the message before handing it to femtologging.
"""

from __future__ import annotations

import datetime as dt
import typing as typ

from femtologging import FemtoFileHandler, basicConfig, get_logger

if typ.TYPE_CHECKING:
    from pathlib import Path

LOG_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "WARN", "WARNING", "ERROR"})
DEFAULT_LOG_LEVEL = "INFO"
LOG_FILE_FORMAT = "%Y-%m-%d_%H-%M-%S.log"
ROOT_LOGGER = "root"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return the upper-cased level and whether ``level`` was unusable.

    Unknown or empty levels fall back to ``INFO``.
    """
    normalized = (level or "").strip().upper()
    if normalized in LOG_LEVELS:
        return (normalized, False)
    return (DEFAULT_LOG_LEVEL, True)


def log_file_path(log_dir: Path, now: dt.datetime | None = None) -> Path:
    """Return the per-run log file path inside ``log_dir``."""
    moment = now or dt.datetime.now(dt.UTC)
    return log_dir / moment.strftime(LOG_FILE_FORMAT)


def configure_logging(
    level: str, *, log_dir: Path | None = None, force: bool = False
) -> tuple[str, bool]:
    """Configure console logging and, when ``log_dir`` is set, a run log file.

    Parameters
    ----------
    level : str
        Raw log level string to normalize.
    log_dir : Path | None, optional
        Directory for the timestamped run log; created when missing.
    force : bool, optional
        Whether to replace any existing handler configuration.

    Returns
    -------
    tuple[str, bool]
        The normalized log level and a flag indicating invalid input.

    Raises
    ------
    OSError
        If the log directory cannot be created.

    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = FemtoFileHandler(str(log_file_path(log_dir)))
        get_logger(ROOT_LOGGER).add_handler(handler)
    return (normalized, invalid)


class SupportsLog(typ.Protocol):
    """Protocol for femtologging-compatible loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _emit(
    logger: SupportsLog, level: str, template: str, args: tuple[object, ...]
) -> None:
    logger.log(level, template % args, stack_info=False)


def log_debug(logger: SupportsLog, template: str, *args: object) -> None:
    """Log a DEBUG message."""
    _emit(logger, "DEBUG", template, args)


def log_info(logger: SupportsLog, template: str, *args: object) -> None:
    """Log an INFO message."""
    _emit(logger, "INFO", template, args)


def log_warning(logger: SupportsLog, template: str, *args: object) -> None:
    """Log a WARNING message."""
    _emit(logger, "WARNING", template, args)


def log_error(logger: SupportsLog, template: str, *args: object) -> None:
    """Log an ERROR message."""
    _emit(logger, "ERROR", template, args)


__all__ = [
    "LOG_LEVELS",
    "SupportsLog",
    "configure_logging",
    "get_logger",
    "log_debug",
    "log_error",
    "log_file_path",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
