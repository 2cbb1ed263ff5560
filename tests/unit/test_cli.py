"""Unit tests for the halo-importer command-line entry point."""

from __future__ import annotations

import typing as typ

import pytest

from halo_importer import cli
from halo_importer.errors import InputDirectoryError, NoInputFilesError
from halo_importer.sync import ImportSummary
from tests.unit.conftest import capture_module_logger, make_config

if typ.TYPE_CHECKING:
    from pathlib import Path

    from halo_importer.config import ImporterConfig

_ENV_KEYS = (
    "BASE_RESOURCE_URL",
    "CLIENT_ID",
    "CLIENT_SECRET",
    "ACTION_IDS_RESOURCE_PATH",
    "ACTION_ID_CUSTOM_FIELD_ID",
)


class _StaticConfig:
    """Stand-in for ImporterConfig that ignores the environment."""

    @staticmethod
    def from_env() -> ImporterConfig:
        return make_config()


@pytest.fixture
def no_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    """Stop the CLI from reading a developer's .env file."""
    monkeypatch.setattr(cli, "load_dotenv", lambda **_: False)
    monkeypatch.setattr(cli, "configure_logging", lambda level, **_: (level, False))


def test_app_name() -> None:
    """The command is registered under its console-script name."""
    assert "halo-importer" in cli.app.name


@pytest.mark.usefixtures("no_dotenv")
def test_missing_configuration_exits_with_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Missing environment variables yield exit status 1."""
    recorder = capture_module_logger(monkeypatch, "halo_importer.cli")
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    assert cli.run() == 1
    assert recorder.messages("Failed to load configuration")


@pytest.mark.usefixtures("no_dotenv")
class TestRun:
    """Tests for the default command."""

    @pytest.fixture(autouse=True)
    def _config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli, "ImporterConfig", _StaticConfig)

    def test_success_exits_zero(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """A completed run exits 0, even when rows failed."""
        calls: list[tuple[Path, bool]] = []

        async def fake_run_import(
            config: ImporterConfig, input_dir: Path, *, parse_only: bool = False
        ) -> ImportSummary:
            del config
            calls.append((input_dir, parse_only))
            return ImportSummary(total_processed=1, total_failed=1)

        monkeypatch.setattr(cli, "run_import", fake_run_import)

        assert cli.run(input_dir=tmp_path, parse_only=True) == 0
        assert calls == [(tmp_path, True)]

    def test_importer_error_exits_one(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """Errors that abort the run yield exit status 1."""
        recorder = capture_module_logger(monkeypatch, "halo_importer.cli")

        assert cli.run(input_dir=tmp_path / "absent") == 1
        assert recorder.messages("Import failed: Input directory")

    def test_empty_directory_exits_one(self, tmp_path: Path) -> None:
        """A directory without importable files fails before any request."""
        (tmp_path / "readme.txt").write_text("nothing here", encoding="utf-8")

        assert cli.run(input_dir=tmp_path) == 1

    def test_logs_to_run_file(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """Logging is configured with the run log directory."""
        calls: list[tuple[str, object]] = []

        def fake_configure(level: str, **kwargs: object) -> tuple[str, bool]:
            calls.append((level, kwargs.get("log_dir")))
            return (level, False)

        monkeypatch.setattr(cli, "configure_logging", fake_configure)

        cli.run(input_dir=tmp_path / "absent")

        assert calls == [("INFO", cli.LOG_DIR)]

    def test_unwritable_log_directory_exits_one(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """A log directory that cannot be created stops the run."""
        recorder = capture_module_logger(monkeypatch, "halo_importer.cli")

        def fake_configure(level: str, **_: object) -> tuple[str, bool]:
            raise PermissionError(level)

        monkeypatch.setattr(cli, "configure_logging", fake_configure)

        assert cli.run(input_dir=tmp_path) == 1
        assert recorder.messages("Failed to create log file in log")


@pytest.mark.asyncio
async def test_run_import_requires_files(tmp_path: Path) -> None:
    """run_import raises when the directory holds no importable files."""
    with pytest.raises(NoInputFilesError) as excinfo:
        await cli.run_import(make_config(), tmp_path)

    assert excinfo.value.directory == tmp_path


@pytest.mark.asyncio
async def test_run_import_checks_directory(tmp_path: Path) -> None:
    """run_import reports a missing input directory."""
    with pytest.raises(InputDirectoryError):
        await cli.run_import(make_config(), tmp_path / "absent")
