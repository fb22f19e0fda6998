"""Tests for the vaultctl CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from vaultctl import __version__
from vaultctl.cli.common import ExitCode
from vaultctl.cli.main import cli
from vaultctl.core.config import Config, Profile
from vaultctl.core.exceptions import DepositCancelledError
from vaultctl.models.deposit import DepositStatus


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_client(monkeypatch) -> MagicMock:
    """Configured profile, credentials and a mocked VaultClient."""
    for name in ("VAULT_PROFILE", "VAULT_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VAULT_USER", "user")
    monkeypatch.setenv("VAULT_PASS", "pass")

    config = Config(profiles={"default": Profile(url="https://vault.example.org")})
    monkeypatch.setattr(Config, "load", MagicMock(return_value=config))

    client = MagicMock()
    client.__enter__.return_value = client
    monkeypatch.setattr("vaultctl.cli.common.VaultClient", MagicMock(return_value=client))
    return client


@pytest.fixture
def api(monkeypatch, make_api):
    """Route deposit commands to an in-memory deposit API."""
    fake = make_api()
    monkeypatch.setattr("vaultctl.cli.deposit.DepositService", MagicMock(return_value=fake))
    return fake


# =============================================================================
# Main
# =============================================================================


class TestMain:
    """Tests for the top-level group."""

    def test_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "deposit" in result.output
        assert "health" in result.output

    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_health_ping(self, runner: CliRunner, mock_client: MagicMock):
        mock_client.ping.return_value = {
            "url": "https://vault.example.org",
            "status": "ok",
            "version": "1",
            "latency_ms": 12,
        }

        result = runner.invoke(cli, ["health", "ping", "-o", "json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["version"] == "1"
        mock_client.authenticate.assert_called_once()
        mock_client.check_version.assert_called_once()

    def test_missing_credentials(self, runner: CliRunner, mock_client: MagicMock, monkeypatch):
        monkeypatch.delenv("VAULT_PASS")
        result = runner.invoke(cli, ["health", "ping"])
        assert result.exit_code == ExitCode.AUTH_ERROR


# =============================================================================
# Deposit Upload
# =============================================================================


class TestDepositUpload:
    """Tests for `deposit upload`."""

    def test_uploads_files_and_directories(
        self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path
    ):
        scans = temp_dir / "scans"
        (scans / "sub").mkdir(parents=True)
        (scans / "a.dcm").write_bytes(b"a" * 10)
        (scans / "sub" / "b.dcm").write_bytes(b"b" * 3)
        (temp_dir / "notes.txt").write_text("hello")

        result = runner.invoke(
            cli,
            [
                "deposit",
                "upload",
                str(scans),
                str(temp_dir / "notes.txt"),
                "--collection",
                "/Org/Coll/",
                "--chunk-size",
                "4",
                "--no-progress",
                "-o",
                "json",
            ],
        )

        assert result.exit_code == 0, result.output
        assert api.registered == [("/Org/Coll", ["scans/a.dcm", "scans/sub/b.dcm", "notes.txt"])]
        assert api.assembled("scans/a.dcm") == b"a" * 10
        assert api.total_chunks["scans/a.dcm"] == 3
        output = json.loads(result.output)
        assert output["deposit_id"] == 42
        assert output["succeeded"] == 3

    def test_stdin(self, runner: CliRunner, mock_client: MagicMock, api):
        result = runner.invoke(
            cli,
            ["deposit", "upload", "-", "--name", "dump/data.bin", "-c", "/Org/Coll", "-q"],
            input=b"streamed bytes",
        )

        assert result.exit_code == 0, result.output
        assert api.assembled("dump/data.bin") == b"streamed bytes"
        assert result.output.strip() == "42"

    def test_stdin_requires_name(self, runner: CliRunner, mock_client: MagicMock, api):
        result = runner.invoke(cli, ["deposit", "upload", "-", "-c", "/Org/Coll"], input=b"x")
        assert result.exit_code == 2
        assert "--name" in result.output

    def test_collection_required(self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path):
        (temp_dir / "f").write_text("x")
        result = runner.invoke(cli, ["deposit", "upload", str(temp_dir / "f")])
        assert result.exit_code == 2
        assert api.registered == []

    def test_collection_from_profile(
        self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path
    ):
        Config.load().profiles["default"].collection = "/Org/Default"
        (temp_dir / "f").write_text("x")

        result = runner.invoke(cli, ["deposit", "upload", str(temp_dir / "f"), "--no-progress"])

        assert result.exit_code == 0, result.output
        assert api.registered[0][0] == "/Org/Default"

    def test_duplicate_destination(
        self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path
    ):
        (temp_dir / "f").write_text("x")
        result = runner.invoke(
            cli, ["deposit", "upload", str(temp_dir / "f"), str(temp_dir / "f"), "-c", "/Org/C"]
        )
        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert api.registered == []

    def test_resume(self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path):
        (temp_dir / "done").write_text("x")
        (temp_dir / "todo").write_text("y")
        api.acknowledged = {"done"}
        api.pending = {"todo"}

        result = runner.invoke(
            cli,
            [
                "deposit",
                "upload",
                str(temp_dir / "done"),
                str(temp_dir / "todo"),
                "-c",
                "/Org/C",
                "--resume",
                "7",
                "--no-progress",
            ],
        )

        assert result.exit_code == 0, result.output
        assert api.resumed == [7]
        assert {remote for remote, _ in api.chunk_calls} == {"todo"}

    def test_partial_failure_exits_nonzero(
        self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path
    ):
        (temp_dir / "good").write_text("x")
        (temp_dir / "bad").write_text("y")
        api.fail_paths = {"bad"}

        result = runner.invoke(
            cli,
            ["deposit", "upload", str(temp_dir / "good"), str(temp_dir / "bad"), "-c", "/Org/C",
             "--no-progress"],
        )

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "bad" in result.output
        assert "--resume 42" in result.output

    def test_cancelled_prints_resume_hint(
        self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path, monkeypatch
    ):
        (temp_dir / "f").write_text("x")
        monkeypatch.setattr(
            "vaultctl.cli.deposit._run_deposit",
            MagicMock(side_effect=DepositCancelledError(42)),
        )

        result = runner.invoke(
            cli, ["deposit", "upload", str(temp_dir / "f"), "-c", "/Org/C", "--no-progress"]
        )

        assert result.exit_code == ExitCode.USER_CANCELLED
        assert "--resume 42" in result.output

    def test_status_failure_prints_resume_hint(
        self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path
    ):
        (temp_dir / "f").write_text("x")
        api.deposit_status = MagicMock(side_effect=RuntimeError("retries exhausted"))

        result = runner.invoke(
            cli, ["deposit", "upload", str(temp_dir / "f"), "-c", "/Org/C", "--no-progress"]
        )

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "deposit status 42" in result.output
        assert "--resume 42" in result.output

    def test_invalid_chunk_size(
        self, runner: CliRunner, mock_client: MagicMock, api, temp_dir: Path
    ):
        (temp_dir / "f").write_text("x")
        result = runner.invoke(
            cli, ["deposit", "upload", str(temp_dir / "f"), "-c", "/Org/C", "--chunk-size", "0"]
        )
        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert api.registered == []


# =============================================================================
# Deposit Status
# =============================================================================


class TestDepositStatus:
    """Tests for `deposit status`."""

    def test_json(self, runner: CliRunner, mock_client: MagicMock, monkeypatch):
        service = MagicMock()
        service.deposit_status.return_value = DepositStatus(assembled=2, in_storage=1, total=3)
        monkeypatch.setattr("vaultctl.cli.deposit.DepositService", MagicMock(return_value=service))

        result = runner.invoke(cli, ["deposit", "status", "5", "-o", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["deposit_id"] == 5
        assert data["assembled_files"] == 2
        assert data["total_files"] == 3
        service.deposit_status.assert_called_once_with(5)

    def test_table(self, runner: CliRunner, mock_client: MagicMock, monkeypatch):
        service = MagicMock()
        service.deposit_status.return_value = DepositStatus(total=0)
        monkeypatch.setattr("vaultctl.cli.deposit.DepositService", MagicMock(return_value=service))

        result = runner.invoke(cli, ["deposit", "status", "5"])

        assert result.exit_code == 0, result.output
        assert "Total Files" in result.output
