"""Tests for CLI functionality."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from activetransfer import AuthenticationError, ConfigError, Environment, Failure, Success
from activetransfer.cli import UploadProgress, get_client, main


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_client(onprem_env: Environment) -> MagicMock:
    """Create a mock ActiveTransferClient usable as a context manager."""
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    client.environment = onprem_env
    return client


class TestUploadCommand:
    """Tests for the upload command."""

    def test_upload_success(
        self, runner: CliRunner, mock_client: MagicMock, tmp_path: Path
    ) -> None:
        test_file = tmp_path / "report.csv"
        test_file.write_bytes(b"a,b\n")
        mock_client.upload_file.return_value = Success(
            message="File uploaded successfully (On-Premises)", data={"ok": True}
        )

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["upload", str(test_file), "/inbound"])

        assert result.exit_code == 0
        assert "File uploaded successfully" in result.output
        args, kwargs = mock_client.upload_file.call_args
        assert args == (test_file, "/inbound")
        assert kwargs["compress"] is False

    def test_upload_compress_and_default_path(
        self, runner: CliRunner, mock_client: MagicMock, tmp_path: Path
    ) -> None:
        test_file = tmp_path / "big.log"
        test_file.write_bytes(b"x" * 100)
        mock_client.upload_file.return_value = Success(message="ok")

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["upload", str(test_file), "--compress"])

        assert result.exit_code == 0
        args, kwargs = mock_client.upload_file.call_args
        assert args == (test_file, "/")
        assert kwargs["compress"] is True

    def test_upload_failure_exits_nonzero(
        self, runner: CliRunner, mock_client: MagicMock, tmp_path: Path
    ) -> None:
        test_file = tmp_path / "report.csv"
        test_file.write_bytes(b"a")
        mock_client.upload_file.return_value = Failure(
            operation="Upload (On-Premises)",
            message="Quota exceeded",
            status=507,
            status_text="Insufficient Storage",
            details={"message": "Quota exceeded"},
        )

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["upload", str(test_file), "/inbound"])

        assert result.exit_code == 1
        assert "Upload failed: Quota exceeded" in result.output
        assert "507 Insufficient Storage" in result.output

    def test_upload_missing_file_rejected_by_click(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["upload", "/nonexistent/file.csv"])

        assert result.exit_code == 2

    def test_authentication_failure(
        self, runner: CliRunner, mock_client: MagicMock, tmp_path: Path
    ) -> None:
        test_file = tmp_path / "report.csv"
        test_file.write_bytes(b"a")
        mock_client.upload_file.side_effect = AuthenticationError(
            "Failed to authenticate with SaaS environment"
        )

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["upload", str(test_file)])

        assert result.exit_code == 1
        assert "Authentication failed" in result.output


class TestDownloadCommand:
    """Tests for the download command."""

    def test_download_to_explicit_path(
        self, runner: CliRunner, mock_client: MagicMock, tmp_path: Path
    ) -> None:
        target = tmp_path / "out.txt"
        mock_client.download_file.return_value = Success(
            message="File downloaded successfully", local_path=str(target)
        )

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["download", "/a/b.txt", str(target)])

        assert result.exit_code == 0
        assert f"Saved to: {target}" in result.output
        mock_client.download_file.assert_called_once_with("/a/b.txt", target)

    def test_download_default_destination(
        self, runner: CliRunner, mock_client: MagicMock
    ) -> None:
        mock_client.download_file.return_value = Success(message="ok", local_path="b.txt")

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["download", "/a/b.txt"])

        assert result.exit_code == 0
        mock_client.download_file.assert_called_once_with("/a/b.txt", Path(".") / "b.txt")


class TestSimpleCommands:
    """Tests for ls, mkdir, rm, mv and isfile."""

    def test_ls_prints_json(self, runner: CliRunner, mock_client: MagicMock) -> None:
        listing = {"files": ["a.txt"]}
        mock_client.list_files.return_value = Success(message="Files listed", data=listing)

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["ls", "/in"])

        assert result.exit_code == 0
        assert json.dumps(listing, indent=2) in result.output
        mock_client.list_files.assert_called_once_with("/in")

    def test_mkdir(self, runner: CliRunner, mock_client: MagicMock) -> None:
        mock_client.create_folder.return_value = Success(message="Folder created successfully")

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["mkdir", "/in/new"])

        assert result.exit_code == 0
        mock_client.create_folder.assert_called_once_with("/in/new")

    def test_rm_requires_confirmation(self, runner: CliRunner, mock_client: MagicMock) -> None:
        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["rm", "/in/a.txt"], input="n\n")

        assert result.exit_code == 1
        mock_client.delete.assert_not_called()

    def test_rm_with_yes(self, runner: CliRunner, mock_client: MagicMock) -> None:
        mock_client.delete.return_value = Success(message="Deleted successfully")

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["rm", "/in/a.txt", "--yes"])

        assert result.exit_code == 0
        mock_client.delete.assert_called_once_with("/in/a.txt")

    def test_mv(self, runner: CliRunner, mock_client: MagicMock) -> None:
        mock_client.rename.return_value = Success(message="Renamed successfully")

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["mv", "/a", "/b"])

        assert result.exit_code == 0
        mock_client.rename.assert_called_once_with("/a", "/b")

    def test_isfile_failure(self, runner: CliRunner, mock_client: MagicMock) -> None:
        mock_client.is_file.return_value = Failure(
            operation="Verify", message="Connection refused"
        )

        with patch("activetransfer.cli.get_client", return_value=mock_client):
            result = runner.invoke(main, ["isfile", "/a"])

        assert result.exit_code == 1
        assert "Check failed: Connection refused" in result.output


class TestConfiguration:
    """Tests for environment resolution."""

    def test_envs_lists_environments(self, runner: CliRunner, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {
                    "defaultEnvironment": "dev",
                    "environments": {
                        "dev": {
                            "name": "Dev",
                            "server": {"host": "dev.example.com", "port": 8443},
                            "auth": {"username": "a", "password": "b"},
                        },
                        "saas": {
                            "name": "Cloud",
                            "server": {"host": "t.ipaas.automation.ibm.com"},
                            "auth": {"username": "a", "password": "b"},
                        },
                    },
                }
            )
        )

        result = runner.invoke(main, ["--config", str(config_path), "envs"])

        assert result.exit_code == 0
        assert "* dev: Dev (dev.example.com:8443, On-Premises)" in result.output
        assert "  saas: Cloud (t.ipaas.automation.ibm.com:443, SaaS)" in result.output

    def test_missing_config_and_env(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("ACTIVETRANSFER_HOST", raising=False)

        result = runner.invoke(main, ["--config", str(tmp_path / "none.json"), "ls"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_get_client_prompts_for_password(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {"server": {"host": "mft.example.com"}, "auth": {"username": "alice"}}
            )
        )
        monkeypatch.delenv("ACTIVETRANSFER_PASSWORD", raising=False)

        with patch("activetransfer.cli.click.prompt", return_value="typed") as prompt:
            client = get_client(config_path, None)

        prompt.assert_called_once()
        assert client.environment.password == "typed"

    def test_unknown_environment(self, runner: CliRunner, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {"server": {"host": "mft.example.com"}, "auth": {"username": "a", "password": "b"}}
            )
        )

        result = runner.invoke(main, ["--config", str(config_path), "--env", "prod", "ls"])

        assert result.exit_code == 1
        assert "Unknown environment 'prod'" in result.output


class TestUploadProgress:
    """Tests for the progress display."""

    def test_raw_byte_count_when_total_unknown(self, capsys: pytest.CaptureFixture[str]) -> None:
        progress = UploadProgress()

        progress(2048, None)
        progress.close()

        assert "2.0 KB sent" in capsys.readouterr().err

    def test_bar_when_total_known(self) -> None:
        progress = UploadProgress()

        progress(50, 100)
        progress(100, 100)
        progress.close()

        assert progress._bar is None


def test_config_error_is_reported(runner: CliRunner) -> None:
    with patch("activetransfer.cli.get_client", side_effect=ConfigError("bad config")):
        result = runner.invoke(main, ["ls"])

    assert result.exit_code == 1
    assert "Configuration error: bad config" in result.output
