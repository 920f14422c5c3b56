"""Tests for command_executor module."""

import subprocess
from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest

from ca_trust.lib.command_executor import CommandResult, SubprocessExecutor


class TestCommandResult:
    """Tests for CommandResult properties."""

    def test_ok_only_for_zero_status(self) -> None:
        """Zero exit status is success."""
        assert CommandResult(("true",), 0).ok is True
        assert CommandResult(("false",), 1).ok is False

    def test_output_prefers_stderr(self) -> None:
        """stderr wins over stdout, both stripped."""
        result = CommandResult(("cmd",), 1, stdout="out\n", stderr="  err\n")

        assert result.output == "err"

    def test_output_falls_back_to_stdout(self) -> None:
        """Empty stderr -> stdout."""
        assert CommandResult(("cmd",), 0, stdout="5ed36f99\n", stderr="\n").output == "5ed36f99"


class TestSubprocessExecutorRun:
    """Tests for SubprocessExecutor.run."""

    @pytest.fixture
    def mock_run(self) -> Generator[MagicMock]:
        with patch("ca_trust.lib.command_executor.subprocess.run") as mock:
            yield mock

    def test_success_captures_output(self, mock_run: MagicMock) -> None:
        """Exit status and captured streams are returned."""
        mock_run.return_value = subprocess.CompletedProcess(
            args=["update-ca-certificates"], returncode=0, stdout="1 added\n", stderr=""
        )

        result = SubprocessExecutor().run(["update-ca-certificates"])

        assert result == CommandResult(("update-ca-certificates",), 0, "1 added\n", "")
        assert result.ok is True
        mock_run.assert_called_once_with(
            ("update-ca-certificates",), capture_output=True, text=True, check=False
        )

    def test_non_zero_status_is_not_raised(self, mock_run: MagicMock) -> None:
        """Failing command -> result with its status and stderr."""
        mock_run.return_value = subprocess.CompletedProcess(
            args=["update-ca-trust", "extract"], returncode=2, stdout="", stderr="permission denied\n"
        )

        result = SubprocessExecutor().run(("update-ca-trust", "extract"))

        assert result.ok is False
        assert result.returncode == 2
        assert result.output == "permission denied"

    def test_missing_binary_maps_to_127(self, mock_run: MagicMock) -> None:
        """Command not on PATH -> status 127 with the error text."""
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory", "update-ca-certificates")

        result = SubprocessExecutor().run(["update-ca-certificates"])

        assert result.returncode == 127
        assert result.command == ("update-ca-certificates",)
        assert "update-ca-certificates" in result.output

    def test_permission_error_maps_to_126(self, mock_run: MagicMock) -> None:
        """Non-executable command -> status 126 instead of an exception."""
        mock_run.side_effect = PermissionError(13, "Permission denied", "/usr/bin/certutil")

        result = SubprocessExecutor().run(["certutil", "-L"])

        assert result.returncode == 126
        assert result.ok is False
        assert "Permission denied" in result.output


class TestSubprocessExecutorWhich:
    """Tests for SubprocessExecutor.which."""

    def test_delegates_to_shutil_which(self) -> None:
        """Lookup result is passed through unchanged."""
        with patch("ca_trust.lib.command_executor.shutil.which", return_value="/usr/bin/certutil") as mock_which:
            assert SubprocessExecutor().which("certutil") == "/usr/bin/certutil"

        mock_which.assert_called_once_with("certutil")

    def test_missing_tool_returns_none(self) -> None:
        """Tool not on PATH -> None."""
        with patch("ca_trust.lib.command_executor.shutil.which", return_value=None):
            assert SubprocessExecutor().which("certutil") is None
