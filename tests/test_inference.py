"""Tests for the claude CLI inference runner."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

from docmemories.extraction.inference import ClaudeCLI, InferenceResult


class TestInferenceResult:
    """Test InferenceResult status."""

    def test_ok(self) -> None:
        assert InferenceResult(text="x", exit_code=0).ok

    def test_not_ok_on_exit_code(self) -> None:
        assert not InferenceResult(text="", exit_code=1).ok

    def test_not_ok_on_timeout(self) -> None:
        assert not InferenceResult(text="", exit_code=None, timed_out=True).ok


class TestClaudeCLI:
    """Test ClaudeCLI.generate."""

    def test_command_line(self) -> None:
        cli = ClaudeCLI("/usr/bin/claude", extra_args=["--dangerously-skip-permissions"])

        command = cli.command("claude-sonnet", "PROMPT")

        assert command == [
            "/usr/bin/claude",
            "--model",
            "claude-sonnet",
            "--dangerously-skip-permissions",
            "-p",
            "PROMPT",
            "--output-format",
            "text",
        ]

    @patch("docmemories.extraction.inference.subprocess.run")
    def test_success(self, mock_run: MagicMock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout=b'{"trigger": "t"}', stderr=b""
        )

        result = ClaudeCLI().generate("model", "prompt", 30)

        assert result.ok
        assert result.text == '{"trigger": "t"}'
        assert mock_run.call_args.kwargs["timeout"] == 30
        assert mock_run.call_args.kwargs["check"] is False

    @patch("docmemories.extraction.inference.subprocess.run")
    def test_non_zero_exit(self, mock_run: MagicMock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=2, stdout=b"", stderr=b"rate limited"
        )

        result = ClaudeCLI().generate("model", "prompt", 30)

        assert not result.ok
        assert result.exit_code == 2
        assert result.stderr == "rate limited"

    @patch("docmemories.extraction.inference.subprocess.run")
    def test_timeout(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="claude", timeout=1)

        result = ClaudeCLI().generate("model", "prompt", 1)

        assert result.timed_out
        assert result.exit_code is None
        assert result.text == ""

    @patch("docmemories.extraction.inference.subprocess.run")
    def test_launch_failure(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = FileNotFoundError("No such file: claude")

        result = ClaudeCLI("claude").generate("model", "prompt", 1)

        assert not result.ok
        assert not result.timed_out
        assert "Failed to launch claude" in result.stderr

    @patch("docmemories.extraction.inference.subprocess.run")
    def test_invalid_argument(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = ValueError("embedded null byte")

        result = ClaudeCLI("claude").generate("model", "bad \x00 prompt", 1)

        assert not result.ok
        assert result.exit_code is None
        assert "embedded null byte" in result.stderr
