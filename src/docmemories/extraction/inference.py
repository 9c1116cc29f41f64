"""Headless invocation of the text-generation CLI."""

from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(slots=True)
class InferenceResult:
    text: str
    exit_code: int | None
    timed_out: bool = False
    stderr: str = ""
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.exit_code == 0


class InferenceService(Protocol):
    def generate(self, model: str, prompt: str, timeout: float) -> InferenceResult: ...


class ClaudeCLI:
    """Runs ``claude -p`` once per prompt and captures its output."""

    def __init__(self, executable: str = "claude", extra_args: Sequence[str] = ()) -> None:
        self.executable = executable
        self.extra_args = list(extra_args)

    def command(self, model: str, prompt: str) -> list[str]:
        return [
            self.executable,
            "--model",
            model,
            *self.extra_args,
            "-p",
            prompt,
            "--output-format",
            "text",
        ]

    def generate(self, model: str, prompt: str, timeout: float) -> InferenceResult:
        start = time.monotonic()
        try:
            completed = subprocess.run(
                self.command(model, prompt),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return InferenceResult(
                text="",
                exit_code=None,
                timed_out=True,
                duration=time.monotonic() - start,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            return InferenceResult(
                text="",
                exit_code=None,
                stderr=f"Failed to launch {self.executable}: {exc}",
                duration=time.monotonic() - start,
            )

        return InferenceResult(
            text=completed.stdout.decode("utf-8", errors="ignore"),
            exit_code=completed.returncode,
            stderr=completed.stderr.decode("utf-8", errors="ignore"),
            duration=time.monotonic() - start,
        )
