"""External generator process management.

Runs the generator bound to an artifact's source language against a staged
input copy, with the staging directory as working directory. Handles
timeouts, processes that cannot be started, and stderr capture.
"""

from __future__ import annotations

import asyncio
import enum
import os
import time
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from ..config import GeneratorBinding
from .workspace import TempWorkspace

console = Console()


class GenerationStatus(str, enum.Enum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED_TO_START = "failed_to_start"


@dataclass
class GenerationResult:
    """Outcome of one generator invocation.

    ``COMPLETED`` only means the process exited before the timeout; the exit
    code is recorded but never decides success.
    """

    status: GenerationStatus
    diagnostics: str = ""
    exit_code: int | None = None
    duration_seconds: float = 0.0
    error: str = ""

    @property
    def completed(self) -> bool:
        return self.status is GenerationStatus.COMPLETED

    @property
    def timed_out(self) -> bool:
        return self.status is GenerationStatus.TIMED_OUT


class GeneratorInvokerError(Exception):
    """Raised when an invocation is requested against invalid staging state."""


class GeneratorInvoker:
    """Launches generator executables with a bounded wait.

    On timeout the process is killed and reaped (waiting at most
    *kill_grace_seconds*) rather than left running.
    """

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        kill_grace_seconds: float = 5.0,
        base_package_flag: str = "--base-package",
    ):
        self.timeout_seconds = timeout_seconds
        self.kill_grace_seconds = kill_grace_seconds
        self.base_package_flag = base_package_flag

    def build_command(self, binding: GeneratorBinding, workspace: TempWorkspace) -> list[str]:
        return [
            str(binding.executable),
            f"{self.base_package_flag}={workspace.input_file}",
        ]

    async def run(self, binding: GeneratorBinding, workspace: TempWorkspace) -> GenerationResult:
        """Run *binding*'s generator inside *workspace*.

        Returns:
            GenerationResult describing completion, timeout or start failure.

        Raises:
            GeneratorInvokerError: If the staged input or staging directory
                is missing.
        """
        if not workspace.input_file.is_file():
            raise GeneratorInvokerError(f"Staged input not found: {workspace.input_file}")
        if not workspace.directory.is_dir():
            raise GeneratorInvokerError(f"Staging directory not found: {workspace.directory}")

        cmd = self.build_command(binding, workspace)
        console.print(
            f"  [cyan]Running[/cyan] {binding.name} "
            f"[dim](timeout {self.timeout_seconds}s)[/dim]"
        )

        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(workspace.directory),
            )
        except FileNotFoundError:
            return self._start_failure(
                f"Generator binary not found: '{binding.executable}'", start_time
            )
        except PermissionError:
            return self._start_failure(
                f"Permission denied executing: '{binding.executable}'", start_time
            )
        except OSError as exc:
            return self._start_failure(
                f"Could not start generator '{binding.executable}': {exc}", start_time
            )

        try:
            _, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            elapsed = time.monotonic() - start_time
            console.print(
                f"  [red]Generator timed out after {elapsed:.1f}s. Killing...[/red]"
            )
            await self._kill(process)
            return GenerationResult(
                status=GenerationStatus.TIMED_OUT,
                exit_code=process.returncode,
                duration_seconds=elapsed,
                error=f"Generator timed out after {self.timeout_seconds}s",
            )

        elapsed = time.monotonic() - start_time
        diagnostics = (stderr_bytes or b"").decode("utf-8", errors="replace")
        return GenerationResult(
            status=GenerationStatus.COMPLETED,
            diagnostics=diagnostics,
            exit_code=process.returncode,
            duration_seconds=elapsed,
        )

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_grace_seconds)
        except asyncio.TimeoutError:
            console.print(
                f"  [yellow]Warning: generator pid {process.pid} did not exit "
                f"within {self.kill_grace_seconds}s of being killed[/yellow]"
            )

    def _start_failure(self, message: str, start_time: float) -> GenerationResult:
        console.print(f"  [red]{message}[/red]")
        return GenerationResult(
            status=GenerationStatus.FAILED_TO_START,
            duration_seconds=time.monotonic() - start_time,
            error=message,
        )

    @staticmethod
    def check_available(binding: GeneratorBinding) -> bool:
        """Return ``True`` if the bound executable exists and can be run."""
        executable = binding.executable
        return executable.is_file() and os.access(executable, os.X_OK)
