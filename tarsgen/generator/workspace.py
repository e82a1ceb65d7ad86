"""Per-invocation staging workspaces.

Each generator run gets its own staging directory and its own copy of the
input artifact under the configured staging root. Both are named from a random
per-invocation token, so concurrent runs never share paths, even for the same
artifact.
"""

from __future__ import annotations

import shutil
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

console = Console()


@dataclass(frozen=True)
class TempWorkspace:
    """Staging state owned by exactly one generator invocation."""

    token: str
    directory: Path
    input_file: Path

    @property
    def output_root(self) -> Path:
        """Directory the generator writes its output into."""
        return self.directory


class WorkspaceError(Exception):
    """Raised when staging state cannot be created."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


def _new_token() -> str:
    return f"tarsgen-{uuid.uuid4().hex}"


class WorkspaceManager:
    """Creates and tears down staging workspaces under *staging_root*."""

    def __init__(self, staging_root: str | Path, input_suffix: str = ".tars"):
        self.staging_root = Path(staging_root)
        self.input_suffix = input_suffix

    def create(self, artifact_path: str | Path) -> TempWorkspace:
        """Stage *artifact_path* into a fresh workspace.

        A leftover directory at the target path (from a crashed run) is
        deleted and recreated. If staging fails part-way, whatever was created
        is removed before the error propagates.

        Raises:
            WorkspaceError: If the artifact is missing or the staging
                directory / input copy cannot be written.
        """
        source = Path(artifact_path)
        if not source.is_file():
            raise WorkspaceError(f"Artifact not found: {source}", path=source)

        token = _new_token()
        workspace = TempWorkspace(
            token=token,
            directory=self.staging_root / token,
            input_file=self.staging_root / f"{token}{self.input_suffix}",
        )

        try:
            self.staging_root.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, workspace.input_file)
            if workspace.directory.exists():
                shutil.rmtree(workspace.directory)
            workspace.directory.mkdir()
        except OSError as exc:
            self.teardown(workspace)
            raise WorkspaceError(
                f"Failed to stage {source} into {workspace.directory}: {exc}",
                path=workspace.directory,
            ) from exc

        console.print(f"  [dim]Staged {source.name} -> {workspace.directory}[/dim]")
        return workspace

    def teardown(self, workspace: TempWorkspace) -> list[str]:
        """Delete the staging directory and the staged input copy.

        Never raises; problems are returned as messages so that cleanup
        cannot mask the outcome of the run it follows.
        """
        problems: list[str] = []

        if workspace.directory.exists():
            try:
                shutil.rmtree(workspace.directory)
            except OSError as exc:
                problems.append(f"Could not remove {workspace.directory}: {exc}")

        try:
            workspace.input_file.unlink(missing_ok=True)
        except OSError as exc:
            problems.append(f"Could not remove {workspace.input_file}: {exc}")

        for problem in problems:
            console.print(f"[yellow]Warning: {problem}[/yellow]")
        return problems

    @asynccontextmanager
    async def staged(self, artifact_path: str | Path) -> AsyncIterator[TempWorkspace]:
        """Stage an artifact for the duration of an ``async with`` block.

        The workspace is torn down on exit, whether or not the block raised.
        """
        workspace = self.create(artifact_path)
        try:
            yield workspace
        finally:
            self.teardown(workspace)
