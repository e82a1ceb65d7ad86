"""Host collaborator interfaces.

The orchestration core never talks to a specific IDE. It consumes three small
abstractions that any front end can provide:

    SelectedArtifact  - a source file plus its declared source language
    ProjectContainer  - a folder-like entry that can hold named folders/files
    DiagnosticsSink   - somewhere to write generator diagnostic text

Filesystem-backed implementations are included for the CLI front end.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from rich.panel import Panel
from rich.text import Text

from .utils import console


@dataclass(frozen=True)
class SelectedArtifact:
    """A source interface-definition file selected for generation."""

    path: Path
    language: str

    @property
    def name(self) -> str:
        return self.path.name


@runtime_checkable
class ProjectContainer(Protocol):
    """Folder-like entry in the host's project model."""

    @property
    def path(self) -> Path:
        """Physical directory backing this container."""
        ...

    def find(self, name: str) -> "ProjectContainer | None":
        """Return the child container called *name*, or ``None``."""
        ...

    def remove(self, name: str) -> bool:
        """Remove the child entry called *name* and all its descendants."""
        ...

    def add_folder(self, name: str) -> "ProjectContainer":
        """Create (or reuse) a child container called *name*."""
        ...

    def add_file(self, path: Path) -> None:
        """Register an on-disk file that lives directly inside this container."""
        ...


@runtime_checkable
class DiagnosticsSink(Protocol):
    def write(self, source: str, text: str) -> None:
        ...


# ---------------------------------------------------------------------------
# Filesystem-backed implementations
# ---------------------------------------------------------------------------


class FileSystemContainer:
    """A ``ProjectContainer`` that is just a directory on disk."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self.files: list[Path] = []

    @property
    def path(self) -> Path:
        return self._path

    def find(self, name: str) -> FileSystemContainer | None:
        candidate = self._path / name
        if candidate.is_dir():
            return FileSystemContainer(candidate)
        return None

    def remove(self, name: str) -> bool:
        target = self._path / name
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
            return True
        if target.exists() or target.is_symlink():
            target.unlink()
            return True
        return False

    def add_folder(self, name: str) -> FileSystemContainer:
        child = self._path / name
        child.mkdir(parents=True, exist_ok=True)
        return FileSystemContainer(child)

    def add_file(self, path: Path) -> None:
        if path.parent != self._path:
            raise ValueError(f"{path} is not a direct child of {self._path}")
        if not path.is_file():
            raise FileNotFoundError(f"Cannot register missing file: {path}")
        self.files.append(path)

    def __repr__(self) -> str:
        return f"FileSystemContainer({str(self._path)!r})"


class ConsoleDiagnosticsSink:
    """Prints generator diagnostics to the shared Rich console."""

    def write(self, source: str, text: str) -> None:
        console.print(
            Panel(
                Text(text.rstrip()),
                title=f"Generator output: {source}",
                border_style="yellow",
            )
        )


@dataclass
class BufferedDiagnosticsSink:
    """Collects diagnostics in memory as ``(source, text)`` pairs."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def write(self, source: str, text: str) -> None:
        self.messages.append((source, text))

    @property
    def text(self) -> str:
        return "".join(text for _, text in self.messages)
