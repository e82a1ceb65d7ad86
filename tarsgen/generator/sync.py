"""Mirroring generator output into a destination container.

Synchronisation happens in two steps:

1. ``scan_output_tree`` + ``plan_sync`` turn the generator's output directory
   into an ordered list of operations (create folder / copy file), each keyed
   by its path relative to the output root. Planning touches nothing.
2. ``apply_sync`` executes those operations against a ``ProjectContainer``,
   copying file bytes into the container's physical directory and registering
   each entry with the host.
"""

from __future__ import annotations

import enum
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ..host import ProjectContainer


class NodeKind(str, enum.Enum):
    DIRECTORY = "directory"
    FILE = "file"


@dataclass(frozen=True)
class OutputNode:
    """A directory or file produced by the generator."""

    relative_path: PurePosixPath
    kind: NodeKind


class SyncAction(str, enum.Enum):
    MAKE_FOLDER = "make_folder"
    COPY_FILE = "copy_file"


@dataclass(frozen=True)
class SyncOperation:
    """One step of a synchronisation plan.

    ``MAKE_FOLDER`` creates ``relative_path`` as a sub-container;
    ``COPY_FILE`` copies the source file at ``relative_path``.
    """

    action: SyncAction
    relative_path: PurePosixPath


class SyncError(Exception):
    """Raised when a sync operation cannot be applied."""

    def __init__(self, message: str, path: PurePosixPath | None = None):
        self.path = path
        super().__init__(message)


def scan_output_tree(root: str | Path) -> list[OutputNode]:
    """List every directory and file below *root*.

    Symlinks are followed, for directories as well as files. A directory link
    that points back at one of its own ancestors would recurse forever and is
    left out.
    """
    root = Path(root)
    nodes: list[OutputNode] = []

    def _walk(directory: Path, prefix: PurePosixPath, ancestors: frozenset[Path]) -> None:
        for entry in sorted(directory.iterdir()):
            relative = prefix / entry.name
            if entry.is_dir():
                resolved = entry.resolve()
                if resolved in ancestors:
                    continue
                nodes.append(OutputNode(relative, NodeKind.DIRECTORY))
                _walk(entry, relative, ancestors | {resolved})
            elif entry.is_file():
                nodes.append(OutputNode(relative, NodeKind.FILE))

    _walk(root, PurePosixPath(), frozenset({root.resolve()}))
    return nodes


def plan_sync(nodes: list[OutputNode]) -> list[SyncOperation]:
    """Turn scanned nodes into an apply-ready operation list.

    Every folder precedes its contents, and every file is copied; nothing
    is skipped.
    """
    operations: list[SyncOperation] = []
    planned_folders: set[PurePosixPath] = set()

    def _ensure_folder(path: PurePosixPath) -> None:
        if path == PurePosixPath() or path in planned_folders:
            return
        _ensure_folder(path.parent)
        planned_folders.add(path)
        operations.append(SyncOperation(SyncAction.MAKE_FOLDER, path))

    for node in sorted(nodes, key=lambda n: n.relative_path.parts):
        if node.kind is NodeKind.DIRECTORY:
            _ensure_folder(node.relative_path)
        else:
            _ensure_folder(node.relative_path.parent)
            operations.append(SyncOperation(SyncAction.COPY_FILE, node.relative_path))

    return operations


def apply_sync(
    operations: list[SyncOperation],
    source_root: str | Path,
    destination: ProjectContainer,
) -> list[PurePosixPath]:
    """Apply *operations* from *source_root* onto *destination*.

    Existing files at a target path are overwritten.

    Returns:
        Relative paths of every file copied, in application order.

    Raises:
        SyncError: If a folder is used before it was created, or a copy fails.
    """
    source_root = Path(source_root)
    containers: dict[PurePosixPath, ProjectContainer] = {PurePosixPath(): destination}
    copied: list[PurePosixPath] = []

    for op in operations:
        parent = containers.get(op.relative_path.parent)
        if parent is None:
            raise SyncError(
                f"Folder '{op.relative_path.parent}' was not created before use",
                path=op.relative_path,
            )

        if op.action is SyncAction.MAKE_FOLDER:
            containers[op.relative_path] = parent.add_folder(op.relative_path.name)
            continue

        target = parent.path / op.relative_path.name
        try:
            shutil.copyfile(source_root.joinpath(*op.relative_path.parts), target)
        except OSError as exc:
            raise SyncError(f"Failed to copy {op.relative_path}: {exc}", path=op.relative_path) from exc
        parent.add_file(target)
        copied.append(op.relative_path)

    return copied


def synchronize(source_root: str | Path, destination: ProjectContainer) -> list[PurePosixPath]:
    """Mirror the tree under *source_root* into *destination*."""
    operations = plan_sync(scan_output_tree(source_root))
    return apply_sync(operations, source_root, destination)
