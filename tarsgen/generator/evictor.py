"""Removal of stale destination containers."""

from __future__ import annotations

import enum
import shutil

from rich.console import Console

from ..host import ProjectContainer

console = Console()


class EvictionOutcome(str, enum.Enum):
    REMOVED = "removed"
    NOTHING_TO_REMOVE = "nothing_to_remove"


class StaleOutputEvictor:
    """Removes a previous generation's destination container.

    Both the host entry and any directory left at the same physical path are
    deleted. Finding nothing is a normal outcome, not an error.
    """

    def evict(self, parent: ProjectContainer, name: str) -> EvictionOutcome:
        removed = False

        if parent.find(name) is not None:
            removed = parent.remove(name) or removed

        physical = parent.path / name
        if physical.is_dir() and not physical.is_symlink():
            shutil.rmtree(physical)
            removed = True
        elif physical.exists() or physical.is_symlink():
            physical.unlink()
            removed = True

        if removed:
            console.print(f"  [yellow]Removed stale output[/yellow] {name}")
            return EvictionOutcome.REMOVED
        return EvictionOutcome.NOTHING_TO_REMOVE
