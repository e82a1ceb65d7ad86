"""tarsgen generator module.

Runs an external code generator against a staged artifact and mirrors its
output next to the artifact.

Key classes:
    WorkspaceManager    - Per-invocation staging directories and input copies
    GeneratorInvoker    - Generator process spawning with a bounded wait
    StaleOutputEvictor  - Removal of a previous run's destination container
    synchronize         - Plan/apply mirroring of the output tree
"""

from .evictor import EvictionOutcome, StaleOutputEvictor
from .invoker import GenerationResult, GenerationStatus, GeneratorInvoker, GeneratorInvokerError
from .sync import (
    NodeKind,
    OutputNode,
    SyncAction,
    SyncError,
    SyncOperation,
    apply_sync,
    plan_sync,
    scan_output_tree,
    synchronize,
)
from .workspace import TempWorkspace, WorkspaceError, WorkspaceManager

__all__ = [
    # Staging
    "WorkspaceManager",
    "TempWorkspace",
    "WorkspaceError",
    # Generator process
    "GeneratorInvoker",
    "GenerationResult",
    "GenerationStatus",
    "GeneratorInvokerError",
    # Eviction
    "StaleOutputEvictor",
    "EvictionOutcome",
    # Synchronisation
    "OutputNode",
    "NodeKind",
    "SyncOperation",
    "SyncAction",
    "SyncError",
    "scan_output_tree",
    "plan_sync",
    "apply_sync",
    "synchronize",
]
