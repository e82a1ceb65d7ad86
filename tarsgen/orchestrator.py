"""tarsgen orchestrator.

Processes selected artifacts one at a time:

1. Look up the generator bound to the artifact's declared language
   (unbound languages are skipped without any side effect).
2. Stage a private copy of the artifact.
3. Run the generator in the staging directory under the configured timeout.
4. If it completed, evict the previous destination container and mirror
   the generator's output into a fresh one next to the artifact.
5. Tear the staging state down, whatever happened.

Usage::

    python -m tarsgen Foo.tars
    python -m tarsgen Foo.tars Bar.tars --timeout 30
    python -m tarsgen Foo.tars --binding csharp=/opt/tars2cs/tars2cs
"""

from __future__ import annotations

import asyncio
import enum
import sys
import time
import traceback
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from rich.markup import escape
from rich.panel import Panel

from .config import Config, GeneratorBinding, normalize_language, parse_bindings
from .generator import (
    EvictionOutcome,
    GenerationResult,
    GenerationStatus,
    GeneratorInvoker,
    StaleOutputEvictor,
    SyncError,
    WorkspaceManager,
    synchronize,
)
from .host import (
    ConsoleDiagnosticsSink,
    DiagnosticsSink,
    FileSystemContainer,
    ProjectContainer,
    SelectedArtifact,
)
from .utils import (
    console,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class ArtifactStatus(str, enum.Enum):
    GENERATED = "generated"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"
    FAILED_TO_START = "failed_to_start"
    FAILED = "failed"


_STATUS_STYLES: dict[ArtifactStatus, str] = {
    ArtifactStatus.GENERATED: "green",
    ArtifactStatus.SKIPPED: "dim",
    ArtifactStatus.TIMED_OUT: "red",
    ArtifactStatus.FAILED_TO_START: "red",
    ArtifactStatus.FAILED: "red",
}


@dataclass
class ArtifactOutcome:
    """What happened to one artifact."""

    artifact: SelectedArtifact
    status: ArtifactStatus
    diagnostics: str = ""
    generation: GenerationResult | None = None
    eviction: EvictionOutcome | None = None
    files_written: list[PurePosixPath] = field(default_factory=list)
    error: str = ""
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is ArtifactStatus.GENERATED

    @property
    def failed(self) -> bool:
        return self.status not in (ArtifactStatus.GENERATED, ArtifactStatus.SKIPPED)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


def _parent_container(artifact: SelectedArtifact) -> ProjectContainer:
    return FileSystemContainer(artifact.path.parent)


class Orchestrator:
    """Drives generation for a list of selected artifacts.

    Front ends (the CLI below, an IDE plugin, a service) hand it artifact
    references and get one ``ArtifactOutcome`` back per artifact. The host's
    project model is reached only through *container_for*, which returns the
    container an artifact's destination should live in.

    Attributes:
        config: Configuration the orchestrator was built with.
        bindings: Language -> generator binding, resolved once.
    """

    def __init__(
        self,
        config: Config,
        sink: DiagnosticsSink | None = None,
        container_for: Callable[[SelectedArtifact], ProjectContainer] = _parent_container,
    ) -> None:
        self.config = config
        self.bindings = config.resolve_bindings()
        self.sink = sink if sink is not None else ConsoleDiagnosticsSink()
        self.container_for = container_for
        self.workspaces = WorkspaceManager(config.staging_root, config.input_suffix)
        self.invoker = GeneratorInvoker(
            timeout_seconds=config.timeout_seconds,
            kill_grace_seconds=config.kill_grace_seconds,
            base_package_flag=config.base_package_flag,
        )
        self.evictor = StaleOutputEvictor()

    def binding_for(self, artifact: SelectedArtifact) -> GeneratorBinding | None:
        return self.bindings.get(normalize_language(artifact.language))

    async def process(self, artifacts: Iterable[SelectedArtifact]) -> list[ArtifactOutcome]:
        """Process *artifacts* sequentially, in order.

        A failure on one artifact is recorded on its outcome and never stops
        the remaining artifacts from being processed.
        """
        outcomes: list[ArtifactOutcome] = []
        for artifact in artifacts:
            start = time.monotonic()
            try:
                outcome = await self.process_one(artifact)
            except Exception as exc:
                tb = traceback.format_exc()
                print_error(f"{artifact.name}: {exc}")
                console.print(tb, style="dim", markup=False)
                outcome = ArtifactOutcome(
                    artifact=artifact,
                    status=ArtifactStatus.FAILED,
                    error=str(exc),
                )
            outcome.duration_seconds = time.monotonic() - start
            outcomes.append(outcome)
        return outcomes

    async def process_one(self, artifact: SelectedArtifact) -> ArtifactOutcome:
        """Generate and synchronise output for a single artifact.

        Raises:
            WorkspaceError: If staging fails.
            SyncError: If mirroring the output fails.
        """
        binding = self.binding_for(artifact)
        if binding is None:
            return ArtifactOutcome(artifact=artifact, status=ArtifactStatus.SKIPPED)

        console.print(f"[bold cyan]{artifact.name}[/bold cyan] [dim]({binding.language})[/dim]")

        async with self.workspaces.staged(artifact.path) as workspace:
            result = await self.invoker.run(binding, workspace)

            if result.status is GenerationStatus.TIMED_OUT:
                return ArtifactOutcome(
                    artifact=artifact,
                    status=ArtifactStatus.TIMED_OUT,
                    generation=result,
                    error=result.error,
                )
            if result.status is GenerationStatus.FAILED_TO_START:
                return ArtifactOutcome(
                    artifact=artifact,
                    status=ArtifactStatus.FAILED_TO_START,
                    generation=result,
                    error=result.error,
                )

            if result.diagnostics:
                self.sink.write(artifact.name, result.diagnostics)

            parent = self.container_for(artifact)
            name = self.config.container_name(artifact.name)
            eviction = self.evictor.evict(parent, name)
            destination = parent.add_folder(name)
            try:
                files = synchronize(workspace.output_root, destination)
            except (SyncError, OSError):
                # Never leave a partially mirrored container behind.
                self.evictor.evict(parent, name)
                raise

        console.print(
            f"  [green]+[/green] {len(files)} file(s) written to {destination.path}"
        )
        return ArtifactOutcome(
            artifact=artifact,
            status=ArtifactStatus.GENERATED,
            diagnostics=result.diagnostics,
            generation=result,
            eviction=eviction,
            files_written=files,
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def print_bindings(self) -> None:
        """Print configured generator bindings and whether they exist."""
        rows = []
        for language, binding in sorted(self.bindings.items()):
            ok = GeneratorInvoker.check_available(binding)
            rows.append([
                language,
                str(binding.executable),
                "[green]yes[/green]" if ok else "[red]no[/red]",
            ])
        print_summary_table(rows, ["Language", "Generator", "Available"], title="Generator Bindings")

    @staticmethod
    def print_summary(outcomes: list[ArtifactOutcome]) -> None:
        rows = []
        for outcome in outcomes:
            style = _STATUS_STYLES[outcome.status]
            rows.append([
                str(outcome.artifact.path),
                f"[{style}]{outcome.status.value}[/{style}]",
                str(len(outcome.files_written)),
                format_duration(outcome.duration_seconds),
            ])
        print_summary_table(rows, ["Artifact", "Status", "Files", "Duration"], title="Generation Summary")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """CLI entry point for ``python -m tarsgen``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="tarsgen",
        description="Run the bound code generator on interface-definition files "
        "and mirror its output next to each file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m tarsgen Foo.tars\n"
            "  python -m tarsgen Foo.tars Bar.tars --timeout 30\n"
            "  python -m tarsgen Foo.tars --binding csharp=/opt/tars2cs/tars2cs\n"
        ),
    )

    parser.add_argument("artifacts", nargs="+", help="Interface-definition files to generate from")
    parser.add_argument(
        "--language", "-l",
        default="csharp",
        help="Declared source language of the artifacts (default: csharp)",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Generator timeout in seconds")
    parser.add_argument(
        "--binding",
        action="append",
        default=[],
        metavar="LANG=PATH",
        help="Bind a language to a generator executable (repeatable)",
    )
    parser.add_argument("--staging-dir", default=None, help="Parent directory for staging state")
    parser.add_argument("--config", default=None, help="Load configuration from a JSON file")

    args = parser.parse_args()

    artifact_paths = [Path(p) for p in args.artifacts]
    missing = [p for p in artifact_paths if not p.is_file()]
    if missing:
        for path in missing:
            console.print(f"[bold red]Error:[/bold red] Artifact not found: {path}")
        sys.exit(1)

    try:
        config = Config.load(Path(args.config)) if args.config else Config.from_env()
        overrides: dict = {}
        if args.timeout is not None:
            overrides["timeout_seconds"] = args.timeout
        if args.staging_dir:
            overrides["staging_root"] = Path(args.staging_dir)
        if args.binding:
            overrides["bindings"] = {**config.bindings, **parse_bindings(args.binding)}
        if overrides:
            config = Config.model_validate({**config.model_dump(), **overrides})
        config.ensure_directories()
    except (ValueError, OSError) as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid configuration: {escape(str(exc))}")
        sys.exit(1)

    orchestrator = Orchestrator(config)

    console.print(
        Panel(
            f"[bold bright_cyan]tarsgen[/bold bright_cyan]\n"
            f"Artifacts : {len(artifact_paths)}\n"
            f"Language  : {args.language}\n"
            f"Timeout   : {config.timeout_seconds}s\n"
            f"Staging   : {config.staging_root}",
            title="[bold]Generation Start[/bold]",
            border_style="bright_cyan",
        )
    )
    orchestrator.print_bindings()

    artifacts = [SelectedArtifact(path=p.resolve(), language=args.language) for p in artifact_paths]
    outcomes = asyncio.run(orchestrator.process(artifacts))
    Orchestrator.print_summary(outcomes)

    if all(o.status is ArtifactStatus.SKIPPED for o in outcomes):
        print_warning(f"No generator is bound to language '{args.language}'; nothing was generated.")

    if any(o.failed for o in outcomes):
        print_error("Generation failed for one or more artifacts.")
        sys.exit(1)
    print_success("Generation complete.")


if __name__ == "__main__":
    main()
