"""tarsgen configuration.

Centralised, typed configuration for the generation workflow. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

PACKAGE_DIR = Path(__file__).resolve().parent

# Host code-model languages and the names they are known by.
LANGUAGE_ALIASES: dict[str, str] = {
    "c#": "csharp",
    "cs": "csharp",
    "csharp": "csharp",
    "vc": "cpp",
    "c++": "cpp",
    "cpp": "cpp",
}


def normalize_language(language: str) -> str:
    """Map a declared source language onto its canonical binding key.

    Unknown languages are lowercased and returned unchanged so that custom
    bindings still match.
    """
    key = language.strip().lower()
    return LANGUAGE_ALIASES.get(key, key)


class GeneratorBinding(BaseModel):
    """Association between a source language and its generator executable."""

    model_config = ConfigDict(frozen=True)

    language: str
    executable: Path

    @property
    def name(self) -> str:
        return self.executable.name


class Config(BaseModel):
    """Global tarsgen configuration.

    Instances are typically created once by the CLI entry point (or by the
    embedding front end) and handed to ``Orchestrator``, which resolves the
    generator bindings a single time at construction.
    """

    install_dir: Path = Field(default=PACKAGE_DIR)
    bindings: dict[str, Path] = Field(
        default_factory=lambda: {"csharp": Path("tars2cs") / "tars2cs.exe"},
        description="Source language -> generator executable (relative to install_dir)",
    )
    timeout_seconds: float = Field(default=10.0, gt=0, description="Generator timeout in seconds")
    kill_grace_seconds: float = Field(
        default=5.0, ge=0, description="How long to wait for a killed generator to exit"
    )
    staging_root: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    container_suffix: str = Field(default="_", min_length=1)
    input_suffix: str = Field(default=".tars")
    base_package_flag: str = Field(default="--base-package")

    @field_validator("bindings")
    @classmethod
    def _normalize_binding_keys(cls, value: dict[str, Path]) -> dict[str, Path]:
        return {normalize_language(lang): Path(path) for lang, path in value.items()}

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------

    def resolve_bindings(self) -> Mapping[str, GeneratorBinding]:
        """Resolve every binding to an absolute executable path.

        Relative paths are taken relative to ``install_dir``. The returned
        mapping is read-only.
        """
        resolved: dict[str, GeneratorBinding] = {}
        for language, path in self.bindings.items():
            executable = path if path.is_absolute() else self.install_dir / path
            resolved[language] = GeneratorBinding(language=language, executable=executable)
        return MappingProxyType(resolved)

    def container_name(self, artifact_name: str) -> str:
        """Destination container name for an artifact file name."""
        return f"{artifact_name}{self.container_suffix}"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file.

        Returns:
            The path where the file was written.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            TARSGEN_INSTALL_DIR, TARSGEN_STAGING_DIR, TARSGEN_TIMEOUT,
            TARSGEN_KILL_GRACE, TARSGEN_CONTAINER_SUFFIX,
            TARSGEN_BINDINGS (``lang=path,lang=path``).
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("TARSGEN_INSTALL_DIR"):
            kwargs["install_dir"] = Path(os.environ["TARSGEN_INSTALL_DIR"])
        if os.environ.get("TARSGEN_STAGING_DIR"):
            kwargs["staging_root"] = Path(os.environ["TARSGEN_STAGING_DIR"])
        if os.environ.get("TARSGEN_TIMEOUT"):
            kwargs["timeout_seconds"] = float(os.environ["TARSGEN_TIMEOUT"])
        if os.environ.get("TARSGEN_KILL_GRACE"):
            kwargs["kill_grace_seconds"] = float(os.environ["TARSGEN_KILL_GRACE"])
        if os.environ.get("TARSGEN_CONTAINER_SUFFIX"):
            kwargs["container_suffix"] = os.environ["TARSGEN_CONTAINER_SUFFIX"]
        if os.environ.get("TARSGEN_BINDINGS"):
            kwargs["bindings"] = parse_bindings(os.environ["TARSGEN_BINDINGS"].split(","))

        return cls(**kwargs)

    def ensure_directories(self) -> None:
        """Create the staging root if it does not exist yet."""
        self.staging_root.mkdir(parents=True, exist_ok=True)


def parse_bindings(entries: list[str]) -> dict[str, Path]:
    """Parse ``lang=path`` entries into a bindings dict.

    Raises:
        ValueError: If an entry has no ``=`` or an empty side.
    """
    bindings: dict[str, Path] = {}
    for entry in entries:
        entry = entry.strip()
        if not entry:
            continue
        language, sep, path = entry.partition("=")
        if not sep or not language.strip() or not path.strip():
            raise ValueError(f"Invalid binding '{entry}' (expected LANG=PATH)")
        bindings[normalize_language(language)] = Path(path.strip())
    return bindings
