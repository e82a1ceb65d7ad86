"""Shared pytest fixtures for the tarsgen test suite.

Provides reusable fixtures for:
- Temporary project directories holding a sample ``.tars`` artifact
- An isolated staging root
- A real, executable fake generator with scripted behaviour
- Mock subprocess helpers
"""

from __future__ import annotations

import json
import stat
import sys
import textwrap
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from tarsgen.config import Config
from tarsgen.host import SelectedArtifact

SAMPLE_TARS = textwrap.dedent(
    """\
    module Demo
    {
        struct Foo
        {
            0 require int id;
            1 optional string name;
        };

        interface Bar
        {
            int ping(Foo req, out Foo rsp);
        };
    };
    """
)


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary project directory (auto-cleanup)."""
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    return project_dir


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    """Isolated staging root so tests never touch the system temp dir."""
    root = tmp_path / "staging"
    root.mkdir()
    return root


@pytest.fixture
def artifact_file(tmp_project_dir: Path) -> Path:
    """A ``Foo.tars`` file inside the temporary project."""
    path = tmp_project_dir / "Foo.tars"
    path.write_text(SAMPLE_TARS, encoding="utf-8")
    return path


@pytest.fixture
def csharp_artifact(artifact_file: Path) -> SelectedArtifact:
    return SelectedArtifact(path=artifact_file, language="csharp")


# ---------------------------------------------------------------------------
# Fake generator
# ---------------------------------------------------------------------------

_GENERATOR_TEMPLATE = """\
#!{python}
import json
import os
import sys
import time
from pathlib import Path

PLAN = json.loads({plan!r})

if PLAN["record"]:
    staged = sys.argv[1].split("=", 1)[1] if len(sys.argv) > 1 and "=" in sys.argv[1] else ""
    Path(PLAN["record"]).write_text(json.dumps({{
        "argv": sys.argv[1:],
        "cwd": os.getcwd(),
        "input": Path(staged).read_text() if staged and Path(staged).is_file() else None,
    }}))

time.sleep(PLAN["sleep"])

for relative, content in PLAN["files"].items():
    target = Path(relative)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)

sys.stderr.write(PLAN["stderr"])
sys.stderr.flush()
sys.exit(PLAN["exit_code"])
"""


@pytest.fixture
def make_generator(tmp_path: Path) -> Callable[..., Path]:
    """Factory that writes an executable fake generator script.

    The script writes ``files`` (relative path -> text) into its working
    directory, prints ``stderr``, optionally sleeps first, and exits with
    ``exit_code``. When ``record`` is given, it also dumps its argv, cwd
    and the staged input's content to that JSON file.

    Usage:
        def test_something(make_generator):
            gen = make_generator(files={"Foo.cs": "class Foo {}"})
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    counter = {"n": 0}

    def factory(
        files: dict[str, str] | None = None,
        stderr: str = "",
        exit_code: int = 0,
        sleep: float = 0.0,
        record: Path | None = None,
    ) -> Path:
        counter["n"] += 1
        plan = json.dumps({
            "files": files or {},
            "stderr": stderr,
            "exit_code": exit_code,
            "sleep": sleep,
            "record": str(record) if record else "",
        })
        script = bin_dir / f"fake-tars2cs-{counter['n']}"
        script.write_text(
            _GENERATOR_TEMPLATE.format(python=sys.executable, plan=plan),
            encoding="utf-8",
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return factory


@pytest.fixture
def make_config(staging_root: Path) -> Callable[..., Config]:
    """Factory for a ``Config`` bound to a given generator executable."""

    def factory(generator: Path | None = None, **overrides: Any) -> Config:
        bindings = {"csharp": generator} if generator is not None else {}
        return Config(staging_root=staging_root, bindings=bindings, **overrides)

    return factory


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing generator invocation.

    Returns a factory that creates mock subprocess instances with configurable
    stderr and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stderr="warning", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(stderr: str = "", returncode: int | None = 0) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(return_value=(None, stderr.encode("utf-8")))
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
