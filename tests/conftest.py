"""Shared pytest fixtures for the pkgpipe test suite.

Provides reusable fixtures for:
- Temporary package directories with a manifest and sources
- tsconfig.json writers
- Fake ``tsc`` / ``standard-pkg`` executables (small shell scripts)
- A quiet, recording Reporter
- Mock subprocess helpers
"""

from __future__ import annotations

import json
import stat
import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console

from pkgpipe.lifecycle import BuildOptions, SourceFiles
from pkgpipe.reporter import Reporter


# ---------------------------------------------------------------------------
# Packages & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def package_dir(tmp_path: Path) -> Path:
    """A TypeScript-style package with a manifest and three source files."""
    pkg = tmp_path / "my-lib"
    (pkg / "src" / "util").mkdir(parents=True)
    (pkg / "package.json").write_text(
        json.dumps({"name": "my-lib", "version": "1.0.0"}, indent=2), encoding="utf-8"
    )
    (pkg / "src" / "index.ts").write_text(
        'export { add } from "./util/math.ts";\nexport const answer = 42;\n',
        encoding="utf-8",
    )
    (pkg / "src" / "util" / "math.ts").write_text(
        "export function add(a: number, b: number): number {\n  return a + b;\n}\n",
        encoding="utf-8",
    )
    (pkg / "src" / "util" / "strings.ts").write_text(
        'export const greeting = "hello";\n', encoding="utf-8"
    )
    return pkg


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """Pre-existing, empty output directory."""
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def source_files(package_dir: Path) -> list[Path]:
    """Absolute paths of every file under ``package_dir/src``."""
    return sorted(p for p in (package_dir / "src").rglob("*") if p.is_file())


# ---------------------------------------------------------------------------
# Compiler configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def write_tsconfig():
    """Factory writing a tsconfig-style file.

    Usage:
        path = write_tsconfig(package_dir, {"compilerOptions": {...}})
        path = write_tsconfig(package_dir, "// raw jsonc text", name="base.json")
    """
    def factory(directory: Path, content: dict[str, Any] | str, name: str = "tsconfig.json") -> Path:
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        text = content if isinstance(content, str) else json.dumps(content, indent=2)
        path.write_text(text, encoding="utf-8")
        return path

    return factory


@pytest.fixture
def es2018_tsconfig(package_dir: Path, write_tsconfig) -> Path:
    """tsconfig.json matching the expected es2018 / esnext baseline."""
    return write_tsconfig(
        package_dir,
        {"compilerOptions": {"target": "es2018", "module": "esnext", "strict": True}},
    )


# ---------------------------------------------------------------------------
# Fake executables
# ---------------------------------------------------------------------------

def _write_executable(path: Path, script: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(script).lstrip(), encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_tsc():
    """Factory installing a fake ``node_modules/.bin/tsc`` into a package.

    The script records its arguments (one per line) in ``<cwd>/tsc-args.txt``,
    writes ``index.js`` into ``--outDir`` and ``index.d.ts`` into
    ``--declarationDir``, then exits with *exit_code*.
    """
    def factory(package: Path, exit_code: int = 0) -> Path:
        return _write_executable(
            package / "node_modules" / ".bin" / "tsc",
            f"""
            #!/bin/sh
            printf '%s\\n' "$@" > "$PWD/tsc-args.txt"
            if [ {exit_code} -ne 0 ]; then
              echo "src/index.ts(1,1): error TS2307: Cannot find module './missing'." >&2
              exit {exit_code}
            fi
            while [ $# -gt 0 ]; do
              case "$1" in
                --outDir)
                  mkdir -p "$2"
                  echo "export const answer = 42;" > "$2/index.js"
                  shift ;;
                --declarationDir)
                  mkdir -p "$2"
                  echo "export declare const answer: number;" > "$2/index.d.ts"
                  shift ;;
              esac
              shift
            done
            echo "tsc: emitted"
            exit 0
            """,
        )

    return factory


@pytest.fixture
def fake_linter():
    """Factory installing a fake ``node_modules/.bin/standard-pkg``."""
    def factory(package: Path, exit_code: int = 0) -> Path:
        return _write_executable(
            package / "node_modules" / ".bin" / "standard-pkg",
            f"""
            #!/bin/sh
            printf '%s\\n' "$@" > "$PWD/lint-args.txt"
            echo "standard-pkg: 0 problems"
            exit {exit_code}
            """,
        )

    return factory


# ---------------------------------------------------------------------------
# Reporter & BuildOptions
# ---------------------------------------------------------------------------

@pytest.fixture
def reporter() -> Reporter:
    """Reporter that records everything and prints nothing."""
    return Reporter(console=Console(quiet=True))


@pytest.fixture
def make_options(package_dir: Path, out_dir: Path, reporter: Reporter):
    """Factory for BuildOptions bound to ``package_dir`` / ``out_dir``."""
    def factory(
        options: dict[str, Any] | None = None,
        files: list[Path] | None = None,
        cwd: Path | None = None,
    ) -> BuildOptions:
        return BuildOptions(
            cwd=cwd or package_dir,
            out=out_dir,
            src=SourceFiles(list(files or [])),
            options=dict(options or {}),
            reporter=reporter,
        )

    return factory


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
