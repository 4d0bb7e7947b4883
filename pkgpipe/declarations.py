"""Type-declaration fallback chain.

Produces ``<out>/dist-types/index.d.ts`` with the first strategy that applies:

1. Copy a hand-written ``index.d.ts`` from the package root.
2. Copy a hand-written ``src/index.d.ts``.
3. Run ``tsc`` in declaration-only mode when both the binary and the compiler
   configuration exist.
4. Best effort: ask a type toolchain to infer declarations from the built
   runtime entry point (``dist-node/index.js``).  The result is a guess; an
   imprecise declaration file is an accepted outcome.
5. Give up with remediation instructions.
"""

from __future__ import annotations

import importlib
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pkgpipe.lifecycle import MessageError
from pkgpipe.process import run_binary
from pkgpipe.reporter import Artifact, Reporter
from pkgpipe.tsconfig import resolve_config_path

TYPES_DIR = "dist-types"
TYPES_FILE = "index.d.ts"
RUNTIME_ENTRY = Path("dist-node") / "index.js"
AUTO_GENERATED_NAME = "AutoGeneratedTypings"

REMEDIATION = """\
dist-types/: Attempted to generate type definitions, but "typescript" package was not found.
             Please install either locally or globally and try again.
       $ npm install --save-dev typescript
[alt.] $ npm install --global typescript
[alt.] *   Write your own type definition file to "index.d.ts"
"""

ToolchainLoader = Callable[[str], Any]


class DeclarationStrategy(str, Enum):
    """Strategy that produced the declaration file."""

    ROOT_DECLARATION = "root-declaration"
    SOURCE_DECLARATION = "source-declaration"
    COMPILER = "compiler"
    AUTO_GENERATED = "auto-generated"


class DeclarationError(MessageError):
    """Raised when every declaration strategy has been exhausted."""


@dataclass(frozen=True)
class DeclarationResult:
    strategy: DeclarationStrategy
    artifact: Artifact


def import_toolchain(name: str) -> Any | None:
    """Import the type toolchain module *name*, or ``None`` if it is not installed."""
    try:
        return importlib.import_module(name)
    except ImportError:
        return None


def _copy_declaration(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)


async def _try_compiler(
    cwd: Path, out: Path, reporter: Reporter, tsconfig: str | None
) -> bool:
    tsc_bin = cwd / "node_modules" / ".bin" / "tsc"
    config_path = resolve_config_path(cwd, tsconfig)
    if not (tsc_bin.exists() and config_path.exists()):
        return False

    await run_binary(
        tsc_bin,
        [
            "-d",
            "--emitDeclarationOnly",
            "--declarationMap",
            "false",
            "--project",
            str(config_path),
            "--declarationDir",
            f"{out / TYPES_DIR}/",
        ],
        cwd=cwd,
        reporter=reporter,
    )
    return True


def _try_auto_generate(
    out: Path,
    destination: Path,
    reporter: Reporter,
    toolchain_name: str,
    toolchain_loader: ToolchainLoader,
) -> bool:
    """Ask the toolchain to guess declarations from the built runtime entry.

    The toolchain must provide both ``load_module(path)`` and
    ``generate_types_for_module(name, module, options)``.  Anything it raises
    is reported as a warning and the chain moves on.
    """
    reporter.info("no type definitions found, auto-generating...")
    toolchain = toolchain_loader(toolchain_name)
    load_module = getattr(toolchain, "load_module", None) if toolchain else None
    generate = getattr(toolchain, "generate_types_for_module", None) if toolchain else None
    if not (callable(load_module) and callable(generate)):
        return False

    entry = out / RUNTIME_ENTRY
    if not entry.is_file():
        reporter.warning(f'Cannot auto-generate types: "{entry}" has not been built.')
        return False

    try:
        runtime_module = load_module(entry)
        guessed = generate(AUTO_GENERATED_NAME, runtime_module, {})
    except Exception as exc:
        reporter.warning(f'Cannot auto-generate types from "{entry}": {exc}')
        return False

    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(str(guessed), encoding="utf-8")
    return True


async def generate_declarations(
    cwd: str | Path,
    out: str | Path,
    reporter: Reporter,
    tsconfig: str | None = None,
    toolchain: str = "typescript",
    toolchain_loader: ToolchainLoader = import_toolchain,
) -> DeclarationResult:
    """Run the declaration fallback chain for the package at *cwd*.

    Args:
        cwd: Package directory.
        out: Output directory; the declarations land in ``<out>/dist-types/``.
        reporter: Receives progress, the remediation text and the single
            ``created`` notification.
        tsconfig: Explicit compiler configuration filename, if any.
        toolchain: Module name handed to *toolchain_loader* for step 4.
        toolchain_loader: Returns the toolchain module, or ``None``.

    Returns:
        The winning strategy and the reported artifact.

    Raises:
        ProcessError: If ``tsc`` ran and failed.
        DeclarationError: If no strategy applied.
    """
    cwd_path = Path(cwd)
    out_path = Path(out)
    destination = out_path / TYPES_DIR / TYPES_FILE

    root_declaration = cwd_path / TYPES_FILE
    source_declaration = cwd_path / "src" / TYPES_FILE

    if root_declaration.exists():
        _copy_declaration(root_declaration, destination)
        strategy = DeclarationStrategy.ROOT_DECLARATION
    elif source_declaration.exists():
        _copy_declaration(source_declaration, destination)
        strategy = DeclarationStrategy.SOURCE_DECLARATION
    elif await _try_compiler(cwd_path, out_path, reporter, tsconfig):
        strategy = DeclarationStrategy.COMPILER
    elif _try_auto_generate(out_path, destination, reporter, toolchain, toolchain_loader):
        strategy = DeclarationStrategy.AUTO_GENERATED
    else:
        reporter.error(REMEDIATION)
        raise DeclarationError(f"Failed to build: {TYPES_DIR}/")

    artifact = reporter.created(destination, "types")
    return DeclarationResult(strategy=strategy, artifact=artifact)
