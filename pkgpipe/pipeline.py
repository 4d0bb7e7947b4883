"""pkgpipe orchestrator.

Loads builders and drives them through the lifecycle for one package, phase
by phase across the whole builder set:

    MANIFEST      -- every builder default-fills manifest fields
    BEFORE BUILD  -- every builder validates its preconditions
    BUILD         -- every builder writes its artifacts
    AFTER JOB     -- every builder post-processes the output tree

A failing ``manifest`` hook is reported and ignored.  A failing
``before_build`` or ``build`` hook stops the package.  A failing ``after_job``
hook is reported, marks the run failed, and leaves artifacts in place.

Usage::

    python -m pkgpipe.pipeline path/to/package --out pkg
    python -m pkgpipe.pipeline . --builder pkgpipe.builders.build_types
"""

from __future__ import annotations

import asyncio
import importlib
import sys
import time
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.markup import escape

from pkgpipe.config import BuilderEntry, PipelineConfig
from pkgpipe.lifecycle import (
    HOOK_ORDER,
    BuildOptions,
    MessageError,
    SourceFiles,
    builder_name,
    call_hook,
    hook_for,
)
from pkgpipe.manifest import Manifest, load_manifest, save_manifest
from pkgpipe.reporter import Artifact, Reporter
from pkgpipe.utils import (
    collect_source_files,
    console,
    ensure_dir,
    format_duration,
    print_error,
    print_phase_header,
    print_success,
    print_summary_table,
    print_warning,
)

# Phases whose failure stops the package.
FATAL_PHASES = frozenset({"before_build", "build"})


@dataclass
class HookFailure:
    """A hook that raised, and what it raised."""

    builder: str
    phase: str
    message: str
    traceback: str | None = None


@dataclass
class PipelineResult:
    """Outcome of running the pipeline over one package."""

    success: bool
    manifest: Manifest = field(default_factory=dict)
    artifacts: list[Artifact] = field(default_factory=list)
    failures: list[HookFailure] = field(default_factory=list)
    phases_completed: list[str] = field(default_factory=list)
    manifest_path: Path | None = None
    duration_seconds: float = 0.0


class Pipeline:
    """Runs a set of builders over a package directory.

    Attributes:
        config: Orchestrator configuration.
        reporter: Reporter handed to every hook.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        reporter: Reporter | None = None,
        builders: list[tuple[Any, dict[str, Any]]] | None = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.reporter = reporter or Reporter()
        self._builders = builders

    # ------------------------------------------------------------------
    # Builder loading
    # ------------------------------------------------------------------

    @staticmethod
    def load_builder(entry: BuilderEntry) -> Any:
        """Import the builder module named by *entry*."""
        try:
            return importlib.import_module(entry.path)
        except ImportError as exc:
            raise MessageError(f'Builder "{entry.path}" could not be loaded: {exc}') from exc

    def load_builders(self) -> list[tuple[Any, dict[str, Any]]]:
        """Return ``(builder, options)`` pairs, importing configured builders once."""
        if self._builders is None:
            self._builders = [
                (self.load_builder(entry), dict(entry.options))
                for entry in self.config.builders
            ]
        return self._builders

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _out_dir(self, cwd: Path) -> Path:
        out = self.config.out_dir
        return out if out.is_absolute() else (cwd / out).resolve()

    async def run(self, cwd: str | Path) -> PipelineResult:
        """Build the package at *cwd* with every configured builder."""
        start = time.monotonic()
        package_dir = Path(cwd).resolve()
        manifest = load_manifest(package_dir)
        builders = self.load_builders()

        out = ensure_dir(self._out_dir(package_dir))
        base = BuildOptions(
            cwd=package_dir,
            out=out,
            src=SourceFiles(collect_source_files(package_dir, self.config.source_dir)),
            reporter=self.reporter,
        )
        result = PipelineResult(success=True, manifest=manifest)

        for phase in HOOK_ORDER:
            hooks = [
                (builder, options, hook)
                for builder, options in builders
                if (hook := hook_for(builder, phase)) is not None
            ]
            if not hooks:
                continue

            print_phase_header(phase, self.reporter.console)
            stop = False
            for builder, options, hook in hooks:
                hook_options = base.with_options(options)
                args = (manifest, hook_options) if phase == "manifest" else (hook_options,)
                try:
                    await call_hook(hook, *args)
                except MessageError as exc:
                    stop = self._record_failure(result, builder, phase, str(exc))
                except Exception as exc:
                    stop = self._record_failure(
                        result, builder, phase, f"{type(exc).__name__}: {exc}",
                        traceback.format_exc(),
                    )
                if stop:
                    break

            if stop:
                break
            result.phases_completed.append(phase)

        if not any(f.phase in FATAL_PHASES for f in result.failures):
            result.manifest_path = save_manifest(manifest, out)

        result.artifacts = list(self.reporter.artifacts)
        result.duration_seconds = time.monotonic() - start
        return result

    def _record_failure(
        self,
        result: PipelineResult,
        builder: Any,
        phase: str,
        message: str,
        tb: str | None = None,
    ) -> bool:
        """Record a hook failure; return ``True`` when the package must stop."""
        name = builder_name(builder)
        result.failures.append(HookFailure(builder=name, phase=phase, message=message, traceback=tb))

        if phase == "manifest":
            self.reporter.warning(f"[{name}] manifest: {message}")
            return False

        self.reporter.error(f"[{name}] {phase}: {message}")
        if tb:
            self.reporter.console.print(f"[dim]{escape(tb)}[/dim]")
        result.success = False
        return phase in FATAL_PHASES


def print_result(result: PipelineResult) -> None:
    """Print the end-of-run summary table."""
    summary = {
        "Status": "SUCCESS" if result.success else "FAILED",
        "Duration": format_duration(result.duration_seconds),
        "Phases": ", ".join(result.phases_completed) or "-",
        "Artifacts": str(len(result.artifacts)),
    }
    if result.manifest_path:
        summary["Manifest"] = str(result.manifest_path)
    print_summary_table(summary, title="pkgpipe")
    for failure in result.failures:
        if failure.phase == "manifest":
            print_warning(escape(f"{failure.builder} ({failure.phase}): {failure.message}"))
        else:
            print_error(escape(f"{failure.builder} ({failure.phase}): {failure.message}"))


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m pkgpipe.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="pkgpipe -- build publishable artifacts for a package",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m pkgpipe.pipeline .\n"
            "  python -m pkgpipe.pipeline ./my-lib --out ./my-lib/pkg\n"
            "  python -m pkgpipe.pipeline . --builder pkgpipe.builders.deno\n"
        ),
    )
    parser.add_argument("cwd", nargs="?", default=".", help="Package directory (default: .)")
    parser.add_argument("--out", "-o", default=None, help="Output directory (default: <cwd>/pkg)")
    parser.add_argument(
        "--builder",
        "-b",
        action="append",
        default=None,
        help="Dotted path of a builder module; repeat to run several (default: all)",
    )
    parser.add_argument("--tsconfig", default=None, help="Compiler configuration file")
    parser.add_argument("--config", default=None, help="Load PipelineConfig from a JSON file")

    args = parser.parse_args(argv)

    package_dir = Path(args.cwd)
    if not package_dir.is_dir():
        console.print(f"[bold red]Error:[/bold red] Package directory not found: {escape(str(package_dir))}")
        sys.exit(1)

    config = PipelineConfig.load(Path(args.config)) if args.config else PipelineConfig.from_env()
    if args.out:
        config.out_dir = Path(args.out)
    if args.builder:
        config.builders = [BuilderEntry(path=path) for path in args.builder]
    if args.tsconfig:
        for entry in config.builders:
            entry.options["tsconfig"] = args.tsconfig

    pipeline = Pipeline(config, reporter=Reporter(console=console))
    try:
        result = asyncio.run(pipeline.run(package_dir))
    except MessageError as exc:
        print_error(escape(str(exc)))
        sys.exit(1)

    print_result(result)
    if result.success:
        print_success("Build completed successfully!")
    else:
        print_error("Build failed.")
        sys.exit(1)


if __name__ == "__main__":
    main()
