"""ES2018 / ESNext builder driven by the project's own ``tsc``.

Writes ``dist-src/`` (transpiled sources) and ``dist-types/`` (declarations)
in one compiler run, then lints the finished output with ``standard-pkg``.
Packages without a compiler configuration are skipped silently.
"""

from __future__ import annotations

from pathlib import Path

from pkgpipe.config import StandardPkgOptions
from pkgpipe.lifecycle import BuildOptions, MessageError
from pkgpipe.manifest import Manifest, default_field
from pkgpipe.process import run_binary
from pkgpipe.tsconfig import check_compiler_config, load_compiler_config, resolve_config_path

name = "standard-pkg"


def _settings(options: BuildOptions) -> StandardPkgOptions:
    return StandardPkgOptions.model_validate(options.options)


def _bin(cwd: Path, binary: str) -> Path:
    return cwd / "node_modules" / ".bin" / binary


def _skip(options: BuildOptions, settings: StandardPkgOptions) -> bool:
    # An explicit tsconfig is never skipped; before_build reports it missing.
    if settings.explicit_tsconfig:
        return False
    return not resolve_config_path(options.cwd).exists()


async def manifest(manifest: Manifest, options: BuildOptions) -> None:
    if _skip(options, _settings(options)):
        return
    default_field(manifest, "source", "dist-src/index.js")
    default_field(manifest, "types", "dist-types/index.d.ts")


async def before_build(options: BuildOptions) -> None:
    """Check that tsc and its configuration exist, and warn on config drift."""
    settings = _settings(options)
    if _skip(options, settings):
        return

    config_path = resolve_config_path(options.cwd, settings.tsconfig)
    if not config_path.exists():
        raise MessageError(f'"{config_path}" manifest not found.')
    if not _bin(options.cwd, "tsc").exists():
        raise MessageError(
            '"tsc" executable not found. Make sure "typescript" is installed '
            "as a project dependency."
        )

    config = load_compiler_config(config_path)
    check_compiler_config(
        config,
        options.reporter,
        target=settings.expected_target,
        module=settings.expected_module,
    )


async def build(options: BuildOptions) -> None:
    settings = _settings(options)
    if _skip(options, settings):
        return

    args = [
        "--outDir",
        f"{options.out / 'dist-src'}/",
        "-d",
        "--declarationDir",
        f"{options.out / 'dist-types'}/",
        "--declarationMap",
        "false",
        "--target",
        "es2018",
        "--module",
        "esnext",
    ]
    if settings.explicit_tsconfig:
        args += ["--project", str(resolve_config_path(options.cwd, settings.tsconfig))]

    await run_binary(_bin(options.cwd, "tsc"), args, cwd=options.cwd, reporter=options.reporter)

    options.reporter.created(options.out / "dist-src" / "index.js", "esnext")
    options.reporter.created(options.out / "dist-types" / "index.d.ts", "types")


async def after_job(options: BuildOptions) -> None:
    """Lint the finished output tree with standard-pkg."""
    settings = _settings(options)
    if _skip(options, settings) or not settings.lint:
        return

    linter = _bin(options.cwd, "standard-pkg")
    if not linter.exists():
        options.reporter.warning(
            '"standard-pkg" executable not found, skipping lint of the output.'
        )
        return

    options.reporter.info("Linting with standard-pkg...")
    await run_binary(linter, ["--dist", str(options.out)], cwd=options.cwd, reporter=options.reporter)
