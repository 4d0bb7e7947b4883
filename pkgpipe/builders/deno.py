"""Deno builder: copies ``src/`` into ``dist-deno/`` unchanged.

Only packages with a compiler configuration are written in TypeScript, and
only those get a Deno tree; without one every hook is a silent no-op.
"""

from __future__ import annotations

from pkgpipe.config import TypeScriptOptions
from pkgpipe.lifecycle import BuildOptions
from pkgpipe.manifest import Manifest, default_field
from pkgpipe.materialize import materialize_files
from pkgpipe.tsconfig import resolve_config_path

name = "deno"

DENO_DIR = "dist-deno"


def _has_tsconfig(options: BuildOptions) -> bool:
    settings = TypeScriptOptions.model_validate(options.options)
    return resolve_config_path(options.cwd, settings.tsconfig).exists()


async def manifest(manifest: Manifest, options: BuildOptions) -> None:
    if not _has_tsconfig(options):
        return
    default_field(manifest, "deno", f"{DENO_DIR}/index.ts")


async def build(options: BuildOptions) -> None:
    if not _has_tsconfig(options):
        return
    written = materialize_files(
        options.src.files, options.cwd, options.out, segment="src", replacement=DENO_DIR
    )
    if written:
        options.reporter.created(options.out / DENO_DIR / "index.ts", "deno")
