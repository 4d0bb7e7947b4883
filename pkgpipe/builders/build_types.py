"""Declaration-only builder: ``dist-types/index.d.ts``."""

from __future__ import annotations

from pkgpipe.config import BuildTypesOptions
from pkgpipe.declarations import generate_declarations, import_toolchain
from pkgpipe.lifecycle import BuildOptions, MessageError
from pkgpipe.manifest import Manifest, default_field
from pkgpipe.tsconfig import resolve_config_path

name = "build-types"


async def manifest(manifest: Manifest, options: BuildOptions) -> None:
    default_field(manifest, "types", "dist-types/index.d.ts")


async def before_build(options: BuildOptions) -> None:
    """Fail early when an explicitly requested tsconfig does not exist."""
    settings = BuildTypesOptions.model_validate(options.options)
    config_path = resolve_config_path(options.cwd, settings.tsconfig)
    if settings.explicit_tsconfig and not config_path.exists():
        raise MessageError(f'"{config_path}" file does not exist.')


async def build(options: BuildOptions) -> None:
    settings = BuildTypesOptions.model_validate(options.options)
    await generate_declarations(
        options.cwd,
        options.out,
        options.reporter,
        tsconfig=settings.tsconfig,
        toolchain=settings.toolchain,
        toolchain_loader=import_toolchain,
    )
