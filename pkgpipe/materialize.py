"""Path-rewriting copy stage for alternate-runtime output trees.

Source files are relocated, not transformed: ``<cwd>/src/a/b.ts`` lands at
``<out>/dist-deno/a/b.ts`` byte for byte.  Every file is handled on its own,
so the input order does not matter and re-running overwrites in place.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path, PurePath

from pkgpipe.lifecycle import MessageError


def rewrite_segment(relative: PurePath, segment: str, replacement: str) -> PurePath:
    """Replace the first path part equal to *segment* with *replacement*."""
    parts = list(relative.parts)
    for index, part in enumerate(parts):
        if part == segment:
            parts[index] = replacement
            return PurePath(*parts)
    return relative


def materialize_files(
    files: Iterable[str | Path],
    cwd: str | Path,
    out: str | Path,
    segment: str = "src",
    replacement: str = "dist-deno",
) -> list[Path]:
    """Copy each file into *out*, mirroring its place below *cwd*.

    Args:
        files: Absolute paths of the files to copy.
        cwd: Package directory the paths are relative to.
        out: Output directory receiving the rewritten tree.
        segment: Path part to rewrite (first occurrence only).
        replacement: Name that replaces *segment*.

    Returns:
        The destination paths, in input order.

    Raises:
        MessageError: If a file lies outside *cwd*.
    """
    cwd_path = Path(cwd)
    out_path = Path(out)
    written: list[Path] = []

    for file in files:
        source = Path(file)
        try:
            relative = source.relative_to(cwd_path)
        except ValueError as exc:
            raise MessageError(f'"{source}" is outside of the package directory "{cwd_path}".') from exc

        destination = out_path / rewrite_segment(relative, segment, replacement)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
        written.append(destination)

    return written
