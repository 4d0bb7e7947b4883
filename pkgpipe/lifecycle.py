"""Builder lifecycle contract.

A builder is any module or object exposing some subset of four coroutine
hooks, called by the orchestrator in strict global phase order:

    manifest(manifest, options)   default-fill package manifest fields
    before_build(options)         validate preconditions, fail fast
    build(options)                write artifacts into ``options.out``
    after_job(options)            post-process the finished output tree

Builders are probed for each hook individually; none of them is mandatory.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pkgpipe.reporter import Reporter

HOOK_ORDER: tuple[str, ...] = ("manifest", "before_build", "build", "after_job")


class MessageError(Exception):
    """A build failure whose message is meant for the user as-is."""


@dataclass(frozen=True)
class SourceFiles:
    """Absolute paths of the package source files handed to ``build``."""

    files: list[Path] = field(default_factory=list)


@dataclass(frozen=True)
class BuildOptions:
    """Per-invocation context passed to every hook.

    Attributes:
        cwd: Absolute package directory.
        out: Absolute, pre-existing output directory.
        src: Source files of the package.
        options: Builder-specific options bag (validated by each builder).
        reporter: Side channel for user-visible progress and diagnostics.
    """

    cwd: Path
    out: Path
    src: SourceFiles = field(default_factory=SourceFiles)
    options: dict[str, Any] = field(default_factory=dict)
    reporter: Reporter = field(default_factory=Reporter)

    def with_options(self, options: dict[str, Any]) -> "BuildOptions":
        """Return a copy carrying a different builder options bag."""
        return BuildOptions(
            cwd=self.cwd,
            out=self.out,
            src=self.src,
            options=dict(options),
            reporter=self.reporter,
        )


Hook = Callable[..., Awaitable[None] | None]


def hook_for(builder: Any, name: str) -> Hook | None:
    """Return the builder's *name* hook if it implements one, else ``None``."""
    if name not in HOOK_ORDER:
        raise ValueError(f"Unknown lifecycle hook: {name!r}")
    hook = getattr(builder, name, None)
    return hook if callable(hook) else None


def builder_name(builder: Any) -> str:
    """Human-readable name of a builder module or object."""
    name = getattr(builder, "name", None)
    if isinstance(name, str) and name:
        return name
    return getattr(builder, "__name__", type(builder).__name__)


async def call_hook(hook: Hook, *args: Any) -> None:
    """Invoke a hook, awaiting it when it returns an awaitable."""
    result = hook(*args)
    if inspect.isawaitable(result):
        await result
