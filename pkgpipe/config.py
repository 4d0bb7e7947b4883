"""pkgpipe configuration.

Typed configuration for the orchestrator and for each builder's options bag.
All settings are Pydantic v2 models, validated at construction time and
serialisable to/from JSON or environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BUILDERS = [
    "pkgpipe.builders.standard_pkg",
    "pkgpipe.builders.build_types",
    "pkgpipe.builders.deno",
]


class TypeScriptOptions(BaseModel):
    """Options shared by every builder that reads a compiler configuration."""

    model_config = ConfigDict(extra="allow")

    tsconfig: str | None = Field(
        default=None,
        description="Compiler configuration file, relative to the package directory",
    )

    @property
    def explicit_tsconfig(self) -> bool:
        """Whether the user named a configuration file instead of the default."""
        return bool(self.tsconfig)


class BuildTypesOptions(TypeScriptOptions):
    """Options for the declaration-only builder."""

    toolchain: str = Field(
        default="typescript",
        description="Importable module used for best-effort declaration generation",
    )


class StandardPkgOptions(TypeScriptOptions):
    """Options for the ES2018/ESNext compile builder."""

    expected_target: str = Field(default="es2018")
    expected_module: str = Field(default="esnext")
    lint: bool = Field(default=True, description="Run standard-pkg after the build")


class BuilderEntry(BaseModel):
    """A builder to load, by dotted import path, with its options bag."""

    path: str
    options: dict[str, Any] = Field(default_factory=dict)


class PipelineConfig(BaseModel):
    """Orchestrator configuration.

    Instances are typically created once by the CLI and handed to
    ``Pipeline``.
    """

    out_dir: Path = Field(default=Path("./pkg"))
    source_dir: str = Field(default="src")
    builders: list[BuilderEntry] = Field(
        default_factory=lambda: [BuilderEntry(path=p) for p in DEFAULT_BUILDERS]
    )

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "PipelineConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a ``PipelineConfig`` from environment variables.

        Recognised variables (all optional):
            PKGPIPE_OUT_DIR, PKGPIPE_SOURCE_DIR, PKGPIPE_BUILDERS (comma
            separated dotted paths), PKGPIPE_TSCONFIG (applied to every builder).
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("PKGPIPE_OUT_DIR"):
            kwargs["out_dir"] = Path(os.environ["PKGPIPE_OUT_DIR"])
        if os.environ.get("PKGPIPE_SOURCE_DIR"):
            kwargs["source_dir"] = os.environ["PKGPIPE_SOURCE_DIR"]

        names = os.environ.get("PKGPIPE_BUILDERS", ",".join(DEFAULT_BUILDERS))
        options: dict[str, Any] = {}
        if os.environ.get("PKGPIPE_TSCONFIG"):
            options["tsconfig"] = os.environ["PKGPIPE_TSCONFIG"]
        kwargs["builders"] = [
            BuilderEntry(path=name.strip(), options=dict(options))
            for name in names.split(",")
            if name.strip()
        ]
        return cls(**kwargs)
