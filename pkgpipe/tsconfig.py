"""TypeScript compiler configuration resolver and validator.

Loading a ``tsconfig.json`` happens in two phases:

1. **Raw load** -- read the file verbatim.  A missing file is an error of its
   own (``ENOENT``); an empty file is read fine and reported by the parser.
2. **Resolve & merge** -- parse the comment-tolerant JSON and follow the
   ``extends`` chain, merging every base below the file that extends it.
   Problems found along the way are collected, and reported together in a
   single :class:`CompilerConfigError` that names the root config path.

:func:`check_compiler_config` is advisory only: a target/module drift is
reported as a warning and never fails the build.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pkgpipe.lifecycle import MessageError
from pkgpipe.reporter import Reporter
from pkgpipe.utils import load_jsonc

DEFAULT_TSCONFIG = "tsconfig.json"
EXPECTED_TARGET = "es2018"
EXPECTED_MODULE = "esnext"

KNOWN_TARGETS = frozenset({
    "es3", "es5", "es6", "es2015", "es2016", "es2017", "es2018", "es2019",
    "es2020", "es2021", "es2022", "es2023", "es2024", "esnext",
})
KNOWN_MODULES = frozenset({
    "none", "commonjs", "amd", "umd", "system", "es6", "es2015", "es2020",
    "es2022", "esnext", "node16", "node18", "nodenext", "preserve",
})

# Options holding paths; they are relative to the file that declares them.
PATH_OPTIONS = (
    "outDir", "rootDir", "baseUrl", "declarationDir", "outFile", "tsBuildInfoFile",
)

# Top-level pattern lists, resolved against the file that declares them.
FILE_LIST_SETTINGS = ("files", "include", "exclude")


class CompilerConfigError(MessageError):
    """Raised when a compiler configuration cannot be read or resolved."""

    def __init__(self, message: str, path: str | Path, errors: list[str] | None = None) -> None:
        self.path = Path(path)
        self.errors = list(errors or [])
        super().__init__(message)


@dataclass(frozen=True)
class CompilerConfig:
    """Fully merged view of a compiler configuration file."""

    path: Path
    compiler_options: dict[str, Any] = field(default_factory=dict)
    files: list[str] | None = None
    include: list[str] | None = None
    exclude: list[str] | None = None
    extends_chain: tuple[Path, ...] = ()

    @property
    def target(self) -> str | None:
        value = self.compiler_options.get("target")
        return value.lower() if isinstance(value, str) else None

    @property
    def module(self) -> str | None:
        value = self.compiler_options.get("module")
        return value.lower() if isinstance(value, str) else None


def _normalize(path: str | Path) -> Path:
    return Path(os.path.normpath(os.path.abspath(path)))


def resolve_config_path(cwd: str | Path, tsconfig: str | None = None) -> Path:
    """Absolute path of *tsconfig* (default ``tsconfig.json``) relative to *cwd*."""
    return _normalize(Path(cwd) / (tsconfig or DEFAULT_TSCONFIG))


def read_config_file(path: str | Path) -> str:
    """Read a configuration file verbatim.

    Raises:
        CompilerConfigError: If the file does not exist or cannot be read.
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise CompilerConfigError(
            f"ENOENT: no such file or directory, open '{path}'", path
        ) from exc
    except OSError as exc:
        raise CompilerConfigError(f"Cannot read '{path}': {exc}", path) from exc


def _package_tsconfig(package_dir: Path) -> Path | None:
    package_json = package_dir / "package.json"
    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            data = {}
        field_value = data.get("tsconfig") if isinstance(data, dict) else None
        if isinstance(field_value, str) and (package_dir / field_value).is_file():
            return _normalize(package_dir / field_value)
    candidate = package_dir / DEFAULT_TSCONFIG
    return _normalize(candidate) if candidate.is_file() else None


def resolve_extends(specifier: str, base_dir: Path) -> Path | None:
    """Locate the file an ``extends`` entry refers to, or ``None``.

    Relative and absolute specifiers are resolved against *base_dir*, with a
    ``.json`` suffix tried when the bare name does not exist.  Anything else
    is a package specifier looked up in ``node_modules`` directories from
    *base_dir* upwards.
    """
    if specifier.startswith(("./", "../")) or os.path.isabs(specifier):
        candidate = _normalize(base_dir / specifier)
        if candidate.is_file():
            return candidate
        if not specifier.endswith(".json"):
            with_suffix = Path(f"{candidate}.json")
            if with_suffix.is_file():
                return with_suffix
        return None

    for directory in (base_dir, *base_dir.parents):
        target = directory / "node_modules" / specifier
        if target.is_file():
            return _normalize(target)
        if not specifier.endswith(".json") and Path(f"{target}.json").is_file():
            return _normalize(Path(f"{target}.json"))
        if target.is_dir():
            found = _package_tsconfig(target)
            if found is not None:
                return found
    return None


class _ConfigResolver:
    """Walks an ``extends`` chain, collecting every error it meets."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.visited: list[Path] = []

    def load(self, path: Path, text: str | None, stack: tuple[Path, ...]) -> dict[str, Any]:
        if path in stack:
            cycle = " -> ".join(str(p) for p in (*stack, path))
            self.errors.append(f"Circularity detected while resolving configuration: {cycle}")
            return {}
        self.visited.append(path)

        if text is None:
            try:
                text = read_config_file(path)
            except CompilerConfigError as exc:
                self.errors.append(str(exc))
                return {}

        if not text.strip():
            self.errors.append(f"{path}: The file is empty.")
            return {}

        try:
            raw = load_jsonc(text)
        except json.JSONDecodeError as exc:
            self.errors.append(f"{path}: {exc}")
            return {}
        if not isinstance(raw, dict):
            self.errors.append(f"{path}: The root value must be an object.")
            return {}

        own = self._own_settings(path, raw)

        extends = raw.get("extends")
        if extends is None:
            return own
        if isinstance(extends, str):
            specifiers = [extends]
        elif isinstance(extends, list) and all(isinstance(s, str) for s in extends):
            specifiers = extends
        else:
            self.errors.append(f"{path}: 'extends' must be a string or a list of strings.")
            return own

        merged: dict[str, Any] = {}
        for specifier in specifiers:
            base_path = resolve_extends(specifier, path.parent)
            if base_path is None:
                self.errors.append(f"{path}: Cannot find base configuration '{specifier}'.")
                continue
            merged = _merge(merged, self.load(base_path, None, (*stack, path)))
        return _merge(merged, own)

    def _own_settings(self, path: Path, raw: dict[str, Any]) -> dict[str, Any]:
        settings = {k: v for k, v in raw.items() if k not in ("extends", "compilerOptions")}
        for key in FILE_LIST_SETTINGS:
            value = settings.get(key)
            if isinstance(value, list):
                settings[key] = [
                    str(_normalize(path.parent / entry)) if isinstance(entry, str) else entry
                    for entry in value
                ]
        options = raw.get("compilerOptions", {})
        if not isinstance(options, dict):
            self.errors.append(f"{path}: 'compilerOptions' must be an object.")
            options = {}
        options = dict(options)
        for key in PATH_OPTIONS:
            value = options.get(key)
            if isinstance(value, str):
                options[key] = str(_normalize(path.parent / value))
        settings["compilerOptions"] = options
        return settings


def _merge(base: dict[str, Any], child: dict[str, Any]) -> dict[str, Any]:
    merged = {**base, **child}
    merged["compilerOptions"] = {
        **base.get("compilerOptions", {}),
        **child.get("compilerOptions", {}),
    }
    return merged


def _check_enum(options: dict[str, Any], key: str, allowed: frozenset[str]) -> str | None:
    value = options.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or value.lower() not in allowed:
        choices = ", ".join(sorted(allowed))
        return f"Argument for '--{key}' option must be one of: {choices} (got {value!r})."
    return None


def load_compiler_config(path: str | Path) -> CompilerConfig:
    """Read, parse and fully resolve the configuration at *path*.

    Raises:
        CompilerConfigError: If the file is missing (raised straight from the
            raw load), or if parsing / ``extends`` resolution produced errors.
            In the latter case ``exc.errors`` lists every problem found.
    """
    config_path = _normalize(path)
    text = read_config_file(config_path)

    resolver = _ConfigResolver()
    merged = resolver.load(config_path, text, ())
    options = merged.get("compilerOptions", {})

    for key, allowed in (("target", KNOWN_TARGETS), ("module", KNOWN_MODULES)):
        problem = _check_enum(options, key, allowed)
        if problem:
            resolver.errors.append(f"{config_path}: {problem}")

    if resolver.errors:
        formatted = "\n".join(resolver.errors)
        raise CompilerConfigError(
            f"Some errors occurred while attempting to read from {config_path}: {formatted}",
            config_path,
            resolver.errors,
        )

    return CompilerConfig(
        path=config_path,
        compiler_options=options,
        files=merged.get("files"),
        include=merged.get("include"),
        exclude=merged.get("exclude"),
        extends_chain=tuple(resolver.visited),
    )


def check_compiler_config(
    config: CompilerConfig,
    reporter: Reporter,
    target: str = EXPECTED_TARGET,
    module: str = EXPECTED_MODULE,
) -> list[str]:
    """Warn when the resolved target/module differ from the expected baseline.

    Returns:
        The warnings that were reported (empty when everything matches).
    """
    warnings: list[str] = []
    name = config.path.name
    for key, expected, actual in (
        ("target", target, config.target),
        ("module", module, config.module),
    ):
        if actual != expected.lower():
            found = config.compiler_options.get(key)
            warnings.append(
                f'{name} [compilerOptions.{key}] should be "{expected}", but found '
                f'"{found}". You may encounter problems building.'
            )
    for message in warnings:
        reporter.warning(message)
    return warnings
