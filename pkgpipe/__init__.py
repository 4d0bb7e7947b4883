"""pkgpipe: a pluggable package-build pipeline.

Builders cooperate through a four-hook lifecycle to turn a source package into
publishable artifact flavors while default-filling the package manifest.

Key pieces:
    Pipeline              - loads builders and runs the lifecycle phases
    BuildOptions          - per-hook context (cwd, out, src files, options, reporter)
    Reporter              - user-facing messages and "created" notifications
    default_field         - non-clobbering manifest default-fill
    load_compiler_config  - tsconfig.json loader with ``extends`` resolution
    generate_declarations - dist-types/ fallback chain
    materialize_files     - path-rewriting copy into an alternate output tree
    run_binary            - external compiler invocation
"""

from .config import BuilderEntry, PipelineConfig
from .declarations import DeclarationError, DeclarationStrategy, generate_declarations
from .lifecycle import HOOK_ORDER, BuildOptions, MessageError, SourceFiles, hook_for
from .manifest import default_field, load_manifest, save_manifest
from .materialize import materialize_files
from .pipeline import Pipeline, PipelineResult
from .process import CommandResult, ProcessError, run_binary
from .reporter import Artifact, Reporter
from .tsconfig import (
    CompilerConfig,
    CompilerConfigError,
    check_compiler_config,
    load_compiler_config,
    resolve_config_path,
)

__all__ = [
    # Orchestration
    "Pipeline",
    "PipelineResult",
    "PipelineConfig",
    "BuilderEntry",
    # Lifecycle
    "HOOK_ORDER",
    "BuildOptions",
    "SourceFiles",
    "MessageError",
    "hook_for",
    # Manifest
    "default_field",
    "load_manifest",
    "save_manifest",
    # Compiler configuration
    "CompilerConfig",
    "CompilerConfigError",
    "check_compiler_config",
    "load_compiler_config",
    "resolve_config_path",
    # Artifacts
    "generate_declarations",
    "DeclarationError",
    "DeclarationStrategy",
    "materialize_files",
    "run_binary",
    "CommandResult",
    "ProcessError",
    "Reporter",
    "Artifact",
]
