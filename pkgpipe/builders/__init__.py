"""Builders shipped with pkgpipe.

Each submodule is a builder: a module exposing a ``name`` and any subset of
the lifecycle hooks ``manifest``, ``before_build``, ``build`` and
``after_job``.

    build_types   - dist-types/index.d.ts through the declaration fallback chain
    standard_pkg  - dist-src/ (ES2018, ESNext modules) and dist-types/ via tsc
    deno          - dist-deno/ mirror of src/ for the Deno runtime
"""

from . import build_types, deno, standard_pkg

__all__ = ["build_types", "deno", "standard_pkg"]
