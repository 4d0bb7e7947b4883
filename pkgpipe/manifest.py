"""Package manifest helpers.

The manifest is the package's ``package.json`` as a plain dict.  Builders only
ever add to it: a field that already holds a value belongs to the user.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pkgpipe.lifecycle import MessageError
from pkgpipe.utils import load_json, save_json

Manifest = dict[str, Any]

MANIFEST_FILENAME = "package.json"


def default_field(manifest: Manifest, key: str, value: Any) -> bool:
    """Set ``manifest[key] = value`` unless the field already has a truthy value.

    Returns:
        ``True`` if the field was written.
    """
    if manifest.get(key):
        return False
    manifest[key] = value
    return True


def load_manifest(cwd: str | Path) -> Manifest:
    """Read ``<cwd>/package.json``.

    Raises:
        MessageError: If the file is missing, unparsable or not an object.
    """
    path = Path(cwd) / MANIFEST_FILENAME
    if not path.is_file():
        raise MessageError(f'"{path}" manifest not found.')
    try:
        data = load_json(path)
    except json.JSONDecodeError as exc:
        raise MessageError(f'"{path}" is not valid JSON: {exc}') from exc
    except TypeError as exc:
        raise MessageError(f'"{path}" must contain a JSON object.') from exc
    return data


def save_manifest(manifest: Manifest, out: str | Path) -> Path:
    """Write the manifest to ``<out>/package.json`` and return its path."""
    return save_json(manifest, Path(out) / MANIFEST_FILENAME)
