"""Unit tests for manifest helpers (pkgpipe.manifest).

Tests cover:
- default_field never overwrites truthy values
- default_field fills absent and falsy values with exactly the default
- load_manifest / save_manifest
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pkgpipe.lifecycle import MessageError
from pkgpipe.manifest import default_field, load_manifest, save_manifest


class TestDefaultField:
    @pytest.mark.unit
    @pytest.mark.parametrize("existing", ["lib/types.d.ts", ["a"], {"x": 1}, 1, True])
    def test_truthy_value_is_kept(self, existing):
        manifest = {"types": existing}
        assert default_field(manifest, "types", "dist-types/index.d.ts") is False
        assert manifest["types"] == existing

    @pytest.mark.unit
    @pytest.mark.parametrize("falsy", [None, "", 0, False, [], {}])
    def test_falsy_value_is_replaced(self, falsy):
        manifest = {"types": falsy}
        assert default_field(manifest, "types", "dist-types/index.d.ts") is True
        assert manifest["types"] == "dist-types/index.d.ts"

    @pytest.mark.unit
    def test_absent_key_is_added_and_nothing_else(self):
        manifest = {"name": "my-lib", "version": "1.0.0"}
        default_field(manifest, "deno", "dist-deno/index.ts")
        assert manifest == {
            "name": "my-lib",
            "version": "1.0.0",
            "deno": "dist-deno/index.ts",
        }

    @pytest.mark.unit
    def test_value_shape_is_not_validated(self):
        manifest: dict = {}
        default_field(manifest, "source", {"not": "a path"})
        assert manifest["source"] == {"not": "a path"}

    @pytest.mark.unit
    def test_order_of_defaulting_modules_does_not_matter(self):
        first: dict = {}
        default_field(first, "types", "dist-types/index.d.ts")
        default_field(first, "types", "other/index.d.ts")

        second: dict = {"types": "dist-types/index.d.ts"}
        default_field(second, "types", "other/index.d.ts")

        assert first == second


class TestLoadSaveManifest:
    @pytest.mark.unit
    def test_load(self, package_dir: Path):
        manifest = load_manifest(package_dir)
        assert manifest["name"] == "my-lib"

    @pytest.mark.unit
    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(MessageError, match="manifest not found"):
            load_manifest(tmp_path)

    @pytest.mark.unit
    def test_load_invalid_json(self, tmp_path: Path):
        (tmp_path / "package.json").write_text("{nope", encoding="utf-8")
        with pytest.raises(MessageError, match="not valid JSON"):
            load_manifest(tmp_path)

    @pytest.mark.unit
    def test_load_non_object(self, tmp_path: Path):
        (tmp_path / "package.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(MessageError, match="JSON object"):
            load_manifest(tmp_path)

    @pytest.mark.unit
    def test_load_object_with_any_keys(self, tmp_path: Path):
        (tmp_path / "package.json").write_text('{"_root": "x"}', encoding="utf-8")
        assert load_manifest(tmp_path) == {"_root": "x"}

    @pytest.mark.unit
    def test_save_writes_pretty_json(self, tmp_path: Path):
        path = save_manifest({"name": "x", "types": "dist-types/index.d.ts"}, tmp_path / "pkg")
        assert path == tmp_path / "pkg" / "package.json"
        text = path.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text) == {"name": "x", "types": "dist-types/index.d.ts"}
