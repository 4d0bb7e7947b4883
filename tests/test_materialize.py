"""Unit tests for the path-rewriting copy stage (pkgpipe.materialize)."""

from __future__ import annotations

import random
from pathlib import Path, PurePath

import pytest

from pkgpipe.lifecycle import MessageError
from pkgpipe.materialize import materialize_files, rewrite_segment


class TestRewriteSegment:
    @pytest.mark.unit
    def test_rewrites_first_src_only(self):
        assert rewrite_segment(PurePath("src/src/a.ts"), "src", "dist-deno") == PurePath(
            "dist-deno/src/a.ts"
        )

    @pytest.mark.unit
    def test_matches_whole_segments(self):
        path = PurePath("lib/srcs/a.ts")
        assert rewrite_segment(path, "src", "dist-deno") == path

    @pytest.mark.unit
    def test_nested_src(self):
        assert rewrite_segment(PurePath("packages/x/src/a.ts"), "src", "dist-deno") == PurePath(
            "packages/x/dist-deno/a.ts"
        )


class TestMaterializeFiles:
    @pytest.mark.unit
    def test_copies_into_rewritten_tree(self, package_dir: Path, out_dir: Path, source_files):
        written = materialize_files(source_files, package_dir, out_dir)

        assert written == [
            out_dir / "dist-deno" / "index.ts",
            out_dir / "dist-deno" / "util" / "math.ts",
            out_dir / "dist-deno" / "util" / "strings.ts",
        ]
        for source, destination in zip(source_files, written):
            assert destination.read_bytes() == source.read_bytes()

    @pytest.mark.unit
    def test_sources_are_untouched(self, package_dir: Path, out_dir: Path, source_files):
        before = {p: p.read_bytes() for p in source_files}
        materialize_files(source_files, package_dir, out_dir)
        assert {p: p.read_bytes() for p in source_files} == before
        assert not (package_dir / "dist-deno").exists()

    @pytest.mark.unit
    def test_binary_safe(self, package_dir: Path, out_dir: Path):
        blob = package_dir / "src" / "logo.png"
        blob.write_bytes(bytes(range(256)) * 4)
        (written,) = materialize_files([blob], package_dir, out_dir)
        assert written.read_bytes() == blob.read_bytes()

    @pytest.mark.unit
    def test_idempotent(self, package_dir: Path, out_dir: Path, source_files):
        first = materialize_files(source_files, package_dir, out_dir)
        snapshot = {p: p.read_bytes() for p in first}

        second = materialize_files(source_files, package_dir, out_dir)

        assert second == first
        assert {p: p.read_bytes() for p in second} == snapshot

    @pytest.mark.unit
    def test_overwrites_stale_destination(self, package_dir: Path, out_dir: Path, source_files):
        stale = out_dir / "dist-deno" / "index.ts"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale", encoding="utf-8")
        materialize_files(source_files, package_dir, out_dir)
        assert stale.read_bytes() == (package_dir / "src" / "index.ts").read_bytes()

    @pytest.mark.unit
    def test_order_independent(self, package_dir: Path, tmp_path: Path, source_files):
        shuffled = list(source_files)
        random.Random(7).shuffle(shuffled)

        out_a = tmp_path / "a"
        out_b = tmp_path / "b"
        materialize_files(source_files, package_dir, out_a)
        materialize_files(shuffled, package_dir, out_b)

        tree_a = {p.relative_to(out_a): p.read_bytes() for p in out_a.rglob("*") if p.is_file()}
        tree_b = {p.relative_to(out_b): p.read_bytes() for p in out_b.rglob("*") if p.is_file()}
        assert tree_a == tree_b

    @pytest.mark.unit
    def test_empty_list_is_noop(self, package_dir: Path, out_dir: Path):
        assert materialize_files([], package_dir, out_dir) == []
        assert list(out_dir.iterdir()) == []

    @pytest.mark.unit
    def test_file_without_src_segment_keeps_its_path(self, package_dir: Path, out_dir: Path):
        readme = package_dir / "README.md"
        readme.write_text("# my-lib\n", encoding="utf-8")
        (written,) = materialize_files([readme], package_dir, out_dir)
        assert written == out_dir / "README.md"

    @pytest.mark.unit
    def test_file_outside_package_is_rejected(self, package_dir: Path, out_dir: Path, tmp_path: Path):
        outsider = tmp_path / "elsewhere.ts"
        outsider.write_text("export {};\n", encoding="utf-8")
        with pytest.raises(MessageError, match="outside of the package directory"):
            materialize_files([outsider], package_dir, out_dir)
