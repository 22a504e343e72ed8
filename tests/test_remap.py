"""Tests for renamed-directory path resolution."""

from __future__ import annotations

from pathlib import Path

from assetprep.naming.remap import EMPTY_SNAPSHOT, RenamedPathIndex, resolve_path


def test_unmatched_paths_are_returned_unchanged() -> None:
    path = Path("/root/docs/file.txt")

    assert resolve_path(path, EMPTY_SNAPSHOT) == path
    assert RenamedPathIndex().resolve(path) == path


def test_recorded_directory_rewrites_descendants() -> None:
    index = RenamedPathIndex()
    index.record(Path("/root/My Docs"), Path("/root/my_docs"))

    assert index.resolve(Path("/root/My Docs")) == Path("/root/my_docs")
    assert index.resolve(Path("/root/My Docs/a b.txt")) == Path("/root/my_docs/a b.txt")


def test_prefix_match_respects_component_boundaries() -> None:
    index = RenamedPathIndex()
    index.record(Path("/root/Docs"), Path("/root/docs"))

    assert index.resolve(Path("/root/Docs2/file.txt")) == Path("/root/Docs2/file.txt")


def test_nested_renames_resolve_in_one_lookup() -> None:
    index = RenamedPathIndex()
    index.record(Path("/root/Outer/Inner Dir"), Path("/root/Outer/inner_dir"))
    index.record(Path("/root/Outer"), Path("/root/outer"))

    assert index.resolve(Path("/root/Outer/Inner Dir/f.txt")) == Path("/root/outer/inner_dir/f.txt")
    assert index.resolve(Path("/root/Outer/Other/f.txt")) == Path("/root/outer/Other/f.txt")


def test_child_recorded_after_parent_uses_current_parent() -> None:
    index = RenamedPathIndex()
    index.record(Path("/root/Outer"), Path("/root/outer"))
    index.record(Path("/root/Outer/Inner Dir"), Path("/root/Outer/inner_dir"))

    assert index.resolve(Path("/root/Outer/Inner Dir/f.txt")) == Path("/root/outer/inner_dir/f.txt")


def test_snapshots_are_immutable() -> None:
    index = RenamedPathIndex()
    index.record(Path("/root/A"), Path("/root/a"))
    before = index.snapshot()

    index.record(Path("/root/B"), Path("/root/b"))
    after = index.snapshot()

    assert len(before) == 1
    assert len(after) == 2
    assert resolve_path(Path("/root/B/x"), before) == Path("/root/B/x")
    assert resolve_path(Path("/root/B/x"), after) == Path("/root/b/x")
    assert before.keys == ("/root/A",)


def test_longest_key_wins() -> None:
    index = RenamedPathIndex()
    index.record(Path("/root/A/B C"), Path("/root/A/b_c"))
    snapshot = index.snapshot()

    assert snapshot.keys[0] == "/root/A/B C"
    assert resolve_path(Path("/root/A/B C/d"), snapshot) == Path("/root/A/b_c/d")
