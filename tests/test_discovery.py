"""Tests for tree discovery and chunk planning."""

from __future__ import annotations

from pathlib import Path

import pytest

from assetprep.naming.discovery import DiscoveryPlanner, normalize_extensions
from assetprep.naming.errors import PlanningError


def _build_tree(root: Path) -> None:
    (root / "Sub Dir" / "Deep Dir").mkdir(parents=True)
    (root / "Sub Dir" / "Deep Dir" / "b.txt").write_text("b", encoding="utf-8")
    (root / "Sub Dir" / "c.txt").write_text("c", encoding="utf-8")
    (root / "a.txt").write_text("a", encoding="utf-8")
    (root / "img.PNG").write_bytes(b"png")
    (root / ".hidden").mkdir()
    (root / ".hidden" / "x.txt").write_text("x", encoding="utf-8")
    (root / ".assetprep" / "undo").mkdir(parents=True)
    (root / ".assetprep" / "undo" / "rename-1.json").write_text("{}", encoding="utf-8")


def test_directories_deepest_first_and_files_sorted(tmp_path: Path) -> None:
    _build_tree(tmp_path)

    result = DiscoveryPlanner().discover(tmp_path)

    root = tmp_path.resolve()
    assert [entry.path for entry in result.directories] == [
        root / "Sub Dir" / "Deep Dir",
        root / "Sub Dir",
    ]
    assert [entry.path for entry in result.files] == sorted(
        [
            root / "Sub Dir" / "Deep Dir" / "b.txt",
            root / "Sub Dir" / "c.txt",
            root / "a.txt",
            root / "img.PNG",
        ],
        key=str,
    )
    assert result.directories[0].depth == 2
    assert result.total_entries == 6


def test_file_entries_capture_metadata(tmp_path: Path) -> None:
    _build_tree(tmp_path)

    result = DiscoveryPlanner().discover(tmp_path)

    image = next(entry for entry in result.files if entry.name == "img.PNG")
    assert image.extension == ".PNG"
    assert image.size_bytes == 3
    assert image.modified_at is not None
    assert not image.is_directory


def test_hidden_entries_included_on_request_but_state_dir_never(tmp_path: Path) -> None:
    _build_tree(tmp_path)

    result = DiscoveryPlanner(include_hidden=True).discover(tmp_path)

    names = {entry.name for entry in [*result.directories, *result.files]}
    assert ".hidden" in names
    assert "x.txt" in names
    assert ".assetprep" not in names
    assert "rename-1.json" not in names


def test_extension_filters_apply_to_files_only(tmp_path: Path) -> None:
    _build_tree(tmp_path)

    included = DiscoveryPlanner(include_extensions=["png"]).discover(tmp_path)
    excluded = DiscoveryPlanner(exclude_extensions=[".TXT"]).discover(tmp_path)

    assert [entry.name for entry in included.files] == ["img.PNG"]
    assert len(included.directories) == 2
    assert [entry.name for entry in excluded.files] == ["img.PNG"]


def test_non_recursive_discovery_stays_at_top_level(tmp_path: Path) -> None:
    _build_tree(tmp_path)

    result = DiscoveryPlanner(recursive=False).discover(tmp_path)

    assert [entry.name for entry in result.directories] == ["Sub Dir"]
    assert sorted(entry.name for entry in result.files) == ["a.txt", "img.PNG"]


def test_files_split_into_chunks(tmp_path: Path) -> None:
    for index in range(5):
        (tmp_path / f"file{index}.txt").write_text("x", encoding="utf-8")

    result = DiscoveryPlanner(chunk_size=2).discover(tmp_path)

    assert result.total_file_chunks == 3
    assert [len(chunk) for chunk in result.iter_file_chunks()] == [2, 2, 1]


def test_invalid_inputs_raise_planning_error(tmp_path: Path) -> None:
    with pytest.raises(PlanningError):
        DiscoveryPlanner(chunk_size=0)
    with pytest.raises(PlanningError):
        DiscoveryPlanner().discover(tmp_path / "missing")


def test_normalize_extensions() -> None:
    assert normalize_extensions(["PNG", ".Jpg", " ", "webp "]) == {".png", ".jpg", ".webp"}
