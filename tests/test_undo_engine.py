"""Tests for validating and replaying undo ledgers."""

from __future__ import annotations

from pathlib import Path

import pytest

from assetprep.naming import SanitizationOptions, optimize_names
from assetprep.undo import (
    LedgerRepository,
    UndoEngine,
    UndoStatus,
    UndoValidationError,
    undo_optimization,
)


@pytest.fixture()
def library(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    (root / "Sub Dir" / "Inner Folder").mkdir(parents=True)
    (root / "Sub Dir" / "Inner Folder" / "My File.TXT").write_text("inner", encoding="utf-8")
    (root / "Sub Dir" / "Other File.txt").write_text("other", encoding="utf-8")
    (root / "Top File.txt").write_text("top", encoding="utf-8")
    return root.resolve()


def _optimize(root: Path) -> Path:
    result = optimize_names(root, SanitizationOptions())
    assert result.ledger_path is not None
    return result.ledger_path


def _tree(root: Path) -> set[str]:
    return {
        path.relative_to(root).as_posix()
        for path in root.rglob("*")
        if ".assetprep" not in path.relative_to(root).parts
    }


ORIGINAL_TREE = {
    "Sub Dir",
    "Sub Dir/Inner Folder",
    "Sub Dir/Inner Folder/My File.TXT",
    "Sub Dir/Other File.txt",
    "Top File.txt",
}


def test_undo_restores_original_tree(library: Path) -> None:
    ledger_path = _optimize(library)
    assert _tree(library) == {
        "sub_dir",
        "sub_dir/inner_folder",
        "sub_dir/inner_folder/my_file.txt",
        "sub_dir/other_file.txt",
        "top_file.txt",
    }

    summary = undo_optimization(ledger_path)

    assert summary.total == 5
    assert summary.restored == 5
    assert summary.failed == 0
    assert _tree(library) == ORIGINAL_TREE
    assert (library / "Sub Dir" / "Inner Folder" / "My File.TXT").read_text(
        encoding="utf-8"
    ) == "inner"
    assert summary.audit_log_path is not None
    assert Path(summary.audit_log_path).is_file()


def test_files_replay_before_directories(library: Path) -> None:
    ledger_path = _optimize(library)

    summary = UndoEngine().undo(ledger_path)

    types = [result.type.value for result in summary.results]
    assert types == ["File", "File", "File", "Directory", "Directory"]
    assert summary.results[3].target_path == str(library / "Sub Dir")


def test_missing_entry_aborts_without_force(library: Path) -> None:
    ledger_path = _optimize(library)
    (library / "top_file.txt").unlink()

    with pytest.raises(UndoValidationError) as excinfo:
        UndoEngine().undo(ledger_path)

    assert len(excinfo.value.failures) == 1
    assert "missing" in excinfo.value.failures[0].message
    assert (library / "sub_dir").is_dir()
    assert not (library / "Sub Dir").exists()


def test_force_skips_missing_entries_and_restores_the_rest(library: Path) -> None:
    ledger_path = _optimize(library)
    (library / "top_file.txt").unlink()

    summary = UndoEngine(force=True).undo(ledger_path)

    assert summary.restored == 4
    assert summary.skipped == 1
    assert len(summary.failures) == 1
    assert (library / "Sub Dir" / "Other File.txt").is_file()


def test_existing_original_blocks_undo(library: Path) -> None:
    ledger_path = _optimize(library)
    (library / "Top File.txt").write_text("intruder", encoding="utf-8")

    with pytest.raises(UndoValidationError, match="validation failed"):
        UndoEngine().undo(ledger_path)


def test_force_moves_existing_originals_into_backup(library: Path, tmp_path: Path) -> None:
    ledger_path = _optimize(library)
    (library / "Top File.txt").write_text("intruder", encoding="utf-8")
    backup = tmp_path / "backup"

    summary = UndoEngine(force=True, backup_dir=backup).undo(ledger_path)

    assert summary.restored == 5
    assert (library / "Top File.txt").read_text(encoding="utf-8") == "top"
    assert (backup / "Top File.txt").read_text(encoding="utf-8") == "intruder"


def test_force_without_backup_replaces_existing_originals(library: Path) -> None:
    ledger_path = _optimize(library)
    (library / "Top File.txt").write_text("intruder", encoding="utf-8")

    summary = UndoEngine(force=True).undo(ledger_path)

    assert summary.restored == 5
    assert (library / "Top File.txt").read_text(encoding="utf-8") == "top"


def test_dry_run_changes_nothing(library: Path) -> None:
    ledger_path = _optimize(library)
    before = _tree(library)

    summary = UndoEngine(dry_run=True).undo(ledger_path)

    assert summary.what_if == 5
    assert summary.skipped == 0
    assert summary.audit_log_path is None
    assert _tree(library) == before
    audits = [path for path in ledger_path.parent.iterdir() if ".undo-" in path.name]
    assert audits == []


def test_modified_files_produce_warnings_only(library: Path) -> None:
    ledger_path = _optimize(library)
    (library / "top_file.txt").write_text("much longer content", encoding="utf-8")

    summary = UndoEngine().undo(ledger_path)

    assert summary.restored == 5
    assert any("Size changed" in issue.message for issue in summary.warnings)
    assert all(not issue.blocking for issue in summary.warnings)


def test_latest_ledger_is_discoverable_after_a_run(library: Path) -> None:
    ledger_path = _optimize(library)

    assert LedgerRepository().latest(library) == ledger_path


def test_replay_results_carry_statuses(library: Path) -> None:
    ledger_path = _optimize(library)

    summary = UndoEngine().undo(ledger_path)

    assert {result.status for result in summary.results} == {UndoStatus.SUCCESS}
