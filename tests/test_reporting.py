"""Tests for record export."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from assetprep.naming.models import OperationRecord, OperationStatus, OperationType
from assetprep.reporting import REPORT_FIELDS, export_records


def _record(operation_id: int, name: str, **extra: object) -> OperationRecord:
    source = Path("/library") / name
    return OperationRecord(
        operation_id=operation_id,
        type=OperationType.FILE,
        source_path=source,
        original_path=source,
        new_path=source.with_name(name.lower().replace(" ", "_")),
        original_name=name,
        new_name=name.lower().replace(" ", "_"),
        status=OperationStatus.SUCCESS,
        parent_directory=source.parent,
        **extra,
    )


def test_csv_export_orders_by_id_and_flattens_fields(tmp_path: Path) -> None:
    records = [
        _record(2, "B File.txt", file_size=4),
        _record(1, "A Dir", dependencies=[2, 3]),
    ]
    path = tmp_path / "reports" / "run.csv"

    export_records(records, path)

    with path.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert list(rows[0]) == REPORT_FIELDS
    assert [row["operation_id"] for row in rows] == ["1", "2"]
    assert rows[0]["dependencies"] == "2;3"
    assert rows[0]["error"] == ""
    assert rows[0]["file_size"] == ""
    assert rows[1]["file_size"] == "4"
    assert rows[1]["status"] == "Success"


def test_json_export_writes_a_list(tmp_path: Path) -> None:
    path = tmp_path / "run.json"

    export_records([_record(5, "Some File.md", error=None)], path)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert isinstance(payload, list)
    assert payload[0]["new_name"] == "some_file.md"
    assert payload[0]["type"] == "File"
    assert payload[0]["dependencies"] == []


def test_export_rejects_unknown_suffix(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Unsupported report format"):
        export_records([], tmp_path / "run.xlsx")
    assert not (tmp_path / "run.xlsx").exists()
