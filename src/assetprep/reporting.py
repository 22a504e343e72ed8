"""CSV and JSON export of operation records."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from assetprep.naming.models import OperationRecord

LOGGER = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".json")

REPORT_FIELDS = [
    "operation_id",
    "type",
    "status",
    "source_path",
    "original_path",
    "new_path",
    "original_name",
    "new_name",
    "error",
    "timestamp",
    "parent_directory",
    "last_write_time",
    "file_size",
    "dependencies",
]


def _row(record: OperationRecord) -> dict[str, Any]:
    data = record.model_dump(mode="json")
    data["dependencies"] = ";".join(str(dep) for dep in record.dependencies)
    return {name: "" if data.get(name) is None else data[name] for name in REPORT_FIELDS}


def export_records(records: Iterable[OperationRecord], path: Path) -> Path:
    """Write ``records`` to ``path`` as CSV or JSON, chosen by suffix.

    Args:
        records: Operation records to export, written in id order.
        path: Destination ending in ``.csv`` or ``.json``.

    Returns:
        Path: The written report.

    Raises:
        ValueError: If the suffix is neither ``.csv`` nor ``.json``.
    """

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported report format '{path.suffix}'; use .csv or .json.")

    ordered = sorted(records, key=lambda record: record.operation_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".json":
        payload = [record.model_dump(mode="json") for record in ordered]
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    else:
        with path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=REPORT_FIELDS)
            writer.writeheader()
            for record in ordered:
                writer.writerow(_row(record))

    LOGGER.info("Exported %d record(s) to %s.", len(ordered), path)
    return path


__all__ = ["export_records", "REPORT_FIELDS", "SUPPORTED_SUFFIXES"]
