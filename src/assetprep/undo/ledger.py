"""Undo ledger construction and persistence."""

from __future__ import annotations

import json
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from assetprep.naming.discovery import DEFAULT_STATE_DIRNAME
from assetprep.naming.models import OperationRecord, OperationStatus, OperationType

from .errors import LedgerFormatError, MissingLedgerError
from .models import LedgerMetadata, LedgerOperation, UndoLedger, UndoSummary

LEDGER_SUBDIR = "undo"
LEDGER_PREFIX = "rename-"
AUDIT_MARKER = ".undo-"


def build_ledger(
    records: Iterable[OperationRecord],
    *,
    root: Path,
    settings: Mapping[str, Any] | None = None,
    timestamp: datetime | None = None,
) -> UndoLedger:
    """Build an undo ledger from the successful records of a run.

    Each directory lists the ids of every successful operation discovered
    beneath it. Ancestors are found by walking each record's discovery path
    upwards against a lookup of renamed directories.

    Args:
        records: Operation records from the run, in any order.
        root: Root directory of the run.
        settings: Settings snapshot stored in the metadata.
        timestamp: Ledger timestamp; defaults to now.

    Returns:
        UndoLedger: Ledger containing only successful operations, ordered by id.
    """

    successes = sorted(
        (record for record in records if record.status is OperationStatus.SUCCESS),
        key=lambda record: record.operation_id,
    )
    renamed_directories = {
        record.source_path: record.operation_id
        for record in successes
        if record.type is OperationType.DIRECTORY
    }

    dependencies: dict[int, list[int]] = defaultdict(list)
    for record in successes:
        for ancestor in record.source_path.parents:
            owner = renamed_directories.get(ancestor)
            if owner is not None:
                dependencies[owner].append(record.operation_id)
            if ancestor == root:
                break

    operations = [
        LedgerOperation(
            operation_id=record.operation_id,
            type=record.type,
            original_path=str(record.original_path),
            new_path=str(record.new_path),
            original_name=record.original_name,
            new_name=record.new_name,
            parent_directory=str(record.parent_directory),
            timestamp=record.timestamp,
            last_write_time=record.last_write_time,
            file_size=record.file_size,
            dependencies=sorted(dependencies.get(record.operation_id, [])),
        )
        for record in successes
    ]
    metadata = LedgerMetadata(
        timestamp=timestamp or datetime.now(timezone.utc),
        root_path=str(root),
        total_operations=len(operations),
        settings=dict(settings or {}),
    )
    return UndoLedger(metadata=metadata, operations=operations)


class LedgerRepository:
    """Persist and locate undo ledgers for a root."""

    def __init__(self, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        """Initialize the repository with an optional base directory name.

        Args:
            base_dirname: Name of the directory under a root that stores ledgers.
        """
        self._base_dirname = base_dirname

    @property
    def base_dirname(self) -> str:
        """Return the directory name used for run state."""
        return self._base_dirname

    def ledger_dir(self, root: Path) -> Path:
        """Return the directory holding ledgers for ``root``."""
        return root / self._base_dirname / LEDGER_SUBDIR

    def default_path(self, root: Path, timestamp: datetime | None = None) -> Path:
        """Return a timestamped ledger path under ``root``."""
        moment = timestamp or datetime.now(timezone.utc)
        stamp = moment.strftime("%Y%m%dT%H%M%S%fZ")
        return self.ledger_dir(root) / f"{LEDGER_PREFIX}{stamp}.json"

    def save(self, ledger: UndoLedger, path: Path) -> Path:
        """Write ``ledger`` as JSON to ``path``.

        Args:
            ledger: Ledger to persist.
            path: Destination file; parent directories are created.

        Returns:
            Path: The written path.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = ledger.model_dump(mode="json")
        path.write_text(json.dumps(payload, indent=2, sort_keys=False), encoding="utf-8")
        return path

    def load(self, path: Path) -> UndoLedger:
        """Load and validate a ledger.

        Args:
            path: Ledger file to read.

        Returns:
            UndoLedger: Validated ledger.

        Raises:
            MissingLedgerError: If ``path`` does not exist.
            LedgerFormatError: If the file is not valid JSON, lacks a metadata
                section, has no operations, or references unknown dependencies.
        """
        if not path.is_file():
            raise MissingLedgerError(f"No undo ledger found at {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise LedgerFormatError(f"Invalid undo ledger data: {exc}") from exc

        if not isinstance(data, dict):
            raise LedgerFormatError("Undo ledger must contain a JSON object.")
        if not isinstance(data.get("metadata"), dict):
            raise LedgerFormatError("Undo ledger is missing its metadata section.")
        operations = data.get("operations")
        if not isinstance(operations, list) or not operations:
            raise LedgerFormatError("Undo ledger has no operations to restore.")

        try:
            return UndoLedger.model_validate(data)
        except ValidationError as exc:
            raise LedgerFormatError(f"Invalid undo ledger contents: {exc}") from exc

    def latest(self, root: Path) -> Path:
        """Return the most recent ledger written for ``root``.

        Raises:
            MissingLedgerError: If no ledger exists for ``root``.
        """
        directory = self.ledger_dir(root)
        candidates: list[Path] = []
        if directory.is_dir():
            candidates = sorted(
                path
                for path in directory.glob(f"{LEDGER_PREFIX}*.json")
                if AUDIT_MARKER not in path.name
            )
        if not candidates:
            raise MissingLedgerError(f"No undo ledgers found under {directory}")
        return candidates[-1]

    def write_results(self, ledger_path: Path, summary: UndoSummary, *, dry_run: bool) -> Path:
        """Write the undo audit log next to ``ledger_path``.

        Args:
            ledger_path: Ledger that was replayed.
            summary: Replay outcome to record.
            dry_run: Whether the replay was simulated.

        Returns:
            Path: Location of the audit log.
        """
        moment = datetime.now(timezone.utc)
        stamp = moment.strftime("%Y%m%dT%H%M%S%fZ")
        path = ledger_path.with_name(f"{ledger_path.stem}{AUDIT_MARKER}{stamp}.json")
        payload = {
            "metadata": {
                "timestamp": moment.isoformat(),
                "ledger_path": str(ledger_path),
                "dry_run": dry_run,
                "total": summary.total,
                "restored": summary.restored,
                "skipped": summary.skipped,
                "failed": summary.failed,
                "what_if": summary.what_if,
            },
            "warnings": [issue.model_dump(mode="json") for issue in summary.warnings],
            "failures": [issue.model_dump(mode="json") for issue in summary.failures],
            "results": [result.model_dump(mode="json") for result in summary.results],
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return path


__all__ = ["build_ledger", "LedgerRepository", "LEDGER_SUBDIR", "LEDGER_PREFIX"]
