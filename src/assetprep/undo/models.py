"""Undo ledger and replay data models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from assetprep.naming.models import OperationType


class LedgerMetadata(BaseModel):
    """Context captured when a ledger is written.

    Attributes:
        timestamp: When the optimize run finished.
        root_path: Root directory of the run.
        total_operations: Number of operations stored in the ledger.
        settings: Snapshot of the sanitization options and run parameters.
    """

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    root_path: str
    total_operations: int
    settings: Dict[str, Any] = Field(default_factory=dict)


class LedgerOperation(BaseModel):
    """A successful rename recorded for undo."""

    operation_id: int
    type: OperationType
    original_path: str
    new_path: str
    original_name: str
    new_name: str
    parent_directory: str
    timestamp: datetime
    last_write_time: Optional[datetime] = None
    file_size: Optional[int] = None
    dependencies: List[int] = Field(default_factory=list)


class UndoLedger(BaseModel):
    """Persisted record of a run's successful renames."""

    metadata: LedgerMetadata
    operations: List[LedgerOperation] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_dependencies(self) -> "UndoLedger":
        known = {operation.operation_id for operation in self.operations}
        for operation in self.operations:
            missing = [dep for dep in operation.dependencies if dep not in known]
            if missing:
                raise ValueError(
                    f"Operation {operation.operation_id} depends on unknown operation(s) "
                    f"{missing}."
                )
        return self


class UndoStatus(str, Enum):
    """Outcome of replaying one ledger operation."""

    SUCCESS = "Success"
    FAILED = "Failed"
    SKIPPED = "Skipped"
    WHAT_IF = "WhatIf"


class UndoResult(BaseModel):
    """Result of restoring one operation."""

    operation_id: int
    type: OperationType
    current_path: str
    target_path: str
    status: UndoStatus
    error: Optional[str] = None


class ValidationIssue(BaseModel):
    """Mismatch between the ledger and the tree found before replay.

    Attributes:
        operation_id: Operation the issue concerns.
        path: Path that was checked.
        message: Description of the mismatch.
        blocking: Whether the issue prevents undo without ``force``.
    """

    operation_id: int
    path: str
    message: str
    blocking: bool = False


class UndoSummary(BaseModel):
    """Counts and details for an undo run."""

    total: int = 0
    restored: int = 0
    skipped: int = 0
    failed: int = 0
    what_if: int = 0
    warnings: List[ValidationIssue] = Field(default_factory=list)
    failures: List[ValidationIssue] = Field(default_factory=list)
    results: List[UndoResult] = Field(default_factory=list)
    audit_log_path: Optional[str] = None


__all__ = [
    "LedgerMetadata",
    "LedgerOperation",
    "UndoLedger",
    "UndoStatus",
    "UndoResult",
    "ValidationIssue",
    "UndoSummary",
]
