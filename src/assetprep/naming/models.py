"""Data models shared by the name optimization components."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SpaceReplacement(str, Enum):
    """How whitespace runs are rewritten during sanitization."""

    REMOVE = "remove"
    DASH = "dash"
    UNDERSCORE = "underscore"


class OperationType(str, Enum):
    """Kind of filesystem object an operation touched."""

    FILE = "File"
    DIRECTORY = "Directory"


class OperationStatus(str, Enum):
    """Outcome of a single rename or copy attempt."""

    SUCCESS = "Success"
    FAILED = "Failed"
    SKIPPED = "Skipped"
    ALREADY_OPTIMIZED = "AlreadyOptimized"
    WHAT_IF = "WhatIf"


class ConflictKind(str, Enum):
    """Reasons a proposed rename cannot proceed."""

    DUPLICATE = "Duplicate"
    EXISTING = "Existing"
    PARENT_SKIPPED = "ParentSkipped"


class SanitizationOptions(BaseModel):
    """Immutable options controlling name sanitization.

    Attributes:
        remove_metadata: Strip bracketed metadata groups and dimension suffixes.
        space_replacement: Strategy applied to whitespace runs.
        expand_ampersand: Rewrite ``&`` as ``_and_`` instead of ``_``.
        preserve_case: Keep the base name's case instead of lowercasing it.
        lowercase_extensions: Lowercase file extensions independently of the base name.
        force: Overwrite existing targets instead of skipping them.
    """

    model_config = ConfigDict(frozen=True)

    remove_metadata: bool = False
    space_replacement: SpaceReplacement = SpaceReplacement.UNDERSCORE
    expand_ampersand: bool = False
    preserve_case: bool = False
    lowercase_extensions: bool = True
    force: bool = False


class Entry(BaseModel):
    """Filesystem object captured during discovery.

    Attributes:
        path: Absolute path at discovery time.
        name: Leaf name at discovery time.
        is_directory: Whether the entry is a directory.
        extension: File extension including the leading dot; empty for directories.
        size_bytes: File size in bytes (zero for directories).
        modified_at: Last-modified timestamp captured at discovery.
        depth: Number of path segments below the discovery root.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    name: str
    is_directory: bool = False
    extension: str = ""
    size_bytes: int = 0
    modified_at: Optional[datetime] = None
    depth: int = 1


class RenamePlan(BaseModel):
    """Proposed transformation for one entry."""

    model_config = ConfigDict(frozen=True)

    original_path: Path
    original_name: str
    new_name: str
    new_path: Path

    @property
    def needs_change(self) -> bool:
        """Return whether the plan actually renames anything."""
        return self.new_name != self.original_name


class Conflict(BaseModel):
    """Conflict reported for one or more rename plans.

    Attributes:
        kind: Why the plan is blocked.
        target_path: The contested destination.
        source_paths: Every source path that resolves to ``target_path``.
    """

    model_config = ConfigDict(frozen=True)

    kind: ConflictKind
    target_path: Path
    source_paths: List[Path] = Field(default_factory=list)

    def describe(self) -> str:
        """Return a human-readable reason suitable for a skipped record."""
        if self.kind is ConflictKind.DUPLICATE:
            sources = ", ".join(path.name for path in self.source_paths)
            return f"Duplicate target {self.target_path.name} (claimed by {sources})"
        if self.kind is ConflictKind.PARENT_SKIPPED:
            return f"Parent directory skipped as duplicate target {self.target_path.name}"
        return f"Target already exists: {self.target_path}"


class OperationRecord(BaseModel):
    """Immutable result of attempting one rename or copy."""

    model_config = ConfigDict(frozen=True)

    operation_id: int
    type: OperationType
    source_path: Path
    original_path: Path
    new_path: Path
    original_name: str
    new_name: str
    status: OperationStatus
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    parent_directory: Path
    last_write_time: Optional[datetime] = None
    file_size: Optional[int] = None
    dependencies: List[int] = Field(default_factory=list)


class RunSummary(BaseModel):
    """Per-status counts for an optimize-names run."""

    total: int = 0
    renamed: int = 0
    skipped: int = 0
    failed: int = 0
    what_if: int = 0
    already_optimized: int = 0

    @classmethod
    def from_records(cls, records: Iterable[OperationRecord]) -> "RunSummary":
        """Tally records by status."""
        counts = Counter(record.status for record in records)
        return cls(
            total=sum(counts.values()),
            renamed=counts[OperationStatus.SUCCESS],
            skipped=counts[OperationStatus.SKIPPED],
            failed=counts[OperationStatus.FAILED],
            what_if=counts[OperationStatus.WHAT_IF],
            already_optimized=counts[OperationStatus.ALREADY_OPTIMIZED],
        )

    def add(self, other: "RunSummary") -> "RunSummary":
        """Return a summary combining this one with ``other``."""
        return RunSummary(
            total=self.total + other.total,
            renamed=self.renamed + other.renamed,
            skipped=self.skipped + other.skipped,
            failed=self.failed + other.failed,
            what_if=self.what_if + other.what_if,
            already_optimized=self.already_optimized + other.already_optimized,
        )


__all__ = [
    "SpaceReplacement",
    "OperationType",
    "OperationStatus",
    "ConflictKind",
    "SanitizationOptions",
    "Entry",
    "RenamePlan",
    "Conflict",
    "OperationRecord",
    "RunSummary",
]
