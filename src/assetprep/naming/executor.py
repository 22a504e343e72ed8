"""Executor that applies one sanitizing rename (or copy) at a time."""

from __future__ import annotations

import itertools
import logging
import os
import shutil
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from .conflicts import find_existing_targets, is_same_entry
from .models import (
    Conflict,
    ConflictKind,
    Entry,
    OperationRecord,
    OperationStatus,
    OperationType,
    RenamePlan,
    SanitizationOptions,
)
from .remap import EMPTY_SNAPSHOT, RenamedPathIndex, RenamePathSnapshot, resolve_path
from .sanitizer import sanitize_filename

LOGGER = logging.getLogger(__name__)

PARENT_RENAMED = "Parent directory was renamed"
SOURCE_MISSING = "Source path no longer exists"


class OperationIdAllocator:
    """Thread-safe, monotonic operation id source for a run."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        """Return the next operation id."""
        with self._lock:
            return next(self._counter)


class OperationExecutor:
    """Apply sanitizing renames and emit one record per entry.

    Directory renames go through :meth:`process_directory`, which updates the
    shared :class:`RenamedPathIndex`. File renames go through :meth:`process`,
    which only reads the snapshot it is given and is safe to call from worker
    threads.
    """

    def __init__(
        self,
        options: SanitizationOptions,
        *,
        root: Path,
        index: RenamedPathIndex | None = None,
        dry_run: bool = False,
        output_root: Path | None = None,
        ids: OperationIdAllocator | None = None,
    ) -> None:
        self.options = options
        self.root = root
        self.index = index if index is not None else RenamedPathIndex()
        self.dry_run = dry_run
        self.output_root = output_root
        self._ids = ids or OperationIdAllocator()
        self._mirror_lock = threading.Lock()
        self._mirror_names: dict[Path, str] = {}

    @property
    def copy_mode(self) -> bool:
        """Return whether operations copy into an output root instead of renaming."""
        return self.output_root is not None

    def process_directory(
        self,
        entry: Entry,
        duplicates: Mapping[Path, Conflict] | None = None,
    ) -> OperationRecord:
        """Process a directory and record a successful rename in the index.

        Must only be called from the coordinating thread.
        """

        record = self.process(entry, self.index.snapshot(), duplicates)
        if record.status is OperationStatus.SUCCESS and not self.copy_mode:
            self.index.record(entry.path, record.new_path)
        return record

    def process(
        self,
        entry: Entry,
        snapshot: RenamePathSnapshot = EMPTY_SNAPSHOT,
        duplicates: Mapping[Path, Conflict] | None = None,
    ) -> OperationRecord:
        """Apply the sanitizing rename for ``entry``.

        Args:
            entry: Discovered entry to process.
            snapshot: Renamed-directory snapshot used to locate the entry.
            duplicates: Duplicate-target conflicts keyed by discovered path.

        Returns:
            OperationRecord: Outcome of the attempt. Filesystem errors are captured
            as Failed records rather than raised.
        """

        duplicates = duplicates or {}
        if self.copy_mode:
            return self._copy(entry, duplicates)

        current = resolve_path(entry.path, snapshot)
        if not (current.exists() or current.is_symlink()):
            reason = PARENT_RENAMED if not current.parent.exists() else SOURCE_MISSING
            return self._record(entry, current, current, OperationStatus.SKIPPED, error=reason)

        new_name = sanitize_filename(entry.name, entry.is_directory, self.options)
        target = current.with_name(new_name)
        if new_name == entry.name:
            return self._record(entry, current, current, OperationStatus.ALREADY_OPTIMIZED)

        conflict = duplicates.get(entry.path)
        if conflict is None:
            plan = RenamePlan(
                original_path=current,
                original_name=entry.name,
                new_name=new_name,
                new_path=target,
            )
            existing = find_existing_targets([plan], self.options.force)
            conflict = existing[0] if existing else None
        if conflict is not None:
            return self._record(
                entry, current, target, OperationStatus.SKIPPED, error=conflict.describe()
            )

        if self.dry_run:
            return self._record(entry, current, target, OperationStatus.WHAT_IF)

        try:
            if self.options.force and target.exists() and not is_same_entry(current, target):
                os.replace(current, target)
            else:
                current.rename(target)
        except OSError as exc:
            LOGGER.warning("Rename failed for %s: %s", current, exc)
            return self._record(entry, current, target, OperationStatus.FAILED, error=str(exc))

        LOGGER.debug("Renamed %s -> %s", current, target)
        return self._record(entry, current, target, OperationStatus.SUCCESS)

    def failed_record(self, entry: Entry, error: BaseException | str) -> OperationRecord:
        """Return a Failed record for an unexpected error raised while processing ``entry``."""
        return self._record(entry, entry.path, entry.path, OperationStatus.FAILED, error=str(error))

    # ------------------------------------------------------------------ #
    # Output-copy mode                                                    #
    # ------------------------------------------------------------------ #

    def _copy(self, entry: Entry, duplicates: Mapping[Path, Conflict]) -> OperationRecord:
        if not entry.path.exists():
            return self._record(
                entry, entry.path, entry.path, OperationStatus.SKIPPED, error=SOURCE_MISSING
            )

        target = self.destination(entry)
        conflict = duplicates.get(entry.path)
        if conflict is None and not entry.is_directory and not self.options.force:
            if target.exists():
                conflict = Conflict(
                    kind=ConflictKind.EXISTING,
                    target_path=target,
                    source_paths=[entry.path],
                )
        if conflict is not None:
            return self._record(
                entry, entry.path, target, OperationStatus.SKIPPED, error=conflict.describe()
            )

        if self.dry_run:
            return self._record(entry, entry.path, target, OperationStatus.WHAT_IF)

        try:
            if entry.is_directory:
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(entry.path, target)
        except OSError as exc:
            LOGGER.warning("Copy failed for %s: %s", entry.path, exc)
            return self._record(entry, entry.path, target, OperationStatus.FAILED, error=str(exc))

        LOGGER.debug("Copied %s -> %s", entry.path, target)
        return self._record(entry, entry.path, target, OperationStatus.SUCCESS)

    def destination(self, entry: Entry) -> Path:
        """Return the mirrored path ``entry`` is copied to under the output root."""
        if entry.is_directory:
            return self._mirror_directory(entry.path)
        new_name = sanitize_filename(entry.name, False, self.options)
        return self._mirror_directory(entry.path.parent) / new_name

    def _mirror_directory(self, source_dir: Path) -> Path:
        assert self.output_root is not None
        if source_dir == self.root:
            return self.output_root
        try:
            relative = source_dir.relative_to(self.root)
        except ValueError:
            return self.output_root
        destination = self.output_root
        current = self.root
        for part in relative.parts:
            current = current / part
            destination = destination / self._mirror_name(current)
        return destination

    def _mirror_name(self, source_dir: Path) -> str:
        with self._mirror_lock:
            name = self._mirror_names.get(source_dir)
            if name is None:
                name = sanitize_filename(source_dir.name, True, self.options)
                self._mirror_names[source_dir] = name
            return name

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _record(
        self,
        entry: Entry,
        original: Path,
        new: Path,
        status: OperationStatus,
        *,
        error: Optional[str] = None,
    ) -> OperationRecord:
        return OperationRecord(
            operation_id=self._ids.next(),
            type=OperationType.DIRECTORY if entry.is_directory else OperationType.FILE,
            source_path=entry.path,
            original_path=original,
            new_path=new,
            original_name=entry.name,
            new_name=new.name,
            status=status,
            error=error,
            timestamp=datetime.now(timezone.utc),
            parent_directory=new.parent,
            last_write_time=entry.modified_at,
            file_size=None if entry.is_directory else entry.size_bytes,
        )


__all__ = [
    "OperationExecutor",
    "OperationIdAllocator",
    "PARENT_RENAMED",
    "SOURCE_MISSING",
]
