"""Two-phase replay of an undo ledger."""

from __future__ import annotations

import logging
import shutil
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path

from assetprep.naming.conflicts import is_same_entry
from assetprep.naming.models import OperationType
from assetprep.naming.remap import RenamedPathIndex, resolve_path

from .errors import UndoValidationError
from .ledger import LedgerRepository
from .models import (
    LedgerOperation,
    UndoLedger,
    UndoResult,
    UndoStatus,
    UndoSummary,
    ValidationIssue,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_MTIME_TOLERANCE = 2.0


def _exists(path: Path) -> bool:
    return path.exists() or path.is_symlink()


class UndoEngine:
    """Validate a ledger against the tree, then restore original names.

    Validation never mutates anything and aborts the whole undo on a blocking
    mismatch unless ``force`` is set. Replay restores files first, then
    directories from the most dependents to the fewest, so ancestors are
    restored before the directories beneath them; it always runs to
    completion and records every outcome.
    """

    def __init__(
        self,
        *,
        force: bool = False,
        backup_dir: Path | None = None,
        dry_run: bool = False,
        mtime_tolerance: float = DEFAULT_MTIME_TOLERANCE,
        repository: LedgerRepository | None = None,
    ) -> None:
        self.force = force
        self.backup_dir = backup_dir
        self.dry_run = dry_run
        self.mtime_tolerance = mtime_tolerance
        self.repository = repository or LedgerRepository()

    def undo(self, ledger_path: Path) -> UndoSummary:
        """Restore every operation recorded in ``ledger_path``.

        Args:
            ledger_path: Ledger written by an optimize run.

        Returns:
            UndoSummary: Per-status counts, validation issues, and replay results.

        Raises:
            LedgerFormatError: If the ledger is malformed.
            UndoValidationError: If validation fails and ``force`` is not set.
        """

        ledger = self.repository.load(ledger_path)
        warnings, failures, locations = self.validate(ledger)
        for issue in warnings:
            LOGGER.warning("Operation %d: %s", issue.operation_id, issue.message)
        if failures:
            if not self.force:
                raise UndoValidationError(
                    f"Undo validation failed for {len(failures)} operation(s); "
                    "rerun with --force to proceed anyway.",
                    failures,
                )
            for issue in failures:
                LOGGER.warning(
                    "Operation %d: %s (continuing because force is set)",
                    issue.operation_id,
                    issue.message,
                )

        results = self.replay(ledger, locations)
        counts = Counter(result.status for result in results)
        summary = UndoSummary(
            total=len(results),
            restored=counts[UndoStatus.SUCCESS],
            skipped=counts[UndoStatus.SKIPPED],
            failed=counts[UndoStatus.FAILED],
            what_if=counts[UndoStatus.WHAT_IF],
            warnings=warnings,
            failures=failures,
            results=results,
        )
        if not self.dry_run:
            audit_path = self.repository.write_results(ledger_path, summary, dry_run=self.dry_run)
            summary.audit_log_path = str(audit_path)
        LOGGER.info(
            "Undo of %s finished: restored=%d skipped=%d failed=%d",
            ledger_path,
            summary.restored,
            summary.skipped,
            summary.failed,
        )
        return summary

    # ------------------------------------------------------------------ #
    # Validate                                                           #
    # ------------------------------------------------------------------ #

    def validate(
        self, ledger: UndoLedger
    ) -> tuple[list[ValidationIssue], list[ValidationIssue], dict[int, tuple[Path, Path]]]:
        """Compare the ledger with the tree without touching it.

        Operations are walked newest first while an index of the directory
        renames already visited is built up, so each recorded path is mapped
        to where it lives now.

        Returns:
            tuple: Warnings, blocking failures, and each operation's present
            (current, original) locations keyed by operation id.
        """

        warnings: list[ValidationIssue] = []
        failures: list[ValidationIssue] = []
        locations: dict[int, tuple[Path, Path]] = {}
        index = RenamedPathIndex()

        for operation in sorted(ledger.operations, key=lambda op: op.operation_id, reverse=True):
            snapshot = index.snapshot()
            current = resolve_path(Path(operation.new_path), snapshot)
            original = resolve_path(Path(operation.original_path), snapshot)
            locations[operation.operation_id] = (current, original)

            if not _exists(current):
                failures.append(
                    ValidationIssue(
                        operation_id=operation.operation_id,
                        path=str(current),
                        message=f"Renamed path is missing: {current}",
                        blocking=True,
                    )
                )
            elif operation.type is OperationType.FILE:
                warnings.extend(self._compare_file(operation, current))

            if _exists(original) and not is_same_entry(current, original) and not self.force:
                failures.append(
                    ValidationIssue(
                        operation_id=operation.operation_id,
                        path=str(original),
                        message=f"Original path already exists: {original}",
                        blocking=True,
                    )
                )

            if operation.type is OperationType.DIRECTORY:
                index.record(Path(operation.original_path), Path(operation.new_path))

        return warnings, failures, locations

    def _compare_file(self, operation: LedgerOperation, current: Path) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        try:
            stat = current.stat()
        except OSError as exc:
            return [
                ValidationIssue(
                    operation_id=operation.operation_id,
                    path=str(current),
                    message=f"Unable to inspect {current}: {exc}",
                )
            ]
        if operation.file_size is not None and stat.st_size != operation.file_size:
            issues.append(
                ValidationIssue(
                    operation_id=operation.operation_id,
                    path=str(current),
                    message=(
                        f"Size changed since rename ({operation.file_size} -> {stat.st_size} bytes)"
                    ),
                )
            )
        if operation.last_write_time is not None:
            modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
            recorded = operation.last_write_time
            if recorded.tzinfo is None:
                recorded = recorded.replace(tzinfo=timezone.utc)
            drift = abs((modified - recorded).total_seconds())
            if drift > self.mtime_tolerance:
                issues.append(
                    ValidationIssue(
                        operation_id=operation.operation_id,
                        path=str(current),
                        message=f"Modified since rename (timestamp differs by {drift:.1f}s)",
                    )
                )
        return issues

    # ------------------------------------------------------------------ #
    # Replay                                                             #
    # ------------------------------------------------------------------ #

    def replay(
        self,
        ledger: UndoLedger,
        locations: dict[int, tuple[Path, Path]] | None = None,
    ) -> list[UndoResult]:
        """Restore every operation and return one result per operation.

        Args:
            ledger: Validated ledger.
            locations: Present locations from :meth:`validate`; used for dry runs,
                where nothing moves and recorded paths beneath renamed
                directories would otherwise look missing.

        Returns:
            list[UndoResult]: Outcomes in replay order.
        """

        root = Path(ledger.metadata.root_path)
        files = sorted(
            (op for op in ledger.operations if op.type is OperationType.FILE),
            key=lambda op: op.operation_id,
            reverse=True,
        )
        directories = sorted(
            (op for op in ledger.operations if op.type is OperationType.DIRECTORY),
            key=lambda op: (len(op.dependencies), op.operation_id),
            reverse=True,
        )

        results: list[UndoResult] = []
        for operation in [*files, *directories]:
            current = Path(operation.new_path)
            target = Path(operation.original_path)
            if self.dry_run and locations and operation.operation_id in locations:
                current, target = locations[operation.operation_id]
            results.append(self._restore(operation, current, target, root))
        return results

    def _restore(
        self,
        operation: LedgerOperation,
        current: Path,
        target: Path,
        root: Path,
    ) -> UndoResult:
        def result(status: UndoStatus, error: str | None = None) -> UndoResult:
            return UndoResult(
                operation_id=operation.operation_id,
                type=operation.type,
                current_path=str(current),
                target_path=str(target),
                status=status,
                error=error,
            )

        if not _exists(current):
            return result(UndoStatus.SKIPPED, f"Current path not found: {current}")

        if _exists(target) and not is_same_entry(current, target):
            if not self.force:
                return result(UndoStatus.SKIPPED, f"Original path already exists: {target}")
            if self.dry_run:
                return result(UndoStatus.WHAT_IF, f"Would replace existing {target}")
            try:
                self._clear_target(target, root)
            except OSError as exc:
                LOGGER.warning("Unable to clear %s: %s", target, exc)
                return result(UndoStatus.FAILED, str(exc))

        if self.dry_run:
            return result(UndoStatus.WHAT_IF)

        try:
            current.rename(target)
        except OSError as exc:
            LOGGER.warning("Restore failed for %s: %s", current, exc)
            return result(UndoStatus.FAILED, str(exc))

        LOGGER.debug("Restored %s -> %s", current, target)
        return result(UndoStatus.SUCCESS)

    def _clear_target(self, target: Path, root: Path) -> None:
        if self.backup_dir is None:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
            return

        try:
            relative = target.relative_to(root)
        except ValueError:
            relative = Path(target.name)
        destination = self.backup_dir / relative
        counter = 1
        while _exists(destination):
            destination = destination.with_name(f"{relative.stem}-{counter}{relative.suffix}")
            counter += 1
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(target), str(destination))
        LOGGER.info("Moved existing %s to backup %s", target, destination)


def undo_optimization(
    undo_log_path: Path,
    *,
    force: bool = False,
    backup_path: Path | None = None,
    dry_run: bool = False,
    mtime_tolerance: float = DEFAULT_MTIME_TOLERANCE,
) -> UndoSummary:
    """Replay ``undo_log_path`` with a one-off :class:`UndoEngine`."""
    engine = UndoEngine(
        force=force,
        backup_dir=backup_path,
        dry_run=dry_run,
        mtime_tolerance=mtime_tolerance,
    )
    return engine.undo(undo_log_path)


__all__ = ["UndoEngine", "DEFAULT_MTIME_TOLERANCE", "undo_optimization"]
