"""Orchestration of an optimize-names run."""

from __future__ import annotations

import gc
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from assetprep.undo.ledger import LedgerRepository, build_ledger

from .conflicts import find_duplicate_targets, index_by_source
from .discovery import DEFAULT_STATE_DIRNAME, DiscoveryPlanner, DiscoveryResult
from .errors import PlanningError
from .executor import OperationExecutor
from .models import (
    Conflict,
    ConflictKind,
    Entry,
    OperationRecord,
    OperationStatus,
    RenamePlan,
    RunSummary,
    SanitizationOptions,
)
from .parallel import MAX_THROTTLE_LIMIT, MIN_THROTTLE_LIMIT, ParallelCoordinator
from .remap import RenamedPathIndex
from .sanitizer import sanitize_filename

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class OptimizationResult:
    """Outcome of an optimize-names run.

    Attributes:
        root: Resolved root directory.
        summary: Per-status counts over every processed entry.
        records: Operation records; only successes when records are not retained.
        ledger_path: Undo ledger written for the run, if any.
        dry_run: Whether the run was simulated.
        output_root: Output root when the run copied instead of renaming.
    """

    root: Path
    summary: RunSummary = field(default_factory=RunSummary)
    records: list[OperationRecord] = field(default_factory=list)
    ledger_path: Optional[Path] = None
    dry_run: bool = False
    output_root: Optional[Path] = None


class NameOptimizer:
    """Rename (or copy) every entry under a root into its sanitized form.

    Directories are processed first on the calling thread, deepest first, and
    each successful rename is recorded in a :class:`RenamedPathIndex`. Files
    follow in chunks, either sequentially or on a bounded worker pool, all
    resolving their current location through the same index snapshot.
    """

    def __init__(
        self,
        options: SanitizationOptions,
        *,
        planner: DiscoveryPlanner | None = None,
        dry_run: bool = False,
        parallel: bool = False,
        throttle_limit: int = 8,
        output_root: Path | None = None,
        repository: LedgerRepository | None = None,
        retain_records: bool = True,
        progress: ProgressCallback | None = None,
    ) -> None:
        if not MIN_THROTTLE_LIMIT <= throttle_limit <= MAX_THROTTLE_LIMIT:
            raise PlanningError(
                f"Throttle limit must be between {MIN_THROTTLE_LIMIT} and "
                f"{MAX_THROTTLE_LIMIT} (got {throttle_limit})."
            )
        self.options = options
        self.planner = planner or DiscoveryPlanner()
        self.dry_run = dry_run
        self.parallel = parallel
        self.throttle_limit = throttle_limit
        self.output_root = output_root.expanduser().resolve() if output_root else None
        self.repository = repository or LedgerRepository(self.planner.state_dirname)
        self.retain_records = retain_records
        self.progress = progress

    def run(self, root: Path, *, undo_log_path: Path | None = None) -> OptimizationResult:
        """Optimize names under ``root``.

        Args:
            root: Directory whose contents are renamed; the root itself is kept.
            undo_log_path: Explicit ledger destination; defaults to a timestamped
                file under the root's state directory.

        Returns:
            OptimizationResult: Summary, records, and the ledger location.

        Raises:
            PlanningError: If the root or output root is invalid. Raised before
                anything on disk changes.
        """

        discovery = self.planner.discover(root)
        root = discovery.root
        self._check_output_root(root)

        index = RenamedPathIndex()
        executor = OperationExecutor(
            self.options,
            root=root,
            index=index,
            dry_run=self.dry_run,
            output_root=self.output_root,
        )
        duplicates = self._duplicate_targets(discovery, executor)
        coordinator = ParallelCoordinator(executor, self.throttle_limit) if self.parallel else None

        result = OptimizationResult(root=root, dry_run=self.dry_run, output_root=self.output_root)
        total = discovery.total_entries
        completed = 0

        LOGGER.info("Processing %d directories under %s.", len(discovery.directories), root)
        directory_records = [
            executor.process_directory(entry, duplicates) for entry in discovery.directories
        ]
        self._collect(result, directory_records)
        completed += len(directory_records)
        self._report(completed, total)

        snapshot = index.snapshot()
        for number, chunk in enumerate(discovery.iter_file_chunks(), start=1):
            LOGGER.info(
                "Processing file chunk %d/%d (%d files).",
                number,
                discovery.total_file_chunks,
                len(chunk),
            )
            if coordinator is not None:
                chunk_records = coordinator.run(chunk, snapshot, duplicates)
            else:
                chunk_records = [executor.process(entry, snapshot, duplicates) for entry in chunk]
            self._collect(result, chunk_records)
            completed += len(chunk)
            self._report(completed, total)
            del chunk_records
            gc.collect()

        if not self.dry_run and not executor.copy_mode:
            self._write_ledger(result, undo_log_path)

        LOGGER.info(
            "Run finished: total=%d renamed=%d skipped=%d failed=%d",
            result.summary.total,
            result.summary.renamed,
            result.summary.skipped,
            result.summary.failed,
        )
        return result

    def settings_snapshot(self) -> dict[str, Any]:
        """Return the options and run parameters stored in the ledger metadata."""
        snapshot = self.options.model_dump(mode="json")
        snapshot.update(
            {
                "recursive": self.planner.recursive,
                "chunk_size": self.planner.chunk_size,
                "parallel": self.parallel,
                "throttle_limit": self.throttle_limit,
                "include_extensions": sorted(self.planner.include_extensions),
                "exclude_extensions": sorted(self.planner.exclude_extensions),
                "include_hidden": self.planner.include_hidden,
            }
        )
        return snapshot

    def _check_output_root(self, root: Path) -> None:
        if self.output_root is None:
            return
        if self.output_root == root or self.output_root.is_relative_to(root):
            raise PlanningError(
                f"Output root {self.output_root} must not be inside the source root {root}."
            )

    def _duplicate_targets(
        self, discovery: DiscoveryResult, executor: OperationExecutor
    ) -> dict[Path, Conflict]:
        """Plan every entry once so duplicates are judged across the whole tree.

        In copy mode targets are the full mirrored destinations, and everything
        below a directory skipped as a duplicate is blocked as well.
        """

        def plans(entries: Iterable[Entry]) -> Iterable[RenamePlan]:
            for entry in entries:
                new_name = sanitize_filename(entry.name, entry.is_directory, self.options)
                if executor.copy_mode:
                    new_path = executor.destination(entry)
                else:
                    new_path = entry.path.with_name(new_name)
                yield RenamePlan(
                    original_path=entry.path,
                    original_name=entry.name,
                    new_name=new_name,
                    new_path=new_path,
                )

        conflicts = find_duplicate_targets(plans([*discovery.directories, *discovery.files]))
        if conflicts:
            LOGGER.info("Found %d duplicate rename target(s).", len(conflicts))
        indexed = index_by_source(conflicts)
        if executor.copy_mode and indexed:
            indexed.update(self._blocked_descendants(discovery, indexed))
        return indexed

    @staticmethod
    def _blocked_descendants(
        discovery: DiscoveryResult, duplicates: Mapping[Path, Conflict]
    ) -> dict[Path, Conflict]:
        skipped = {
            entry.path: duplicates[entry.path]
            for entry in discovery.directories
            if entry.path in duplicates
        }
        if not skipped:
            return {}

        blocked: dict[Path, Conflict] = {}
        for entry in [*discovery.directories, *discovery.files]:
            if entry.path in duplicates:
                continue
            ancestor = next((parent for parent in entry.path.parents if parent in skipped), None)
            if ancestor is None:
                continue
            blocked[entry.path] = Conflict(
                kind=ConflictKind.PARENT_SKIPPED,
                target_path=skipped[ancestor].target_path,
                source_paths=[entry.path],
            )
        if blocked:
            LOGGER.info("Skipping %d entries below duplicate directories.", len(blocked))
        return blocked

    def _collect(self, result: OptimizationResult, records: Sequence[OperationRecord]) -> None:
        result.summary = result.summary.add(RunSummary.from_records(records))
        if self.retain_records:
            result.records.extend(records)
        else:
            result.records.extend(
                record for record in records if record.status is OperationStatus.SUCCESS
            )

    def _report(self, completed: int, total: int) -> None:
        if self.progress is not None:
            self.progress(completed, total)

    def _write_ledger(self, result: OptimizationResult, undo_log_path: Path | None) -> None:
        ledger = build_ledger(
            result.records, root=result.root, settings=self.settings_snapshot()
        )
        if not ledger.operations:
            LOGGER.info("No successful renames; skipping undo ledger.")
            return

        path = undo_log_path or self.repository.default_path(result.root)
        result.ledger_path = self.repository.save(ledger, path)
        LOGGER.info("Wrote undo ledger with %d operation(s) to %s.", len(ledger.operations), path)

        dependencies = {
            operation.operation_id: operation.dependencies
            for operation in ledger.operations
            if operation.dependencies
        }
        if dependencies:
            result.records = [
                record.model_copy(update={"dependencies": dependencies[record.operation_id]})
                if record.operation_id in dependencies
                else record
                for record in result.records
            ]


def optimize_names(
    root: Path,
    options: SanitizationOptions,
    *,
    dry_run: bool = False,
    parallel: bool = False,
    throttle_limit: int = 8,
    chunk_size: int = 5_000,
    undo_log_path: Path | None = None,
    output_root: Path | None = None,
    recursive: bool = True,
    include_extensions: Iterable[str] = (),
    exclude_extensions: Iterable[str] = (),
    include_hidden: bool = False,
    state_dirname: str = DEFAULT_STATE_DIRNAME,
    retain_records: bool = True,
    progress: ProgressCallback | None = None,
) -> OptimizationResult:
    """Run a complete optimize-names pass over ``root``.

    Returns:
        OptimizationResult: Summary, records, and ledger location for the run.
    """

    planner = DiscoveryPlanner(
        recursive=recursive,
        chunk_size=chunk_size,
        include_extensions=include_extensions,
        exclude_extensions=exclude_extensions,
        include_hidden=include_hidden,
        state_dirname=state_dirname,
    )
    optimizer = NameOptimizer(
        options,
        planner=planner,
        dry_run=dry_run,
        parallel=parallel,
        throttle_limit=throttle_limit,
        output_root=output_root,
        retain_records=retain_records,
        progress=progress,
    )
    return optimizer.run(root, undo_log_path=undo_log_path)


__all__ = ["NameOptimizer", "OptimizationResult", "ProgressCallback", "optimize_names"]
