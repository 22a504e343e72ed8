"""Bounded worker pool for the file phase of a run."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Mapping, Sequence

from .errors import PlanningError
from .executor import OperationExecutor
from .models import Conflict, Entry, OperationRecord
from .remap import RenamePathSnapshot

LOGGER = logging.getLogger(__name__)

MIN_THROTTLE_LIMIT = 1
MAX_THROTTLE_LIMIT = 32


def partition(items: Sequence[Entry], parts: int) -> list[Sequence[Entry]]:
    """Split ``items`` into at most ``parts`` contiguous, roughly equal batches."""
    if not items:
        return []
    parts = max(1, min(parts, len(items)))
    size, remainder = divmod(len(items), parts)
    batches: list[Sequence[Entry]] = []
    start = 0
    for index in range(parts):
        end = start + size + (1 if index < remainder else 0)
        batches.append(items[start:end])
        start = end
    return batches


class ParallelCoordinator:
    """Fan files out across a thread pool and join the resulting records.

    Only files are ever dispatched here. Directories are renamed on the
    coordinating thread beforehand, so workers share a read-only snapshot of
    the renamed-directory index.
    """

    def __init__(self, executor: OperationExecutor, throttle_limit: int) -> None:
        if not MIN_THROTTLE_LIMIT <= throttle_limit <= MAX_THROTTLE_LIMIT:
            raise PlanningError(
                f"Throttle limit must be between {MIN_THROTTLE_LIMIT} and "
                f"{MAX_THROTTLE_LIMIT} (got {throttle_limit})."
            )
        self.executor = executor
        self.throttle_limit = throttle_limit

    def run(
        self,
        files: Sequence[Entry],
        snapshot: RenamePathSnapshot,
        duplicates: Mapping[Path, Conflict] | None = None,
    ) -> list[OperationRecord]:
        """Process ``files`` on up to ``throttle_limit`` workers.

        Args:
            files: File entries to process.
            snapshot: Renamed-directory snapshot shared by every worker.
            duplicates: Duplicate-target conflicts keyed by discovered path.

        Returns:
            list[OperationRecord]: Records in completion order, not input order.
        """

        batches = partition(files, self.throttle_limit)
        if not batches:
            return []

        records: list[OperationRecord] = []
        with ThreadPoolExecutor(
            max_workers=len(batches), thread_name_prefix="assetprep-rename"
        ) as pool:
            futures = {
                pool.submit(self._run_batch, batch, snapshot, duplicates): batch
                for batch in batches
            }
            for future in as_completed(futures):
                batch = futures[future]
                try:
                    records.extend(future.result())
                except Exception as exc:  # pragma: no cover - defensive safeguard
                    LOGGER.error("Worker batch failed unexpectedly: %s", exc)
                    records.extend(self.executor.failed_record(entry, exc) for entry in batch)
        LOGGER.debug(
            "Parallel phase processed %d file(s) in %d batch(es).", len(files), len(batches)
        )
        return records

    def _run_batch(
        self,
        batch: Sequence[Entry],
        snapshot: RenamePathSnapshot,
        duplicates: Mapping[Path, Conflict] | None,
    ) -> list[OperationRecord]:
        results: list[OperationRecord] = []
        for entry in batch:
            try:
                results.append(self.executor.process(entry, snapshot, duplicates))
            except Exception as exc:  # pragma: no cover - defensive safeguard
                LOGGER.error("Unexpected error processing %s: %s", entry.path, exc)
                results.append(self.executor.failed_record(entry, exc))
        return results


__all__ = ["ParallelCoordinator", "partition", "MIN_THROTTLE_LIMIT", "MAX_THROTTLE_LIMIT"]
