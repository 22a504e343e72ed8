"""Conflict detection for proposed renames."""

from __future__ import annotations

import os
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Sequence

from .models import Conflict, ConflictKind, RenamePlan


def target_key(path: Path) -> str:
    """Return the case-insensitive comparison key for a target path."""
    return os.path.normcase(str(path)).casefold()


def is_same_entry(source: Path, target: Path) -> bool:
    """Return whether ``target`` refers to ``source`` itself.

    Case-only renames on case-insensitive filesystems report the target as
    existing even though it is the source entry.
    """

    if target_key(source) != target_key(target):
        return False
    try:
        return os.path.samefile(source, target)
    except OSError:
        return True


def find_duplicate_targets(plans: Iterable[RenamePlan]) -> list[Conflict]:
    """Report targets claimed by more than one plan.

    Args:
        plans: Proposed renames for a batch.

    Returns:
        list[Conflict]: One Duplicate conflict per contested target, listing every source.
    """

    claims: dict[str, list[RenamePlan]] = defaultdict(list)
    for plan in plans:
        claims[target_key(plan.new_path)].append(plan)

    conflicts: list[Conflict] = []
    for claimants in claims.values():
        sources = {target_key(plan.original_path): plan.original_path for plan in claimants}
        if len(sources) < 2:
            continue
        conflicts.append(
            Conflict(
                kind=ConflictKind.DUPLICATE,
                target_path=claimants[0].new_path,
                source_paths=sorted(sources.values()),
            )
        )
    return conflicts


def find_existing_targets(plans: Iterable[RenamePlan], force: bool) -> list[Conflict]:
    """Report plans whose target already exists on disk.

    Args:
        plans: Proposed renames to check against the filesystem.
        force: When true, existing targets are allowed and nothing is reported.

    Returns:
        list[Conflict]: One Existing conflict per blocked plan.
    """

    if force:
        return []

    conflicts: list[Conflict] = []
    for plan in plans:
        if not plan.needs_change:
            continue
        target = plan.new_path
        if not (target.exists() or target.is_symlink()):
            continue
        if is_same_entry(plan.original_path, target):
            continue
        conflicts.append(
            Conflict(
                kind=ConflictKind.EXISTING,
                target_path=target,
                source_paths=[plan.original_path],
            )
        )
    return conflicts


def detect_conflicts(plans: Sequence[RenamePlan], force: bool) -> list[Conflict]:
    """Return duplicate and pre-existing target conflicts for ``plans``.

    Force suppresses Existing conflicts only; two sources can never share a target.
    """

    return [*find_duplicate_targets(plans), *find_existing_targets(plans, force)]


def index_by_source(conflicts: Iterable[Conflict]) -> dict[Path, Conflict]:
    """Map every source path named by ``conflicts`` to its conflict."""
    indexed: dict[Path, Conflict] = {}
    for conflict in conflicts:
        for source in conflict.source_paths:
            indexed.setdefault(source, conflict)
    return indexed


__all__ = [
    "target_key",
    "is_same_entry",
    "find_duplicate_targets",
    "find_existing_targets",
    "detect_conflicts",
    "index_by_source",
]
