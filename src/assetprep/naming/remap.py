"""Tracking of directories renamed during a run.

Entries are discovered before anything is renamed, so a path captured at
discovery time goes stale as soon as one of its ancestors is renamed. The
index records each directory rename and resolves stale paths to their
current location with a single longest-prefix lookup.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class RenamePathSnapshot:
    """Immutable view of the rename index handed to worker threads.

    Attributes:
        mapping: Original directory path to current directory path.
        keys: Mapping keys ordered longest first.
    """

    mapping: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    keys: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.keys)


EMPTY_SNAPSHOT = RenamePathSnapshot()


def _matches(key: str, candidate: str) -> bool:
    return candidate == key or candidate.startswith(key.rstrip(os.sep) + os.sep)


def _longest_match(path: str, snapshot: RenamePathSnapshot) -> Optional[str]:
    for key in snapshot.keys:
        if _matches(key, path):
            return key
    return None


def resolve_path(path: Path, snapshot: RenamePathSnapshot) -> Path:
    """Return where ``path`` lives now, given the renames in ``snapshot``.

    The longest recorded directory that equals ``path`` or contains it is
    substituted once; unmatched paths are returned unchanged.
    """

    raw = str(path)
    key = _longest_match(raw, snapshot)
    if key is None:
        return path
    return Path(snapshot.mapping[key] + raw[len(key) :])


class RenamedPathIndex:
    """Run-scoped, lock-protected map of renamed directories.

    Writes happen on the coordinating thread between phases; workers only
    ever see the immutable snapshots returned by :meth:`snapshot`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._mapping: dict[str, str] = {}
        self._snapshot: RenamePathSnapshot | None = EMPTY_SNAPSHOT

    def __len__(self) -> int:
        with self._lock:
            return len(self._mapping)

    def record(self, original: Path, new: Path) -> None:
        """Record that directory ``original`` now lives at ``new``.

        Args:
            original: Directory path as originally discovered.
            new: Directory path after the rename.
        """

        with self._lock:
            current = self._current_snapshot()
            original_key = str(original)
            new_value = str(resolve_path(new, current))
            for key, value in list(self._mapping.items()):
                if _matches(original_key, value):
                    self._mapping[key] = new_value + value[len(original_key) :]
            self._mapping[original_key] = new_value
            self._snapshot = None

    def snapshot(self) -> RenamePathSnapshot:
        """Return an immutable snapshot of the current index."""
        with self._lock:
            return self._current_snapshot()

    def resolve(self, path: Path) -> Path:
        """Resolve ``path`` against the current index."""
        return resolve_path(path, self.snapshot())

    def _current_snapshot(self) -> RenamePathSnapshot:
        if self._snapshot is None:
            keys = tuple(sorted(self._mapping, key=len, reverse=True))
            self._snapshot = RenamePathSnapshot(
                mapping=MappingProxyType(dict(self._mapping)),
                keys=keys,
            )
        return self._snapshot


__all__ = [
    "RenamePathSnapshot",
    "EMPTY_SNAPSHOT",
    "resolve_path",
    "RenamedPathIndex",
]
