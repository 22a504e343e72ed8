"""Tree discovery and chunk planning for name optimization."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from .errors import PlanningError
from .models import Entry

LOGGER = logging.getLogger(__name__)

DEFAULT_STATE_DIRNAME = ".assetprep"


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


def normalize_extensions(values: Iterable[str]) -> frozenset[str]:
    """Return lowercase extensions with a leading dot (``"PNG"`` -> ``".png"``)."""
    normalized = set()
    for value in values:
        value = value.strip().lower()
        if not value:
            continue
        normalized.add(value if value.startswith(".") else f".{value}")
    return frozenset(normalized)


@dataclass
class DiscoveryResult:
    """Entries discovered under a root.

    Attributes:
        root: Resolved discovery root.
        directories: Directories ordered deepest first.
        files: Files ordered by full path.
        chunk_size: Number of files per processing chunk.
    """

    root: Path
    directories: list[Entry] = field(default_factory=list)
    files: list[Entry] = field(default_factory=list)
    chunk_size: int = 5_000

    @property
    def total_entries(self) -> int:
        """Return the number of directories and files discovered."""
        return len(self.directories) + len(self.files)

    @property
    def total_file_chunks(self) -> int:
        """Return how many chunks the file list splits into."""
        if not self.files:
            return 0
        return (len(self.files) + self.chunk_size - 1) // self.chunk_size

    def iter_file_chunks(self) -> Iterator[Sequence[Entry]]:
        """Yield consecutive slices of at most ``chunk_size`` files."""
        for start in range(0, len(self.files), self.chunk_size):
            yield self.files[start : start + self.chunk_size]


class DiscoveryPlanner:
    """Walk a tree and separate directories from files for ordered processing."""

    def __init__(
        self,
        *,
        recursive: bool = True,
        chunk_size: int = 5_000,
        include_extensions: Iterable[str] = (),
        exclude_extensions: Iterable[str] = (),
        include_hidden: bool = False,
        state_dirname: str = DEFAULT_STATE_DIRNAME,
    ) -> None:
        if chunk_size < 1:
            raise PlanningError(f"Chunk size must be at least 1 (got {chunk_size}).")
        self.recursive = recursive
        self.chunk_size = chunk_size
        self.include_extensions = normalize_extensions(include_extensions)
        self.exclude_extensions = normalize_extensions(exclude_extensions)
        self.include_hidden = include_hidden
        self.state_dirname = state_dirname

    def discover(self, root: Path) -> DiscoveryResult:
        """Discover directories and files under ``root``.

        Args:
            root: Directory whose contents should be optimized. The root itself is never renamed.

        Returns:
            DiscoveryResult: Directories deepest-first and files sorted by path.

        Raises:
            PlanningError: If ``root`` is not an existing directory.
        """

        root = root.expanduser().resolve()
        if not root.is_dir():
            raise PlanningError(f"Root path is not a directory: {root}")

        result = DiscoveryResult(root=root, chunk_size=self.chunk_size)
        for path in self._iter_paths(root):
            relative = path.relative_to(root)
            if relative.parts and relative.parts[0] == self.state_dirname:
                continue
            if not self.include_hidden and _is_hidden(relative):
                continue
            try:
                stat = path.stat(follow_symlinks=False)
            except OSError as exc:
                LOGGER.warning("Unable to stat %s: %s", path, exc)
                continue

            modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
            depth = len(relative.parts)
            if path.is_dir() and not path.is_symlink():
                result.directories.append(
                    Entry(
                        path=path,
                        name=path.name,
                        is_directory=True,
                        modified_at=modified,
                        depth=depth,
                    )
                )
                continue

            if not self._accepts(path):
                continue
            result.files.append(
                Entry(
                    path=path,
                    name=path.name,
                    extension=path.suffix,
                    size_bytes=stat.st_size,
                    modified_at=modified,
                    depth=depth,
                )
            )

        result.directories.sort(key=lambda entry: (-entry.depth, str(entry.path)))
        result.files.sort(key=lambda entry: str(entry.path))
        LOGGER.info(
            "Discovered %d directories and %d files under %s (%d chunk(s)).",
            len(result.directories),
            len(result.files),
            root,
            result.total_file_chunks,
        )
        return result

    def _accepts(self, path: Path) -> bool:
        extension = path.suffix.lower()
        if self.include_extensions and extension not in self.include_extensions:
            return False
        return extension not in self.exclude_extensions

    def _iter_paths(self, root: Path) -> Iterable[Path]:
        """Internal helper to iterate candidate paths."""
        if self.recursive:
            yield from root.rglob("*")
        else:
            yield from root.iterdir()


__all__ = [
    "DEFAULT_STATE_DIRNAME",
    "DiscoveryPlanner",
    "DiscoveryResult",
    "normalize_extensions",
]
