"""Filename sanitization and in-place rename execution."""

from .conflicts import detect_conflicts, find_duplicate_targets, find_existing_targets
from .discovery import DiscoveryPlanner, DiscoveryResult
from .errors import PlanningError
from .executor import OperationExecutor, OperationIdAllocator
from .models import (
    Conflict,
    ConflictKind,
    Entry,
    OperationRecord,
    OperationStatus,
    OperationType,
    RenamePlan,
    RunSummary,
    SanitizationOptions,
    SpaceReplacement,
)
from .optimizer import NameOptimizer, OptimizationResult, optimize_names
from .parallel import ParallelCoordinator
from .remap import RenamedPathIndex, RenamePathSnapshot, resolve_path
from .sanitizer import sanitize_filename, sanitize_name

__all__ = [
    "detect_conflicts",
    "find_duplicate_targets",
    "find_existing_targets",
    "DiscoveryPlanner",
    "DiscoveryResult",
    "PlanningError",
    "OperationExecutor",
    "OperationIdAllocator",
    "Conflict",
    "ConflictKind",
    "Entry",
    "OperationRecord",
    "OperationStatus",
    "OperationType",
    "RenamePlan",
    "RunSummary",
    "SanitizationOptions",
    "SpaceReplacement",
    "NameOptimizer",
    "OptimizationResult",
    "optimize_names",
    "ParallelCoordinator",
    "RenamedPathIndex",
    "RenamePathSnapshot",
    "resolve_path",
    "sanitize_filename",
    "sanitize_name",
]
