"""Undo ledger persistence and replay."""

from .engine import DEFAULT_MTIME_TOLERANCE, UndoEngine, undo_optimization
from .errors import LedgerFormatError, MissingLedgerError, UndoError, UndoValidationError
from .ledger import LedgerRepository, build_ledger
from .models import (
    LedgerMetadata,
    LedgerOperation,
    UndoLedger,
    UndoResult,
    UndoStatus,
    UndoSummary,
    ValidationIssue,
)

__all__ = [
    "DEFAULT_MTIME_TOLERANCE",
    "UndoEngine",
    "undo_optimization",
    "UndoError",
    "MissingLedgerError",
    "LedgerFormatError",
    "UndoValidationError",
    "LedgerRepository",
    "build_ledger",
    "LedgerMetadata",
    "LedgerOperation",
    "UndoLedger",
    "UndoResult",
    "UndoStatus",
    "UndoSummary",
    "ValidationIssue",
]
