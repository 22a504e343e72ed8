"""Undo ledger and replay errors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import ValidationIssue


class UndoError(Exception):
    """Base exception for undo operations."""


class MissingLedgerError(UndoError):
    """Raised when no undo ledger can be located."""


class LedgerFormatError(UndoError):
    """Raised when a ledger file is unreadable or structurally invalid."""


class UndoValidationError(UndoError):
    """Raised when the tree no longer matches the ledger and undo was not forced.

    Attributes:
        failures: Blocking validation issues that stopped the undo.
    """

    def __init__(self, message: str, failures: Sequence[ValidationIssue] = ()) -> None:
        super().__init__(message)
        self.failures = list(failures)
