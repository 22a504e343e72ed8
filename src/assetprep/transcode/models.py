"""Transcoding outcome models."""

from __future__ import annotations

from collections import Counter
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class TranscodeStatus(str, Enum):
    """Outcome of transcoding one file."""

    CONVERTED = "Converted"
    SKIPPED = "Skipped"
    FAILED = "Failed"
    WHAT_IF = "WhatIf"


class TranscodeOutcome(BaseModel):
    """Result of a single encoder invocation.

    Attributes:
        source: File that was read.
        destination: File that was (or would be) written.
        status: Outcome of the attempt.
        src_bytes: Size of the source file.
        dst_bytes: Size of the produced file, when one exists.
        error: Failure or skip reason.
    """

    source: Path
    destination: Path
    status: TranscodeStatus
    src_bytes: int = 0
    dst_bytes: Optional[int] = None
    error: Optional[str] = None


class TranscodeReport(BaseModel):
    """Aggregated outcomes of a transcode batch."""

    profile: str
    outcomes: List[TranscodeOutcome] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        """Return outcome counts keyed by lowercase status name."""
        tally = Counter(outcome.status for outcome in self.outcomes)
        return {
            "total": len(self.outcomes),
            "converted": tally[TranscodeStatus.CONVERTED],
            "skipped": tally[TranscodeStatus.SKIPPED],
            "failed": tally[TranscodeStatus.FAILED],
            "what_if": tally[TranscodeStatus.WHAT_IF],
        }


__all__ = ["TranscodeStatus", "TranscodeOutcome", "TranscodeReport"]
