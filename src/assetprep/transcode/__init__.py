"""Thin transcoding collaborator driving an external encoder."""

from .engine import TranscodeBatch, Transcoder
from .errors import TranscodeError
from .models import TranscodeOutcome, TranscodeReport, TranscodeStatus

__all__ = [
    "Transcoder",
    "TranscodeBatch",
    "TranscodeError",
    "TranscodeOutcome",
    "TranscodeReport",
    "TranscodeStatus",
]
