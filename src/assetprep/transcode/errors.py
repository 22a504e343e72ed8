"""Transcoding errors."""


class TranscodeError(Exception):
    """Raised for unknown profiles, invalid limits, or a missing encoder binary."""
