"""Configuration models describing assetprep settings."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from assetprep.naming.models import SanitizationOptions, SpaceReplacement


class AssetPrepBaseModel(BaseModel):
    """Shared configuration for assetprep Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class NamingSettings(AssetPrepBaseModel):
    """Default sanitization behavior for `assetprep names`.

    Attributes:
        remove_metadata: Strip bracketed metadata and dimension suffixes.
        space_replacement: Strategy applied to whitespace runs.
        expand_ampersand: Rewrite ``&`` as ``_and_``.
        preserve_case: Keep the base name's original case.
        lowercase_extensions: Lowercase extensions regardless of base name case.
    """

    remove_metadata: bool = False
    space_replacement: SpaceReplacement = SpaceReplacement.UNDERSCORE
    expand_ampersand: bool = False
    preserve_case: bool = False
    lowercase_extensions: bool = True

    def to_options(self, *, force: bool = False) -> SanitizationOptions:
        """Return immutable sanitization options for a run."""
        return SanitizationOptions(
            remove_metadata=self.remove_metadata,
            space_replacement=self.space_replacement,
            expand_ampersand=self.expand_ampersand,
            preserve_case=self.preserve_case,
            lowercase_extensions=self.lowercase_extensions,
            force=force,
        )


class ProcessingOptions(AssetPrepBaseModel):
    """Traversal and execution options.

    Attributes:
        recurse_directories: Whether to descend into subdirectories.
        process_hidden_files: Whether dot-prefixed entries are included.
        include_extensions: Only files with these extensions are renamed when non-empty.
        exclude_extensions: Files with these extensions are never renamed.
        chunk_size: Number of files processed per memory-bounded chunk.
        parallel: Whether file renames run on a worker pool.
        throttle_limit: Maximum concurrent rename workers.
    """

    recurse_directories: bool = True
    process_hidden_files: bool = False
    include_extensions: List[str] = Field(default_factory=list)
    exclude_extensions: List[str] = Field(default_factory=list)
    chunk_size: int = Field(default=5_000, ge=1)
    parallel: bool = False
    throttle_limit: int = Field(default=8, ge=1, le=32)


class UndoSettings(AssetPrepBaseModel):
    """Undo ledger settings.

    Attributes:
        state_dirname: Directory created under a root to hold undo ledgers.
        mtime_tolerance_seconds: Allowed clock skew when validating file timestamps.
    """

    state_dirname: str = ".assetprep"
    mtime_tolerance_seconds: float = Field(default=2.0, ge=0)


class TranscodeProfile(AssetPrepBaseModel):
    """Encoder profile for the transcoding collaborator.

    Attributes:
        extensions: Source extensions handled by the profile.
        output_extension: Extension of produced files.
        args: Encoder arguments inserted between the input and output paths.
    """

    extensions: List[str] = Field(default_factory=list)
    output_extension: str
    args: List[str] = Field(default_factory=list)


def _default_profiles() -> Dict[str, TranscodeProfile]:
    return {
        "webm": TranscodeProfile(
            extensions=[".mp4", ".mov", ".mkv", ".avi", ".m4v"],
            output_extension=".webm",
            args=["-c:v", "libvpx-vp9", "-crf", "32", "-b:v", "0", "-c:a", "libopus"],
        ),
        "webp": TranscodeProfile(
            extensions=[".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff"],
            output_extension=".webp",
            args=["-c:v", "libwebp", "-quality", "85"],
        ),
        "ogg": TranscodeProfile(
            extensions=[".wav", ".mp3", ".flac", ".m4a", ".aac"],
            output_extension=".ogg",
            args=["-vn", "-c:a", "libopus", "-b:a", "128k"],
        ),
    }


class TranscodeSettings(AssetPrepBaseModel):
    """Transcoding collaborator settings.

    Attributes:
        encoder: Encoder executable name or path.
        throttle_limit: Maximum concurrent encoder processes.
        profiles: Named encoder profiles.
    """

    encoder: str = "ffmpeg"
    throttle_limit: int = Field(default=4, ge=1, le=64)
    profiles: Dict[str, TranscodeProfile] = Field(default_factory=_default_profiles)


class LoggingSettings(AssetPrepBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 100
    backup_count: int = 5


class CLIOptions(AssetPrepBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class AssetPrepConfig(AssetPrepBaseModel):
    """Top-level configuration struct for assetprep.

    Attributes:
        naming: Sanitization defaults.
        processing: Traversal and execution settings.
        undo: Undo ledger settings.
        transcode: Transcoding settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    naming: NamingSettings = Field(default_factory=NamingSettings)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    undo: UndoSettings = Field(default_factory=UndoSettings)
    transcode: TranscodeSettings = Field(default_factory=TranscodeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "AssetPrepBaseModel",
    "NamingSettings",
    "ProcessingOptions",
    "UndoSettings",
    "TranscodeProfile",
    "TranscodeSettings",
    "LoggingSettings",
    "CLIOptions",
    "AssetPrepConfig",
]
