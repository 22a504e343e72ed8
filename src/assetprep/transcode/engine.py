"""Encoder invocation and batch scheduling for media transcoding."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional

from assetprep.config.models import TranscodeProfile, TranscodeSettings
from assetprep.naming.discovery import normalize_extensions
from assetprep.utils.shell import CommandResult, command_exists, run_command

from .errors import TranscodeError
from .models import TranscodeOutcome, TranscodeReport, TranscodeStatus

LOGGER = logging.getLogger(__name__)

MIN_THROTTLE_LIMIT = 1
MAX_THROTTLE_LIMIT = 64

Runner = Callable[[list[str]], CommandResult]


class Transcoder:
    """Run the configured encoder for one source/destination pair at a time."""

    def __init__(
        self,
        settings: TranscodeSettings,
        *,
        force: bool = False,
        dry_run: bool = False,
        runner: Runner = run_command,
    ) -> None:
        self.settings = settings
        self.force = force
        self.dry_run = dry_run
        self._runner = runner

    def profile(self, name: str) -> TranscodeProfile:
        """Return the configured profile called ``name``.

        Raises:
            TranscodeError: If no such profile is configured.
        """
        try:
            return self.settings.profiles[name]
        except KeyError:
            known = ", ".join(sorted(self.settings.profiles)) or "none"
            raise TranscodeError(
                f"Unknown transcode profile '{name}' (known: {known})."
            ) from None

    def ensure_encoder(self) -> None:
        """Raise :class:`TranscodeError` when the encoder is not on PATH."""
        if not command_exists(self.settings.encoder):
            raise TranscodeError(f"Encoder '{self.settings.encoder}' was not found on PATH.")

    def build_command(
        self, source: Path, destination: Path, profile: TranscodeProfile
    ) -> list[str]:
        """Return the encoder command line for ``source`` -> ``destination``."""
        return [
            self.settings.encoder,
            "-hide_banner",
            "-loglevel",
            "error",
            "-y",
            "-i",
            str(source),
            *profile.args,
            str(destination),
        ]

    def transcode(
        self, source: Path, destination: Path, profile: TranscodeProfile
    ) -> TranscodeOutcome:
        """Transcode ``source`` into ``destination`` using ``profile``.

        Args:
            source: Input media file.
            destination: Output file; parent directories are created.
            profile: Encoder profile supplying the arguments.

        Returns:
            TranscodeOutcome: Converted, Skipped, Failed, or WhatIf.

        Raises:
            TranscodeError: If the encoder executable cannot be started.
        """

        def outcome(status: TranscodeStatus, **extra: object) -> TranscodeOutcome:
            return TranscodeOutcome(
                source=source, destination=destination, status=status, **extra
            )

        try:
            source_stat = source.stat()
        except OSError as exc:
            return outcome(TranscodeStatus.FAILED, error=f"Unable to read source: {exc}")

        if destination == source:
            return outcome(
                TranscodeStatus.SKIPPED,
                src_bytes=source_stat.st_size,
                error="Source already has the target extension",
            )

        if destination.exists() and not self.force:
            dest_stat = destination.stat()
            if dest_stat.st_mtime >= source_stat.st_mtime:
                return outcome(
                    TranscodeStatus.SKIPPED,
                    src_bytes=source_stat.st_size,
                    dst_bytes=dest_stat.st_size,
                    error="Destination is newer than source",
                )

        if self.dry_run:
            return outcome(TranscodeStatus.WHAT_IF, src_bytes=source_stat.st_size)

        command = self.build_command(source, destination, profile)
        LOGGER.debug("Running %s", " ".join(command))
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            result = self._runner(command)
        except FileNotFoundError as exc:
            raise TranscodeError(
                f"Encoder '{self.settings.encoder}' could not be started: {exc}"
            ) from exc
        except OSError as exc:
            return outcome(TranscodeStatus.FAILED, src_bytes=source_stat.st_size, error=str(exc))

        if not result.success:
            message = result.stderr.strip().splitlines()
            error = message[-1] if message else f"Encoder exited with status {result.returncode}"
            LOGGER.warning("Transcode failed for %s: %s", source, error)
            return outcome(TranscodeStatus.FAILED, src_bytes=source_stat.st_size, error=error)

        dst_bytes = destination.stat().st_size if destination.exists() else None
        LOGGER.debug("Converted %s -> %s", source, destination)
        return outcome(
            TranscodeStatus.CONVERTED, src_bytes=source_stat.st_size, dst_bytes=dst_bytes
        )


class TranscodeBatch:
    """Discover files for a profile and transcode them on a bounded thread pool."""

    def __init__(self, transcoder: Transcoder, throttle_limit: int) -> None:
        if not MIN_THROTTLE_LIMIT <= throttle_limit <= MAX_THROTTLE_LIMIT:
            raise TranscodeError(
                f"Throttle limit must be between {MIN_THROTTLE_LIMIT} and "
                f"{MAX_THROTTLE_LIMIT} (got {throttle_limit})."
            )
        self.transcoder = transcoder
        self.throttle_limit = throttle_limit

    def discover(
        self, root: Path, profile: TranscodeProfile, *, recursive: bool = True
    ) -> list[Path]:
        """Return files under ``root`` whose extension the profile handles."""
        extensions = normalize_extensions(profile.extensions)
        candidates = root.rglob("*") if recursive else root.iterdir()
        files = []
        for path in candidates:
            relative = path.relative_to(root)
            # Skips hidden entries and the state directory.
            if any(part.startswith(".") for part in relative.parts):
                continue
            if path.is_file() and path.suffix.lower() in extensions:
                files.append(path)
        return sorted(files)

    @staticmethod
    def destination_for(
        source: Path,
        root: Path,
        profile: TranscodeProfile,
        output_root: Optional[Path] = None,
    ) -> Path:
        """Return where the transcoded form of ``source`` is written."""
        relative = source.relative_to(root)
        base = output_root / relative if output_root is not None else source
        return base.with_suffix(profile.output_extension)

    def run(
        self,
        root: Path,
        profile_name: str,
        *,
        output_root: Path | None = None,
        recursive: bool = True,
        progress: Callable[[int, int], None] | None = None,
    ) -> TranscodeReport:
        """Transcode every matching file under ``root``.

        Args:
            root: Directory to scan.
            profile_name: Configured profile to apply.
            output_root: Mirror outputs here instead of next to each source.
            recursive: Whether to descend into subdirectories.
            progress: Called with (completed, total) from the calling thread.

        Returns:
            TranscodeReport: One outcome per discovered file, in path order.

        Raises:
            TranscodeError: For an unknown profile, a missing encoder, or a
                non-directory root.
        """

        root = root.expanduser().resolve()
        if not root.is_dir():
            raise TranscodeError(f"Root path is not a directory: {root}")
        profile = self.transcoder.profile(profile_name)
        if not self.transcoder.dry_run:
            self.transcoder.ensure_encoder()

        sources = self.discover(root, profile, recursive=recursive)
        LOGGER.info("Transcoding %d file(s) with profile '%s'.", len(sources), profile_name)
        report = TranscodeReport(profile=profile_name)
        if not sources:
            return report

        outcomes: list[TranscodeOutcome] = []
        with ThreadPoolExecutor(
            max_workers=min(self.throttle_limit, len(sources)),
            thread_name_prefix="assetprep-transcode",
        ) as pool:
            futures: dict[Future[TranscodeOutcome], tuple[Path, Path]] = {}
            for source in sources:
                destination = self.destination_for(source, root, profile, output_root)
                future = pool.submit(self.transcoder.transcode, source, destination, profile)
                futures[future] = (source, destination)
            for future in as_completed(futures):
                try:
                    outcomes.append(future.result())
                except TranscodeError as exc:
                    source, destination = futures[future]
                    LOGGER.error("Transcode of %s aborted: %s", source, exc)
                    outcomes.append(
                        TranscodeOutcome(
                            source=source,
                            destination=destination,
                            status=TranscodeStatus.FAILED,
                            error=str(exc),
                        )
                    )
                if progress is not None:
                    progress(len(outcomes), len(sources))

        report.outcomes = sorted(outcomes, key=lambda item: str(item.source))
        return report


__all__ = ["Transcoder", "TranscodeBatch", "MIN_THROTTLE_LIMIT", "MAX_THROTTLE_LIMIT"]
