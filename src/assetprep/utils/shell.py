"""Subprocess helpers for external encoders."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured result of an external command.

    Attributes:
        args: Command line that was executed.
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    args: tuple[str, ...]
    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Return whether the command exited with status zero."""
        return self.returncode == 0


def run_command(
    args: Sequence[str],
    *,
    timeout: float | None = None,
    cwd: str | None = None,
) -> CommandResult:
    """Run ``args`` without a shell and capture its output.

    Args:
        args: Executable and arguments.
        timeout: Seconds to wait before giving up; ``None`` waits indefinitely.
        cwd: Working directory for the command.

    Returns:
        CommandResult: Output streams and exit code.

    Raises:
        FileNotFoundError: If the executable cannot be found.
        subprocess.TimeoutExpired: If ``timeout`` elapses.
    """
    completed = subprocess.run(
        list(args),
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
        cwd=cwd,
    )
    return CommandResult(
        args=tuple(args),
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
    )


def command_exists(name: str) -> bool:
    """Return whether ``name`` resolves to an executable on PATH."""
    return shutil.which(name) is not None


__all__ = ["CommandResult", "run_command", "command_exists"]
