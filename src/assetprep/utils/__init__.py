"""Shared helpers for assetprep."""

from .shell import CommandResult, command_exists, run_command

__all__ = ["CommandResult", "command_exists", "run_command"]
