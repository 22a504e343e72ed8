"""Logging setup for the assetprep CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from assetprep.config.models import LoggingSettings

DEFAULT_LOG_PATH = Path("~/.assetprep/assetprep.log")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"

_HANDLER_MARKER = "_assetprep_handler"


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.WARNING


def configure_logging(settings: LoggingSettings, log_path: Path | None = None) -> Path | None:
    """Install the rotating file handler and rich console handler.

    Handlers installed by an earlier call are removed first, so the function
    can be called once per command invocation.

    Args:
        settings: Logging section of the resolved configuration.
        log_path: Log file location; defaults to ``~/.assetprep/assetprep.log``.

    Returns:
        Path | None: The log file in use, or ``None`` if it could not be opened.
    """

    logger = logging.getLogger("assetprep")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    level = _resolve_level(settings.level)
    logger.setLevel(min(level, logging.INFO))

    console = RichHandler(
        console=Console(stderr=True),
        level=level,
        show_path=False,
        rich_tracebacks=True,
    )
    setattr(console, _HANDLER_MARKER, True)
    logger.addHandler(console)

    path = (log_path or DEFAULT_LOG_PATH).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
    except OSError as exc:  # pragma: no cover - logging best effort
        logger.warning("Unable to open log file %s: %s", path, exc)
        return None

    file_handler.setLevel(min(level, logging.INFO))
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    setattr(file_handler, _HANDLER_MARKER, True)
    logger.addHandler(file_handler)
    return path


__all__ = ["configure_logging", "DEFAULT_LOG_PATH"]
