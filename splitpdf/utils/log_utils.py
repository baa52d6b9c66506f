"""Logging utilities shared across the splitpdf package.

Every record carries a ``source`` extra so that lines emitted while splitting
one document can be traced back to the blob that triggered the run. Use
:func:`source_logger` to obtain a logger bound to a source identifier.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger
from rich.logging import RichHandler


if TYPE_CHECKING:
    from loguru import Logger


_CONFIGURED: bool = False

DEFAULT_CONSOLE_LEVEL = "INFO"
DEFAULT_FILE_LEVEL = "DEBUG"
DEFAULT_FILE_PATH = "splitpdf_debug.log"
DEFAULT_FILE_ROTATION = "5 MB"
DEFAULT_FILE_RETENTION = 2
UNBOUND_SOURCE = "-"

_RICH_HANDLER_KWARGS: dict[str, Any] = {
    # Blob names may contain square brackets.
    "markup": False,
    "show_time": False,
}


def _configure_logging(
    *,
    force: bool = False,
    console_level: str | None = None,
    file_path: str | None = None,
) -> None:
    """Configure the shared logger once per process.

    ``SPLITPDF_LOG_LEVEL`` and ``SPLITPDF_LOG_FILE`` override the console level
    and the debug file location; an empty ``SPLITPDF_LOG_FILE`` disables the
    file sink.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    level = console_level or os.getenv("SPLITPDF_LOG_LEVEL") or DEFAULT_CONSOLE_LEVEL
    if file_path is None:
        file_path = os.getenv("SPLITPDF_LOG_FILE", DEFAULT_FILE_PATH)

    logger.remove()
    logger.configure(extra={"source": UNBOUND_SOURCE})

    logger.add(
        RichHandler(**_RICH_HANDLER_KWARGS),  # type: ignore[arg-type]
        level=level.upper(),
        format="{message}",
    )

    if file_path:
        resolved_file_path = Path(file_path).expanduser().resolve()
        resolved_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(resolved_file_path),
            level=DEFAULT_FILE_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {extra[source]} | {message}",
            rotation=DEFAULT_FILE_ROTATION,
            retention=DEFAULT_FILE_RETENTION,
            enqueue=True,
        )

    _CONFIGURED = True


def configure_logging(*, console_level: str | None = None, file_path: str | None = None) -> None:
    """Reconfigure sinks, e.g. after the CLI parsed ``--log-level``."""
    _configure_logging(force=True, console_level=console_level, file_path=file_path)


def source_logger(source_identifier: str) -> Logger:
    """Return the shared logger bound to ``source_identifier``."""
    return logger.bind(source=source_identifier)


__all__ = ["configure_logging", "logger", "source_logger"]

# Configure logging on import so callers only need to import `logger`.
_configure_logging()
