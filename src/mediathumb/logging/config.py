"""Root logger setup from LoggingConfig."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from mediathumb.logging.context import DocumentContextFilter
from mediathumb.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from mediathumb.config.models import LoggingConfig

# doc_tag is "[doc:book.cbz>page1.jpg] " while a document is being processed
TEXT_FORMAT = "%(asctime)s - %(doc_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or return None if it cannot be opened."""
    if config.file is None:
        return None
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        # Logging is not set up yet, so report on stderr directly
        sys.stderr.write(f"Warning: Could not open log file {path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers according to config.

    Records go to the log file when one is configured and can be opened,
    and to stderr otherwise or when include_stderr is set. Every handler
    tags records with the document being processed.
    """
    level = logging.getLevelName(config.level.upper())

    handlers: list[logging.Handler] = []
    file_handler = _open_log_file(config)
    if file_handler is not None:
        handlers.append(file_handler)
    if config.include_stderr or file_handler is None:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _formatter(config)
    context_filter = DocumentContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
