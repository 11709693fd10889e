"""Structured logging for mediathumb.

Provides configurable logging with JSON format support and file rotation,
with records tagged by the (sub-)document being processed.
"""

from mediathumb.logging.config import configure_logging
from mediathumb.logging.context import (
    DocumentContextFilter,
    document_context,
    get_document_context,
)
from mediathumb.logging.handlers import JSONFormatter

__all__ = [
    "DocumentContextFilter",
    "JSONFormatter",
    "configure_logging",
    "document_context",
    "get_document_context",
]
