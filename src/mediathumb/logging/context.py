"""Document context for structured logging.

Nested processing (archive members, embedded cover art) runs the whole
pipeline again on a sub-document. A contextvar records which document is
being processed so every log record can be tagged with it.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_document: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document", default=None
)
_depth: contextvars.ContextVar[int] = contextvars.ContextVar("depth", default=0)


@contextmanager
def document_context(name: str | None) -> Generator[int, None, None]:
    """Enter processing of a (sub-)document.

    Nested contexts join their names with ">" (e.g. "book.cbz>page1.jpg").

    Yields:
        Nesting depth of the entered document (0 for the top level).
    """
    parent = _document.get()
    depth = _depth.get()
    if parent is not None and name is not None:
        label = f"{parent}>{name}"
    else:
        label = name if name is not None else parent
    doc_token = _document.set(label)
    depth_token = _depth.set(depth + 1)
    try:
        yield depth
    finally:
        _document.reset(doc_token)
        _depth.reset(depth_token)


def get_document_context() -> tuple[str | None, int]:
    """Get the current document label and nesting depth."""
    return _document.get(), _depth.get()


class DocumentContextFilter(logging.Filter):
    """Logging filter that injects the current document into log records.

    Adds document and doc_depth attributes for JSON output and a compact
    doc_tag such as "[doc:cover.jpg] " for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject document context into the record. Never filters records out."""
        document, depth = get_document_context()
        record.document = document
        record.doc_depth = depth
        record.doc_tag = f"[doc:{document}] " if document else ""
        return True
