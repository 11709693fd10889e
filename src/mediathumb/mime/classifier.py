"""Content-based file type classification.

Classification runs in two phases. The first tries every prefix matcher, in
precedence order, against the first PREFIX_SIZE bytes of the stream; most
inputs are decided here without further I/O. Only if nothing matched do the
fallback matchers run, which may read the whole stream or spawn a probe.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from typing import BinaryIO

from mediathumb.errors import MimeNotAcceptedError, UnsupportedMimeError
from mediathumb.mime.matchers import PREFIX_SIZE, Matcher, get_matcher_registry
from mediathumb.mime.types import MIME_OCTET_STREAM

logger = logging.getLogger(__name__)


def read_prefix(stream: BinaryIO, size: int = PREFIX_SIZE) -> bytes:
    """Read up to size bytes from the start of a seekable stream."""
    stream.seek(0)
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def classify(
    prefix: bytes,
    stream: BinaryIO | None = None,
    accepted: Collection[str] | None = None,
    matchers: Sequence[Matcher] | None = None,
) -> tuple[str, str]:
    """Classify data by its leading bytes.

    Args:
        prefix: Leading bytes of the data, up to PREFIX_SIZE.
        stream: Seekable stream for matchers that need more than the prefix.
        accepted: MIME types the caller will process. None accepts all.
        matchers: Matchers to use. Defaults to the registry snapshot.

    Returns:
        Tuple of (MIME type, canonical extension without leading dot).

    Raises:
        MimeNotAcceptedError: If the data was identified but its type is
            not in accepted.
        UnsupportedMimeError: If no matcher identified the data.
    """
    if matchers is None:
        matchers = get_matcher_registry().snapshot()

    for matcher in matchers:
        if matcher.fallback:
            continue
        if matcher.match(prefix, stream):
            return _accept(matcher, accepted)

    # Fallback matchers are expensive; only run those the caller would accept
    for matcher in matchers:
        if not matcher.fallback:
            continue
        if accepted is not None and matcher.mime not in accepted:
            continue
        logger.debug("Trying fallback matcher for %s", matcher.mime)
        if matcher.match(prefix, stream):
            return matcher.mime, matcher.extension

    raise UnsupportedMimeError(MIME_OCTET_STREAM)


def _accept(matcher: Matcher, accepted: Collection[str] | None) -> tuple[str, str]:
    if accepted is not None and matcher.mime not in accepted:
        raise MimeNotAcceptedError(matcher.mime)
    return matcher.mime, matcher.extension


def detect_mime(
    stream: BinaryIO,
    accepted: Collection[str] | None = None,
    matchers: Sequence[Matcher] | None = None,
) -> tuple[str, str]:
    """Detect the MIME type of a seekable stream.

    The stream is rewound before and after classification.

    Returns:
        Tuple of (MIME type, canonical extension without leading dot).

    Raises:
        MimeNotAcceptedError: If the type is identified but not accepted.
        UnsupportedMimeError: If the type cannot be identified.
    """
    prefix = read_prefix(stream)
    try:
        mime, extension = classify(prefix, stream, accepted, matchers)
    finally:
        stream.seek(0)
    logger.debug("Detected %s (%d byte prefix)", mime, len(prefix))
    return mime, extension
