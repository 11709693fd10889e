"""Magic-signature matchers.

A matcher decides whether a file is of one MIME type by looking at the
first PREFIX_SIZE bytes of it. Three shapes exist:

- ExactSignature: the prefix starts with a fixed byte string.
- MaskedSignature: the prefix ANDed with a mask equals the signature. Used
  for families such as RIFF where the size field is "don't care".
- FuncMatcher: an arbitrary predicate, for formats verified structurally
  (MP4 boxes, EBML doc types) or with no magic number at all (MP3).

Matchers are immutable and compared by value, which is how the registry
recognises a repeated registration.
"""

from __future__ import annotations

import logging
import struct
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import BinaryIO, Protocol

from mediathumb.errors import MatcherConflictError, ThumbnailerError
from mediathumb.mime import types as mt

logger = logging.getLogger(__name__)

# Bytes read from the start of a stream for signature matching
PREFIX_SIZE = 4096

# Longest ftyp box read back from the stream when it extends past the prefix
MAX_FTYP_BOX_SIZE = 64 << 10

MatchFunc = Callable[[bytes, "BinaryIO | None"], bool]


class Matcher(Protocol):
    """Interface shared by all matchers."""

    mime: str
    extension: str

    @property
    def fallback(self) -> bool:
        """True if the matcher only runs after all prefix matchers failed."""
        ...

    def match(self, prefix: bytes, stream: BinaryIO | None = None) -> bool:
        """Check whether the data is of this matcher's type.

        Args:
            prefix: Up to PREFIX_SIZE bytes from the start of the stream.
            stream: Seekable stream for matchers that need more context.
                Matchers may move its position freely.
        """
        ...


@dataclass(frozen=True)
class ExactSignature:
    """Matches a fixed byte prefix."""

    extension: str
    mime: str
    signature: bytes

    @property
    def fallback(self) -> bool:
        return False

    def match(self, prefix: bytes, stream: BinaryIO | None = None) -> bool:
        return prefix.startswith(self.signature)


@dataclass(frozen=True)
class MaskedSignature:
    """Matches a byte prefix after applying a bitmask.

    Each prefix byte is ANDed with the mask byte at the same position and
    compared to the signature byte.
    """

    extension: str
    mime: str
    signature: bytes
    mask: bytes

    def __post_init__(self) -> None:
        """Validate signature and mask lengths."""
        if len(self.signature) != len(self.mask):
            raise ValueError(
                f"signature and mask lengths differ for {self.mime}: "
                f"{len(self.signature)} != {len(self.mask)}"
            )

    @property
    def fallback(self) -> bool:
        return False

    def match(self, prefix: bytes, stream: BinaryIO | None = None) -> bool:
        if len(prefix) < len(self.mask):
            return False
        return all(
            prefix[i] & m == s
            for i, (m, s) in enumerate(zip(self.mask, self.signature))
        )


@dataclass(frozen=True)
class FuncMatcher:
    """Matches with an arbitrary predicate.

    Attributes:
        mime: MIME type reported on a match.
        extension: Canonical extension without the leading dot.
        func: Predicate receiving the prefix and the stream.
        fallback: Run only after every non-fallback matcher failed. Set for
            expensive predicates, such as ones spawning external programs.
    """

    mime: str
    extension: str
    func: MatchFunc
    fallback: bool = False

    def match(self, prefix: bytes, stream: BinaryIO | None = None) -> bool:
        return self.func(prefix, stream)


def _match_ebml(data: bytes, doc_type: bytes) -> bool:
    return (
        len(data) > 8
        and data.startswith(b"\x1a\x45\xdf\xa3")
        and doc_type in data[4:]
    )


def match_webm(prefix: bytes, stream: BinaryIO | None = None) -> bool:
    """Match an EBML header declaring the webm doc type."""
    return _match_ebml(prefix, b"webm")


def match_matroska(prefix: bytes, stream: BinaryIO | None = None) -> bool:
    """Match an EBML header declaring the matroska doc type."""
    return _match_ebml(prefix, b"matroska")


def match_mp4(prefix: bytes, stream: BinaryIO | None = None) -> bool:
    """Match an ISO base media file whose ftyp box lists an mp4 brand.

    The first box must be a ftyp box with a size that is a multiple of 4.
    Its major brand and compatible brands are searched for an "mp4*" entry,
    skipping the minor version field. A box longer than the prefix is read
    back from the stream when one is available.
    """
    if len(prefix) < 12 or prefix[4:8] != b"ftyp":
        return False

    (box_size,) = struct.unpack(">I", prefix[:4])
    if box_size % 4 != 0 or box_size > MAX_FTYP_BOX_SIZE:
        return False

    box = prefix
    if len(box) < box_size:
        if stream is None:
            return False
        stream.seek(0)
        box = stream.read(box_size)
        if len(box) < box_size:
            return False

    for offset in range(8, box_size, 4):
        if offset == 12:
            # Minor version
            continue
        if box[offset : offset + 3] == b"mp4":
            return True
    return False


def match_mp3_probe(prefix: bytes, stream: BinaryIO | None = None) -> bool:
    """Identify MP3 without an ID3 tag by asking ffprobe for the format name.

    Some encoders emit MP3 streams with no magic number at all, so the
    stream is handed to ffprobe as a last resort.
    """
    if stream is None:
        return False

    from mediathumb.pipeline import PipelineStage, run_command

    stage = PipelineStage(
        "ffprobe",
        (
            "-",
            "-hide_banner",
            "-v",
            "fatal",
            "-of",
            "compact",
            "-show_entries",
            "format=format_name",
        ),
    )
    try:
        output = run_command(stage, stream)
    except ThumbnailerError as e:
        logger.debug("MP3 probe failed: %s", e)
        return False

    text = output.decode("utf-8", errors="replace").strip()
    return text.removeprefix("format|format_name=") == "mp3"


def _riff_mask(size: int) -> bytes:
    """Mask matching a RIFF header with the 4-byte size field ignored."""
    return b"\xff" * 4 + b"\x00" * 4 + b"\xff" * (size - 8)


# Ordered by expected frequency; cheaper and more specific checks first.
# webm is a subset of matroska and must precede it.
BUILTIN_MATCHERS: tuple[Matcher, ...] = (
    ExactSignature("jpg", mt.MIME_JPEG, b"\xff\xd8\xff"),
    ExactSignature("png", mt.MIME_PNG, b"\x89PNG\r\n\x1a\n"),
    ExactSignature("gif", mt.MIME_GIF, b"GIF87a"),
    ExactSignature("gif", mt.MIME_GIF, b"GIF89a"),
    MaskedSignature(
        "webp", mt.MIME_WEBP, b"RIFF\x00\x00\x00\x00WEBPVP", _riff_mask(14)
    ),
    MaskedSignature("ogg", mt.MIME_OGG, b"OggS\x00", b"\xff" * 5),
    FuncMatcher(mt.MIME_WEBM, "webm", match_webm),
    FuncMatcher(mt.MIME_MKV, "mkv", match_matroska),
    ExactSignature("pdf", mt.MIME_PDF, b"%PDF-"),
    MaskedSignature("mp3", mt.MIME_MP3, b"ID3", b"\xff\xff\xff"),
    FuncMatcher(mt.MIME_MP4, "mp4", match_mp4),
    ExactSignature("aac", mt.MIME_AAC, b"\xff\xf1"),
    ExactSignature("aac", mt.MIME_AAC, b"\xff\xf9"),
    ExactSignature("bmp", mt.MIME_BMP, b"BM"),
    MaskedSignature("wav", mt.MIME_WAVE, b"RIFF\x00\x00\x00\x00WAVE", _riff_mask(12)),
    MaskedSignature("avi", mt.MIME_AVI, b"RIFF\x00\x00\x00\x00AVI ", _riff_mask(12)),
    ExactSignature("psd", mt.MIME_PSD, b"8BPS"),
    ExactSignature("flac", mt.MIME_FLAC, b"fLaC"),
    ExactSignature("tiff", mt.MIME_TIFF, b"II*\x00"),
    ExactSignature("tiff", mt.MIME_TIFF, b"MM\x00*"),
    ExactSignature("mov", mt.MIME_QUICKTIME, b"\x00\x00\x00\x14ftyp"),
    ExactSignature(
        "wmv", mt.MIME_WMV, b"\x30\x26\xb2\x75\x8e\x66\xcf\x11\xa6\xd9"
    ),
    ExactSignature("flv", mt.MIME_FLV, b"FLV\x01"),
    ExactSignature("ico", mt.MIME_ICO, b"\x00\x00\x01\x00"),
    MaskedSignature("midi", mt.MIME_MIDI, b"MThd\x00\x00\x00\x06", b"\xff" * 8),
    ExactSignature("zip", mt.MIME_ZIP, b"PK\x03\x04"),
    ExactSignature("zip", mt.MIME_ZIP, b"PK\x05\x06"),
    ExactSignature("rar", mt.MIME_RAR, b"Rar!\x1a\x07\x00"),
    ExactSignature("rar", mt.MIME_RAR, b"Rar!\x1a\x07\x01\x00"),
    FuncMatcher(mt.MIME_MP3, "mp3", match_mp3_probe, fallback=True),
)


def _signature_key(matcher: Matcher) -> tuple[bytes, bytes] | None:
    """Return (signature, mask) for signature matchers, None otherwise."""
    if isinstance(matcher, MaskedSignature):
        return matcher.signature, matcher.mask
    if isinstance(matcher, ExactSignature):
        return matcher.signature, b"\xff" * len(matcher.signature)
    return None


class MatcherRegistry:
    """Ordered, append-only list of matchers.

    Readers take an immutable snapshot and iterate it without locking.
    Registration replaces the snapshot under a lock, so an in-flight
    classification keeps using the list it started with. Registering while
    files are being processed is still discouraged: which snapshot a
    concurrent call sees is unspecified.
    """

    def __init__(self, matchers: Iterable[Matcher] = BUILTIN_MATCHERS) -> None:
        self._lock = threading.Lock()
        self._matchers: tuple[Matcher, ...] = tuple(matchers)

    def __len__(self) -> int:
        return len(self._matchers)

    def snapshot(self) -> tuple[Matcher, ...]:
        """Return the current matchers in precedence order."""
        return self._matchers

    def register(self, matcher: Matcher) -> bool:
        """Append a matcher after all existing ones.

        Returns:
            False if an equal matcher was already registered, True otherwise.

        Raises:
            MatcherConflictError: If a signature matcher with the same
                signature and mask is registered for a different MIME type.
        """
        with self._lock:
            current = self._matchers
            if matcher in current:
                logger.debug("Matcher for %s already registered", matcher.mime)
                return False

            key = _signature_key(matcher)
            if key is not None:
                for existing in current:
                    if _signature_key(existing) == key and (
                        existing.mime != matcher.mime
                        or existing.extension != matcher.extension
                    ):
                        raise MatcherConflictError(
                            f"signature {key[0]!r} is already registered "
                            f"for {existing.mime}"
                        )

            self._matchers = (*current, matcher)
            logger.debug("Registered matcher for %s", matcher.mime)
            return True


_registry = MatcherRegistry()


def get_matcher_registry() -> MatcherRegistry:
    """Get the process-wide matcher registry."""
    return _registry


def register_matcher(matcher: Matcher) -> bool:
    """Add a matcher to the process-wide registry.

    Intended to be called at startup, before any file is processed.
    """
    return _registry.register(matcher)
