"""MediaProcessor facade: classify an input and run the matching thumbnail path.

Dispatch order for a classified MIME type:
1. An override processor registered for the type.
2. The built-in path for its group (image, audio/video, archive).

Archive members and embedded cover art are processed as independent nested
documents: their type is detected from their own bytes and the caller's
acceptance filter does not apply to them. Nesting is bounded by the
configured maximum depth.

This is the only layer that translates failures between categories: cover
art that cannot be thumbnailed falls back to the container's own video
frame (or to "no thumbnail"), and failures inside an archive member are
wrapped in ArchiveError.
"""

from __future__ import annotations

import io
import logging
import os
import threading
from collections.abc import Callable, Collection, Iterator
from contextlib import contextmanager
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, BinaryIO

from mediathumb.errors import (
    ArchiveError,
    CoverArtError,
    NoStreamsError,
    NoThumbnailError,
    ThumbnailerError,
    UnsupportedMimeError,
)
from mediathumb.logging import document_context
from mediathumb.mime import MatcherRegistry, get_matcher_registry
from mediathumb.mime.classifier import detect_mime as classify_stream
from mediathumb.mime.types import (
    ARCHIVE_MIMES,
    AUDIO_MIMES,
    IMAGE_MIMES,
    MIME_CBR,
    MIME_CBZ,
    MIME_ZIP,
    VIDEO_MIMES,
)
from mediathumb.models import Options, ProcessResult, Source, Thumbnail
from mediathumb.tempfiles import materialize
from mediathumb.thumbnail.archive import (
    ARCHIVE_LIBRARY_ERRORS,
    COMIC_TYPES,
    ArchiveScanner,
    EntrySource,
    open_rar,
    open_zip,
)
from mediathumb.thumbnail.image import thumbnail_image
from mediathumb.thumbnail.video import (
    apply_media_info,
    extract_cover_art,
    thumbnail_video_frame,
)

if TYPE_CHECKING:
    from mediathumb.config.models import MediathumbConfig
    from mediathumb.introspector import MediaInfo, MediaIntrospector
    from mediathumb.pipeline import PipelineRunner

logger = logging.getLogger(__name__)

ProcessorFunc = Callable[[BinaryIO, Source, Options], Thumbnail]
"""Processor for one MIME type: (stream, source, options) -> Thumbnail.

May raise NoThumbnailError to report a valid input without a preview.
"""


class ProcessorRegistry:
    """MIME type to override processor mapping.

    Same snapshot discipline as the matcher registry: lookups read an
    immutable mapping, registration swaps it under a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._processors: MappingProxyType[str, ProcessorFunc] = MappingProxyType({})

    def __contains__(self, mime: object) -> bool:
        return mime in self._processors

    def get(self, mime: str) -> ProcessorFunc | None:
        return self._processors.get(mime)

    def mime_types(self) -> frozenset[str]:
        """MIME types with an override processor."""
        return frozenset(self._processors)

    def register(self, mime: str, fn: ProcessorFunc) -> None:
        """Register fn for mime, replacing any earlier override."""
        with self._lock:
            updated = dict(self._processors)
            if mime in updated:
                logger.info("Replacing override processor for %s", mime)
            updated[mime] = fn
            self._processors = MappingProxyType(updated)


_processor_registry = ProcessorRegistry()


def get_processor_registry() -> ProcessorRegistry:
    """Get the process-wide override processor registry."""
    return _processor_registry


def register_processor(mime: str, fn: ProcessorFunc) -> None:
    """Register a processor for a MIME type, taking priority over built-ins.

    Can add support for further types (together with a matcher) or override
    a built-in path. Intended to be called at startup, before any file is
    processed.
    """
    _processor_registry.register(mime, fn)


def _stream_size(stream: BinaryIO) -> int:
    size = stream.seek(0, os.SEEK_END)
    stream.seek(0)
    return size


def _stream_label(stream: BinaryIO) -> str | None:
    name = getattr(stream, "name", None)
    if isinstance(name, (str, os.PathLike)):
        return Path(name).name
    return None


class MediaProcessor:
    """Classifies inputs and generates thumbnails.

    Args:
        config: Configuration to use. Defaults to get_config().
        introspector: Media probe. Defaults to an FFprobeIntrospector,
            created on first use.
        runner: Pipeline runner. Defaults to a runner on the shared pool.
        matchers: Matcher registry. Defaults to the process-wide registry.
        processors: Override processors. Defaults to the process-wide registry.
    """

    def __init__(
        self,
        config: MediathumbConfig | None = None,
        introspector: MediaIntrospector | None = None,
        runner: PipelineRunner | None = None,
        matchers: MatcherRegistry | None = None,
        processors: ProcessorRegistry | None = None,
    ) -> None:
        self._config = config
        self._introspector = introspector
        self.runner = runner
        self.matchers = matchers if matchers is not None else get_matcher_registry()
        self.processors = (
            processors if processors is not None else get_processor_registry()
        )

        self._handlers: dict[str, Callable[[BinaryIO, Source, Options], Thumbnail]] = {
            **dict.fromkeys(IMAGE_MIMES, self._process_image),
            **dict.fromkeys(AUDIO_MIMES | VIDEO_MIMES, self._process_media),
            **dict.fromkeys(
                ARCHIVE_MIMES | {MIME_CBZ, MIME_CBR}, self._process_archive
            ),
        }

    @property
    def config(self) -> MediathumbConfig:
        if self._config is None:
            from mediathumb.config import get_config

            self._config = get_config()
        return self._config

    @property
    def introspector(self) -> MediaIntrospector:
        if self._introspector is None:
            from mediathumb.introspector import FFprobeIntrospector

            self._introspector = FFprobeIntrospector()
        return self._introspector

    @property
    def scanner(self) -> ArchiveScanner:
        archive = self.config.archive
        return ArchiveScanner(archive.scan_limit, archive.comic_threshold)

    def supported_mime_types(self) -> frozenset[str]:
        """MIME types with a built-in or override processor."""
        return frozenset(self._handlers) | self.processors.mime_types()

    def detect_mime(
        self, stream: BinaryIO, accepted: Collection[str] | None = None
    ) -> tuple[str, str]:
        """Detect the MIME type and canonical extension of a stream."""
        return classify_stream(stream, accepted, self.matchers.snapshot())

    def process(
        self, stream: BinaryIO, options: Options | None = None
    ) -> ProcessResult:
        """Classify a seekable stream and generate its thumbnail.

        Returns:
            ProcessResult with the source record and either a thumbnail or,
            for valid input with nothing to preview, no_thumbnail_reason.

        Raises:
            UnsupportedMimeError: If the type is unknown or not accepted.
            InvalidImageError: If the source violates a dimension limit.
            NoStreamsError: If a media container has no audio or video.
            StageError: If an external stage fails.
            ArchiveError: If processing an archive member fails.
        """
        if options is None:
            options = Options.from_config(self.config)

        source = Source(size=_stream_size(stream))
        with document_context(_stream_label(stream)):
            try:
                thumbnail = self._process_document(stream, source, options)
            except NoThumbnailError as e:
                logger.info("No thumbnail for %s: %s", source.mime or "input", e.reason)
                return ProcessResult(source=source, no_thumbnail_reason=e.reason)

        logger.debug(
            "Thumbnailed %s (%d bytes) -> %s %s",
            source.mime,
            source.size,
            thumbnail.extension,
            thumbnail.dims,
        )
        return ProcessResult(source=source, thumbnail=thumbnail)

    def process_file(
        self, path: Path | str, options: Options | None = None
    ) -> ProcessResult:
        """Process the file at path."""
        with open(path, "rb") as f:
            return self.process(f, options)

    def process_bytes(
        self, data: bytes, options: Options | None = None
    ) -> ProcessResult:
        """Process an in-memory file."""
        return self.process(io.BytesIO(data), options)

    def _process_document(
        self, stream: BinaryIO, source: Source, options: Options
    ) -> Thumbnail:
        mime, extension = self.detect_mime(stream, options.accepted_mime_types)
        source.set_type(mime, extension)

        override = self.processors.get(mime)
        if override is not None:
            logger.debug("Using override processor for %s", mime)
            return override(stream, source, options)

        handler = self._handlers.get(mime)
        if handler is None:
            raise UnsupportedMimeError(mime)
        stream.seek(0)
        return handler(stream, source, options)

    def _process_nested(
        self, stream: BinaryIO, options: Options, name: str
    ) -> Thumbnail:
        """Process an embedded document with the acceptance filter relaxed."""
        with document_context(name) as depth:
            max_depth = self.config.archive.max_depth
            if depth > max_depth:
                raise ArchiveError(f"nesting too deep (more than {max_depth} levels)")
            nested = Source(size=_stream_size(stream))
            thumbnail = self._process_document(stream, nested, options.accept_all())
            logger.debug("Nested %s %s thumbnailed", nested.mime, name)
            return thumbnail

    def _process_image(
        self, stream: BinaryIO, source: Source, options: Options
    ) -> Thumbnail:
        return thumbnail_image(stream, source, options, self.introspector, self.runner)

    def _process_media(
        self, stream: BinaryIO, source: Source, options: Options
    ) -> Thumbnail:
        """Thumbnail an audio or video file.

        Embedded cover art is preferred. When it cannot be thumbnailed the
        container falls back to a captured video frame, and audio-only files
        end up with no thumbnail.
        """
        with materialize(stream) as path:
            info = self.introspector.probe(path)
            apply_media_info(source, info)
            if not info.has_audio and not info.has_video:
                raise NoStreamsError()

            if info.cover_art_stream is not None:
                try:
                    return self._thumbnail_cover_art(path, info, options)
                except ThumbnailerError as e:
                    logger.warning("%s", CoverArtError(e))

            if info.has_video:
                return thumbnail_video_frame(path, source, info, options, self.runner)

        raise NoThumbnailError("audio without usable cover art")

    def _thumbnail_cover_art(
        self, path: Path, info: MediaInfo, options: Options
    ) -> Thumbnail:
        data = extract_cover_art(path, info, self.runner)
        return self._process_nested(io.BytesIO(data), options, "cover-art")

    def _process_archive(
        self, stream: BinaryIO, source: Source, options: Options
    ) -> Thumbnail:
        """Thumbnail the first image of a zip or rar archive.

        Raises:
            NoThumbnailError: If no image-like entry is among the scanned ones,
                or the selected member has nothing to preview.
            ArchiveError: If the archive or the selected member fails.
        """
        scanner = self.scanner
        try:
            with self._open_archive(stream, source.mime) as entries:
                result = scanner.scan(entries)
                if result.is_comic and source.mime in COMIC_TYPES:
                    source.set_type(*COMIC_TYPES[source.mime])
                if result.candidate is None:
                    raise NoThumbnailError("no images in archive")

                candidate = result.candidate
                with scanner.extract(candidate, entries.extraction_limit) as member:
                    return self._process_nested(member, options, candidate.name)
        except (NoThumbnailError, ArchiveError):
            raise
        except (ThumbnailerError, OSError, *ARCHIVE_LIBRARY_ERRORS) as e:
            raise ArchiveError(e) from e

    @contextmanager
    def _open_archive(self, stream: BinaryIO, mime: str) -> Iterator[EntrySource]:
        archive = self.config.archive
        if mime in (MIME_ZIP, MIME_CBZ):
            with open_zip(stream, archive.size_multiplier) as zip_entries:
                yield zip_entries
        else:
            # The rar reader needs a file on disk
            with materialize(stream) as path, open_rar(
                path, archive.stream_limit
            ) as rar_entries:
                yield rar_entries


_default_processor: MediaProcessor | None = None
_default_processor_lock = threading.Lock()


def get_processor() -> MediaProcessor:
    """Get the process-wide MediaProcessor (thread-safe lazy initialization)."""
    global _default_processor

    if _default_processor is not None:
        return _default_processor

    with _default_processor_lock:
        if _default_processor is None:
            _default_processor = MediaProcessor()
    return _default_processor


def process(stream: BinaryIO, options: Options | None = None) -> ProcessResult:
    """Classify a seekable stream and generate its thumbnail."""
    return get_processor().process(stream, options)


def process_file(path: Path | str, options: Options | None = None) -> ProcessResult:
    """Classify a file and generate its thumbnail."""
    return get_processor().process_file(path, options)


def process_bytes(data: bytes, options: Options | None = None) -> ProcessResult:
    """Classify in-memory data and generate its thumbnail."""
    return get_processor().process_bytes(data, options)


def detect_mime(
    stream: BinaryIO, accepted: Collection[str] | None = None
) -> tuple[str, str]:
    """Detect the MIME type and canonical extension of a stream."""
    return get_processor().detect_mime(stream, accepted)
