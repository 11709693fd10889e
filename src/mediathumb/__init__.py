"""mediathumb - content-based file type detection and thumbnail generation.

Typical use::

    from mediathumb import Dims, Options, process_file

    result = process_file("movie.mkv", Options(thumb_dims=Dims(320, 180)))
    if result.has_thumbnail:
        Path("thumb." + result.thumbnail.extension).write_bytes(
            result.thumbnail.data
        )
"""

from mediathumb.errors import (
    ArchiveError,
    BufferReleasedError,
    CoverArtError,
    InvalidImageError,
    MatcherConflictError,
    MediaIntrospectionError,
    MimeNotAcceptedError,
    NoStreamsError,
    NoThumbnailError,
    StageError,
    StageSpawnError,
    StageTimeoutError,
    ThumbnailerError,
    ToolNotFoundError,
    TooTallError,
    TooWideError,
    UnsupportedMimeError,
)
from mediathumb.mime import (
    ExactSignature,
    FuncMatcher,
    MaskedSignature,
    Matcher,
    register_matcher,
)
from mediathumb.models import Dims, Options, ProcessResult, Source, Thumbnail
from mediathumb.processor import (
    MediaProcessor,
    detect_mime,
    get_processor,
    process,
    process_bytes,
    process_file,
    register_processor,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Processing
    "MediaProcessor",
    "detect_mime",
    "get_processor",
    "process",
    "process_bytes",
    "process_file",
    # Registration hooks
    "ExactSignature",
    "FuncMatcher",
    "MaskedSignature",
    "Matcher",
    "register_matcher",
    "register_processor",
    # Data types
    "Dims",
    "Options",
    "ProcessResult",
    "Source",
    "Thumbnail",
    # Errors
    "ArchiveError",
    "BufferReleasedError",
    "CoverArtError",
    "InvalidImageError",
    "MatcherConflictError",
    "MediaIntrospectionError",
    "MimeNotAcceptedError",
    "NoStreamsError",
    "NoThumbnailError",
    "StageError",
    "StageSpawnError",
    "StageTimeoutError",
    "ThumbnailerError",
    "ToolNotFoundError",
    "TooTallError",
    "TooWideError",
    "UnsupportedMimeError",
]
