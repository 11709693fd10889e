"""Data models for thumbnailing requests and results."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mediathumb.config.models import MediathumbConfig

# Thumbnail bounds used when the caller leaves an axis at 0
DEFAULT_THUMB_SIZE = 150
DEFAULT_JPEG_QUALITY = 75
DEFAULT_PNG_QUALITY = 80


@dataclass(frozen=True)
class Dims:
    """Width and height in pixels. Zero means unknown or unconstrained."""

    width: int = 0
    height: int = 0

    def __post_init__(self) -> None:
        """Validate dimensions."""
        if self.width < 0 or self.height < 0:
            raise ValueError(f"dimensions must be non-negative, got {self}")

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def is_known(self) -> bool:
        """True if both axes are set."""
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class Options:
    """Options supplied to process().

    This dataclass is immutable (frozen). Use replace() to derive variants,
    e.g. relaxing the acceptance filter for archive members.
    """

    thumb_dims: Dims = field(default_factory=Dims)
    """Target maximum thumbnail dimensions. 0 on an axis uses the default."""

    max_source_dims: Dims = field(default_factory=Dims)
    """Sources exceeding either axis are rejected. 0 means unconstrained."""

    accepted_mime_types: frozenset[str] | None = None
    """MIME types to process. None accepts every classifiable type."""

    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    """Quality of lossy (JPEG) thumbnails, 1-100."""

    png_quality: int = DEFAULT_PNG_QUALITY
    """Upper quality bound for PNG quantization, 1-100."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(
                f"jpeg_quality must be between 1 and 100, got {self.jpeg_quality}"
            )
        if not 1 <= self.png_quality <= 100:
            raise ValueError(
                f"png_quality must be between 1 and 100, got {self.png_quality}"
            )
        if self.accepted_mime_types is not None and not isinstance(
            self.accepted_mime_types, frozenset
        ):
            object.__setattr__(
                self, "accepted_mime_types", frozenset(self.accepted_mime_types)
            )

    @property
    def effective_thumb_dims(self) -> Dims:
        """Thumbnail bounds with defaults applied to unset axes."""
        return Dims(
            self.thumb_dims.width or DEFAULT_THUMB_SIZE,
            self.thumb_dims.height or DEFAULT_THUMB_SIZE,
        )

    def accept_all(self) -> Options:
        """Return a copy that accepts anything processable."""
        return replace(self, accepted_mime_types=None)

    @classmethod
    def from_config(cls, config: MediathumbConfig) -> Options:
        """Build default options from the thumbnail configuration section."""
        thumb = config.thumbnail
        return cls(
            thumb_dims=Dims(thumb.width, thumb.height),
            max_source_dims=Dims(thumb.max_width, thumb.max_height),
            jpeg_quality=thumb.jpeg_quality,
            png_quality=thumb.png_quality,
        )


@dataclass
class Source:
    """Classification and metadata of an input file.

    Filled in progressively by the processing stages. The MIME type and
    extension are set once by classification; later stages may only replace
    them through set_type() before any other stage has read them, which the
    archive scanner uses to mark comic-book archives.
    """

    mime: str = ""
    extension: str = ""
    dims: Dims = field(default_factory=Dims)
    duration_seconds: float = 0.0
    has_audio: bool = False
    has_video: bool = False
    has_cover_art: bool = False
    codec: str | None = None
    title: str | None = None
    artist: str | None = None
    size: int = 0

    def set_type(self, mime: str, extension: str) -> None:
        """Set the classified type of the source."""
        self.mime = mime
        self.extension = extension


@dataclass(frozen=True)
class Thumbnail:
    """An encoded thumbnail."""

    data: bytes
    is_png: bool
    """True for lossless PNG output, False for lossy JPEG."""

    dims: Dims

    @property
    def mime(self) -> str:
        """MIME type of the encoded thumbnail."""
        return "image/png" if self.is_png else "image/jpeg"

    @property
    def extension(self) -> str:
        """File extension of the encoded thumbnail."""
        return "png" if self.is_png else "jpg"


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of process().

    thumbnail is None when the input was valid but nothing could be
    previewed (see no_thumbnail_reason).
    """

    source: Source
    thumbnail: Thumbnail | None = None
    no_thumbnail_reason: str | None = None

    @property
    def has_thumbnail(self) -> bool:
        """True if a thumbnail was produced."""
        return self.thumbnail is not None
