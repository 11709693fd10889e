"""Thumbnail generation paths for images, audio/video and archives."""

from mediathumb.thumbnail.archive import (
    ArchiveEntry,
    ArchiveScanner,
    ScanResult,
    could_be_image,
)
from mediathumb.thumbnail.dims import (
    plan_thumbnail_dims,
    scale_to_fit,
    validate_source_dims,
)
from mediathumb.thumbnail.image import thumbnail_image
from mediathumb.thumbnail.video import (
    apply_media_info,
    extract_cover_art,
    thumbnail_video_frame,
)

__all__ = [
    "ArchiveEntry",
    "ArchiveScanner",
    "ScanResult",
    "apply_media_info",
    "could_be_image",
    "extract_cover_art",
    "plan_thumbnail_dims",
    "scale_to_fit",
    "thumbnail_image",
    "thumbnail_video_frame",
    "validate_source_dims",
]
