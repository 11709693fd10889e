"""Data models for probed media information."""

from __future__ import annotations

from dataclasses import dataclass, field

from mediathumb.models import Dims

# Pixel formats whose decoded frames carry transparency
ALPHA_PIXEL_FORMATS = frozenset(
    {
        "rgba",
        "bgra",
        "argb",
        "abgr",
        "ya8",
        "ya16be",
        "ya16le",
        "pal8",
        "rgba64be",
        "rgba64le",
        "bgra64be",
        "bgra64le",
        "gbrap",
        "gbrap10le",
        "gbrap12le",
        "gbrap16le",
        "gbrapf32le",
        "rgbaf16le",
        "rgbaf32le",
    }
)


def pixel_format_has_alpha(pix_fmt: str | None) -> bool:
    """Return True if frames in this pixel format may be transparent."""
    if not pix_fmt:
        return False
    return pix_fmt in ALPHA_PIXEL_FORMATS or pix_fmt.startswith("yuva")


@dataclass
class StreamInfo:
    """One stream of a probed media file."""

    index: int
    codec_type: str
    codec: str | None = None
    width: int | None = None
    height: int | None = None
    pix_fmt: str | None = None
    duration_seconds: float | None = None
    is_cover_art: bool = False
    """ffprobe reports embedded pictures as video streams with the
    attached_pic disposition."""

    tags: dict[str, str] = field(default_factory=dict)

    @property
    def dims(self) -> Dims:
        return Dims(self.width or 0, self.height or 0)

    @property
    def has_alpha(self) -> bool:
        return pixel_format_has_alpha(self.pix_fmt)


@dataclass
class MediaInfo:
    """Result of probing a media file."""

    format_name: str | None = None
    duration_seconds: float | None = None
    streams: list[StreamInfo] = field(default_factory=list)
    title: str | None = None
    artist: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def video_stream(self) -> StreamInfo | None:
        """First video stream that is not embedded cover art."""
        for stream in self.streams:
            if stream.codec_type == "video" and not stream.is_cover_art:
                return stream
        return None

    @property
    def audio_stream(self) -> StreamInfo | None:
        """First audio stream."""
        for stream in self.streams:
            if stream.codec_type == "audio":
                return stream
        return None

    @property
    def cover_art_stream(self) -> StreamInfo | None:
        """First embedded picture stream."""
        for stream in self.streams:
            if stream.is_cover_art:
                return stream
        return None

    @property
    def has_video(self) -> bool:
        return self.video_stream is not None

    @property
    def has_audio(self) -> bool:
        return self.audio_stream is not None

    @property
    def best_codec(self) -> str | None:
        """Codec of the stream a thumbnail would be taken from."""
        stream = self.video_stream or self.audio_stream
        return stream.codec if stream else None
