"""Audio and video stages: metadata, embedded cover art and frame capture.

Audio files are treated as containers that happen to hold only an audio
stream. Which of the helpers below runs for a given file is decided by the
processor.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from mediathumb.errors import NoThumbnailError
from mediathumb.introspector.models import MediaInfo
from mediathumb.models import Options, Source, Thumbnail
from mediathumb.pipeline import Pipeline, PipelineStage
from mediathumb.thumbnail.dims import plan_thumbnail_dims
from mediathumb.thumbnail.encode import (
    FFMPEG_COMMON_ARGS,
    encode_stage,
    measured_thumbnail,
    quantize_stage,
    scale_filter,
)

if TYPE_CHECKING:
    from mediathumb.pipeline import PipelineRunner

logger = logging.getLogger(__name__)


def apply_media_info(source: Source, info: MediaInfo) -> None:
    """Copy probed stream layout and tags onto the source record."""
    source.has_audio = info.has_audio
    source.has_video = info.has_video
    source.has_cover_art = info.cover_art_stream is not None
    source.duration_seconds = info.duration_seconds or 0.0
    source.codec = info.best_codec
    source.title = info.title
    source.artist = info.artist
    if info.video_stream is not None:
        source.dims = info.video_stream.dims


def extract_cover_art(
    path: Path, info: MediaInfo, runner: PipelineRunner | None = None
) -> bytes:
    """Copy the embedded picture stream out of a media file unchanged.

    Raises:
        NoThumbnailError: If the file has no embedded picture.
        StageError: If ffmpeg fails.
    """
    cover = info.cover_art_stream
    if cover is None:
        raise NoThumbnailError("no cover art")

    stage = PipelineStage(
        "ffmpeg",
        (
            *FFMPEG_COMMON_ARGS,
            "-i",
            str(path),
            "-map",
            f"0:{cover.index}",
            "-c",
            "copy",
            "-frames:v",
            "1",
            "-f",
            "image2pipe",
            "-",
        ),
    )
    data = Pipeline([stage]).execute(runner=runner)
    if not data:
        raise NoThumbnailError("empty cover art")
    logger.debug("Extracted %d bytes of %s cover art", len(data), cover.codec)
    return data


def thumbnail_video_frame(
    path: Path,
    source: Source,
    info: MediaInfo,
    options: Options,
    runner: PipelineRunner | None = None,
) -> Thumbnail:
    """Capture one representative frame of the video stream as a thumbnail.

    ffmpeg's thumbnail filter picks the most representative frame of the
    first batch of frames, skipping black intros and fades.

    Raises:
        NoThumbnailError: If there is no video stream.
        TooWideError, TooTallError: If the video exceeds the maximum size.
        StageError: If ffmpeg fails.
    """
    video = info.video_stream
    if video is None:
        raise NoThumbnailError("no video stream")

    planned = plan_thumbnail_dims(
        video.dims, options.max_source_dims, options.effective_thumb_dims
    )
    is_png = video.has_alpha
    measured = video.dims.is_known
    logger.debug(
        "Capturing %s frame %s -> %s", video.codec, video.dims, planned
    )

    filters = ["thumbnail", scale_filter(planned, pass_through=not measured)]
    stage = encode_stage(
        ["-i", str(path), "-map", f"0:{video.index}"], filters, is_png, options
    )
    pipeline = Pipeline([stage])
    if is_png and (quantize := quantize_stage(options)) is not None:
        pipeline.then(quantize)
    data = pipeline.execute(runner=runner)

    if not data:
        raise NoThumbnailError("no decodable video frame")
    source.dims = video.dims
    if not measured:
        return measured_thumbnail(data, is_png, "video frame")
    return Thumbnail(data=data, is_png=is_png, dims=planned)
