"""Encoder stages shared by the image and video paths.

The final stages of every thumbnail pipeline are the same: ffmpeg resamples
the decoded picture and encodes it as JPEG or PNG, and PNG output is then
optionally quantized with pngquant.
"""

from __future__ import annotations

import logging
import struct

from mediathumb.errors import InvalidImageError
from mediathumb.models import Dims, Options, Thumbnail
from mediathumb.pipeline import PipelineStage
from mediathumb.tools import is_available

logger = logging.getLogger(__name__)

FFMPEG_COMMON_ARGS = ("-hide_banner", "-nostdin", "-v", "error")


def jpeg_qscale(quality: int) -> int:
    """Map a 1-100 JPEG quality onto ffmpeg's 2-31 mjpeg qscale (lower is better)."""
    quality = max(1, min(quality, 100))
    return round(2 + (100 - quality) * 29 / 99)


def scale_filter(dims: Dims, pass_through: bool = False) -> str:
    """Build the ffmpeg scale filter for planned dimensions.

    Pass-through sources have no known size, so they are fit within dims
    with ffmpeg doing the aspect ratio arithmetic and never upscaling.
    """
    if pass_through:
        return (
            f"scale='min(iw,{dims.width})':'min(ih,{dims.height})'"
            ":force_original_aspect_ratio=decrease:flags=lanczos"
        )
    return f"scale={dims.width}:{dims.height}:flags=lanczos"


def encoder_args(is_png: bool, options: Options) -> list[str]:
    """ffmpeg output arguments writing one encoded picture to stdout."""
    if is_png:
        return ["-c:v", "png", "-pix_fmt", "rgba", "-f", "image2pipe", "-"]
    return [
        "-c:v",
        "mjpeg",
        "-q:v",
        str(jpeg_qscale(options.jpeg_quality)),
        "-pix_fmt",
        "yuvj420p",
        "-f",
        "image2pipe",
        "-",
    ]


def encode_stage(
    input_args: list[str],
    filters: list[str],
    is_png: bool,
    options: Options,
) -> PipelineStage:
    """Build the ffmpeg stage that resamples and encodes a single frame."""
    args = [*FFMPEG_COMMON_ARGS, *input_args, "-frames:v", "1"]
    if filters:
        args += ["-vf", ",".join(filters)]
    args += encoder_args(is_png, options)
    return PipelineStage("ffmpeg", tuple(args))


def quantize_stage(options: Options) -> PipelineStage | None:
    """Build the pngquant stage, or None when pngquant is not installed."""
    if not is_available("pngquant"):
        logger.debug("pngquant not available, PNG thumbnails stay lossless")
        return None
    return PipelineStage(
        "pngquant",
        ("--quality", f"0-{options.png_quality}", "--speed", "3", "--strip", "-"),
    )


def _jpeg_dims(data: bytes) -> Dims | None:
    offset = 2
    while offset + 9 <= len(data):
        if data[offset] != 0xFF:
            return None
        marker = data[offset + 1]
        if marker == 0xFF:
            offset += 1
            continue
        (length,) = struct.unpack(">H", data[offset + 2 : offset + 4])
        # SOF0-SOF15, excluding DHT, JPG and DAC
        if 0xC0 <= marker <= 0xCF and marker not in (0xC4, 0xC8, 0xCC):
            height, width = struct.unpack(">HH", data[offset + 5 : offset + 9])
            return Dims(width, height)
        offset += 2 + length
    return None


def encoded_dims(data: bytes) -> Dims | None:
    """Read the dimensions of an encoded PNG or JPEG thumbnail."""
    if data.startswith(b"\x89PNG\r\n\x1a\n") and len(data) >= 24:
        width, height = struct.unpack(">II", data[16:24])
        return Dims(width, height)
    if data.startswith(b"\xff\xd8"):
        return _jpeg_dims(data)
    return None


def measured_thumbnail(data: bytes, is_png: bool, what: str) -> Thumbnail:
    """Build a thumbnail whose size is read back from the encoded output.

    Used when the output size was left to ffmpeg, for sources whose size is
    unknown before decoding.

    Raises:
        InvalidImageError: If the output is not a readable PNG or JPEG.
    """
    dims = encoded_dims(data)
    if dims is None:
        raise InvalidImageError(f"unreadable {what} thumbnail output")
    return Thumbnail(data=data, is_png=is_png, dims=dims)
