"""Thumbnailing of still images and PDF documents."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from mediathumb.errors import InvalidImageError
from mediathumb.mime.types import MIME_JPEG, MIME_PDF, PASS_THROUGH_MIMES
from mediathumb.models import Dims, Options, Source, Thumbnail
from mediathumb.pipeline import Pipeline, PipelineStage
from mediathumb.tempfiles import materialize
from mediathumb.thumbnail.dims import plan_thumbnail_dims
from mediathumb.thumbnail.encode import (
    encode_stage,
    measured_thumbnail,
    quantize_stage,
    scale_filter,
)

if TYPE_CHECKING:
    from mediathumb.introspector import MediaIntrospector
    from mediathumb.pipeline import PipelineRunner

logger = logging.getLogger(__name__)

# Rendering resolution of PDF pages
PDF_DENSITY = 96


def thumbnail_image(
    stream: BinaryIO,
    source: Source,
    options: Options,
    introspector: MediaIntrospector,
    runner: PipelineRunner | None = None,
) -> Thumbnail:
    """Generate a thumbnail of an image.

    The source is probed for its dimensions and pixel format, the thumbnail
    size is planned (rejecting oversized sources), and a single ffmpeg stage
    resamples and encodes it. Sources with an alpha channel produce PNG
    thumbnails, which are quantized when pngquant is installed.

    Raises:
        TooWideError, TooTallError: If the source exceeds the maximum size.
        InvalidImageError: If the file holds no decodable picture.
        StageError: If an encoding stage fails.
    """
    with materialize(stream) as path:
        if source.mime in PASS_THROUGH_MIMES:
            return _thumbnail_document(path, options, runner)

        info = introspector.probe(path)
        picture = info.video_stream or info.cover_art_stream
        if picture is None:
            raise InvalidImageError("no decodable picture")

        source.dims = picture.dims
        source.codec = picture.codec
        planned = plan_thumbnail_dims(
            source.dims, options.max_source_dims, options.effective_thumb_dims
        )
        is_png = source.mime != MIME_JPEG and picture.has_alpha
        measured = source.dims.is_known
        logger.debug(
            "Thumbnailing %s image %s -> %s (%s)",
            source.mime,
            source.dims,
            planned,
            "png" if is_png else "jpeg",
        )

        vf = scale_filter(planned, pass_through=not measured)
        pipeline = Pipeline([encode_stage(["-i", str(path)], [vf], is_png, options)])
        if is_png and (quantize := quantize_stage(options)) is not None:
            pipeline.then(quantize)
        data = pipeline.execute(runner=runner)

    if measured:
        return Thumbnail(data=data, is_png=is_png, dims=planned)
    return measured_thumbnail(data, is_png, source.mime)


def _thumbnail_document(
    path: Path,
    options: Options,
    runner: PipelineRunner | None,
) -> Thumbnail:
    """Render the first page of a document and thumbnail it.

    Documents have no fixed raster size, so the maximum source size does
    not apply and the output size is read back from the encoded result.
    """
    planned = plan_thumbnail_dims(
        Dims(), options.max_source_dims, options.effective_thumb_dims, pass_through=True
    )
    render = PipelineStage(
        "gm",
        (
            "convert",
            "-density",
            str(PDF_DENSITY),
            f"pdf:{path}[0]",
            "-background",
            "white",
            "-flatten",
            "png:-",
        ),
    )
    encode = encode_stage(
        ["-f", "png_pipe", "-i", "-"],
        [scale_filter(planned, pass_through=True)],
        False,
        options,
    )
    data = Pipeline([render, encode]).execute(runner=runner)
    return measured_thumbnail(data, False, MIME_PDF)
