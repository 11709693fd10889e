"""CLI thumb command: generate a thumbnail for one file."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import click

from mediathumb.cli.exit_codes import ExitCode
from mediathumb.cli.output import error_exit, exit_code_for, json_output
from mediathumb.config import get_config
from mediathumb.errors import ThumbnailerError
from mediathumb.models import Dims, Options, ProcessResult
from mediathumb.processor import get_processor

logger = logging.getLogger(__name__)


def _build_options(
    width: int | None,
    height: int | None,
    max_width: int | None,
    max_height: int | None,
    accept: tuple[str, ...],
) -> Options:
    base = Options.from_config(get_config())
    return Options(
        thumb_dims=Dims(
            width if width is not None else base.thumb_dims.width,
            height if height is not None else base.thumb_dims.height,
        ),
        max_source_dims=Dims(
            max_width if max_width is not None else base.max_source_dims.width,
            max_height if max_height is not None else base.max_source_dims.height,
        ),
        accepted_mime_types=frozenset(accept) if accept else None,
        jpeg_quality=base.jpeg_quality,
        png_quality=base.png_quality,
    )


def _result_to_dict(result: ProcessResult, output: Path | None) -> dict[str, Any]:
    source = result.source
    data: dict[str, Any] = {
        "status": "completed",
        "source": {
            "mime": source.mime,
            "extension": source.extension,
            "width": source.dims.width,
            "height": source.dims.height,
            "duration_seconds": source.duration_seconds,
            "has_audio": source.has_audio,
            "has_video": source.has_video,
            "has_cover_art": source.has_cover_art,
            "codec": source.codec,
            "title": source.title,
            "artist": source.artist,
            "size": source.size,
        },
    }
    if result.thumbnail is not None:
        data["thumbnail"] = {
            "file": str(output) if output else None,
            "mime": result.thumbnail.mime,
            "width": result.thumbnail.dims.width,
            "height": result.thumbnail.dims.height,
            "size": len(result.thumbnail.data),
        }
    else:
        data["thumbnail"] = None
        data["no_thumbnail_reason"] = result.no_thumbnail_reason
    return data


@click.command("thumb")
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    required=True,
    help="Where to write the thumbnail",
)
@click.option(
    "--width", type=click.IntRange(min=0), default=None, help="Thumbnail width bound"
)
@click.option(
    "--height", type=click.IntRange(min=0), default=None, help="Thumbnail height bound"
)
@click.option(
    "--max-width",
    type=click.IntRange(min=0),
    default=None,
    help="Reject sources wider than this (0 = unlimited)",
)
@click.option(
    "--max-height",
    type=click.IntRange(min=0),
    default=None,
    help="Reject sources taller than this (0 = unlimited)",
)
@click.option(
    "--accept",
    multiple=True,
    metavar="MIME",
    help="Only process these MIME types (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
def thumb_command(
    file: Path,
    output: Path,
    width: int | None,
    height: int | None,
    max_width: int | None,
    max_height: int | None,
    accept: tuple[str, ...],
    as_json: bool,
) -> None:
    """Generate a thumbnail of FILE and write it to OUTPUT.

    Exits with NO_THUMBNAIL (21) when the file is valid but has nothing to
    preview, such as audio without cover art.
    """
    if not file.is_file():
        error_exit(f"File not found: {file}", ExitCode.TARGET_NOT_FOUND, as_json)

    try:
        options = _build_options(width, height, max_width, max_height, accept)
    except ValueError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, as_json)

    try:
        result = get_processor().process_file(file, options)
    except ThumbnailerError as e:
        logger.debug("Processing %s failed", file, exc_info=True)
        error_exit(str(e), exit_code_for(e), as_json)

    if result.thumbnail is not None:
        try:
            output.write_bytes(result.thumbnail.data)
        except OSError as e:
            error_exit(f"Cannot write {output}: {e}", ExitCode.GENERAL_ERROR, as_json)

    if as_json:
        json_output(_result_to_dict(result, output if result.has_thumbnail else None))
    elif result.thumbnail is not None:
        click.echo(
            f"{file}: {result.source.mime} -> {output} "
            f"({result.thumbnail.mime}, {result.thumbnail.dims})"
        )
    else:
        click.echo(
            f"{file}: {result.source.mime}: "
            f"no thumbnail ({result.no_thumbnail_reason})",
            err=True,
        )

    sys.exit(ExitCode.SUCCESS if result.has_thumbnail else ExitCode.NO_THUMBNAIL)
