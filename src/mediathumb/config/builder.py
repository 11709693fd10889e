"""Configuration builder with explicit layering.

ConfigBuilder composes MediathumbConfig from several ConfigSource layers.
Later layers override earlier ones for every value they set.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from mediathumb.config.env import EnvReader
from mediathumb.config.models import (
    ArchiveConfig,
    LoggingConfig,
    MediathumbConfig,
    PipelineConfig,
    ThumbnailConfig,
    ToolPathsConfig,
)

TOOL_NAMES = ("ffmpeg", "ffprobe", "gm", "pngquant")


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values mean "not specified in this source" and never override
    values from lower-precedence sources.
    """

    # Tool paths
    ffmpeg_path: Path | None = None
    ffprobe_path: Path | None = None
    gm_path: Path | None = None
    pngquant_path: Path | None = None

    # Thumbnail defaults
    thumb_width: int | None = None
    thumb_height: int | None = None
    max_width: int | None = None
    max_height: int | None = None
    jpeg_quality: int | None = None
    png_quality: int | None = None

    # Pipeline
    stage_timeout: float | None = None
    pool_size: int | None = None
    buffer_size: int | None = None

    # Archive scanning
    archive_scan_limit: int | None = None
    archive_comic_threshold: float | None = None
    archive_size_multiplier: int | None = None
    archive_stream_limit: int | None = None
    archive_max_depth: int | None = None

    # Logging
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None

    temp_directory: Path | None = None


class ConfigBuilder:
    """Builds MediathumbConfig by layering ConfigSources with precedence.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource) -> None:
        """Apply a configuration source, overriding existing values."""
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> MediathumbConfig:
        """Build the final MediathumbConfig with defaults for unset values."""
        tools = ToolPathsConfig(
            **{name: self._get(f"{name}_path", None) for name in TOOL_NAMES}
        )

        thumbnail = ThumbnailConfig(
            width=self._get("thumb_width", 150),
            height=self._get("thumb_height", 150),
            max_width=self._get("max_width", 0),
            max_height=self._get("max_height", 0),
            jpeg_quality=self._get("jpeg_quality", 75),
            png_quality=self._get("png_quality", 80),
        )

        pipeline = PipelineConfig(
            stage_timeout=self._get("stage_timeout", 60.0),
            pool_size=self._get("pool_size", 8),
            buffer_size=self._get("buffer_size", 64 << 10),
        )

        archive = ArchiveConfig(
            scan_limit=self._get("archive_scan_limit", 10),
            comic_threshold=self._get("archive_comic_threshold", 0.9),
            size_multiplier=self._get("archive_size_multiplier", 4),
            stream_limit=self._get("archive_stream_limit", 100 << 20),
            max_depth=self._get("archive_max_depth", 4),
        )

        logging_config = LoggingConfig(
            level=self._get("logging_level", "info"),
            file=self._get("logging_file", None),
            format=self._get("logging_format", "text"),
            include_stderr=self._get("logging_include_stderr", False),
            max_bytes=self._get("logging_max_bytes", 10_485_760),
            backup_count=self._get("logging_backup_count", 5),
        )

        return MediathumbConfig(
            tools=tools,
            thumbnail=thumbnail,
            pipeline=pipeline,
            archive=archive,
            logging=logging_config,
            temp_directory=self._get("temp_directory", None),
        )


def _path_or_none(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from a parsed TOML config file."""
    tools = file_config.get("tools", {})
    thumbnail = file_config.get("thumbnail", {})
    pipeline = file_config.get("pipeline", {})
    archive = file_config.get("archive", {})
    logging_conf = file_config.get("logging", {})

    return ConfigSource(
        ffmpeg_path=_path_or_none(tools.get("ffmpeg")),
        ffprobe_path=_path_or_none(tools.get("ffprobe")),
        gm_path=_path_or_none(tools.get("gm")),
        pngquant_path=_path_or_none(tools.get("pngquant")),
        thumb_width=thumbnail.get("width"),
        thumb_height=thumbnail.get("height"),
        max_width=thumbnail.get("max_width"),
        max_height=thumbnail.get("max_height"),
        jpeg_quality=thumbnail.get("jpeg_quality"),
        png_quality=thumbnail.get("png_quality"),
        stage_timeout=pipeline.get("stage_timeout"),
        pool_size=pipeline.get("pool_size"),
        buffer_size=pipeline.get("buffer_size"),
        archive_scan_limit=archive.get("scan_limit"),
        archive_comic_threshold=archive.get("comic_threshold"),
        archive_size_multiplier=archive.get("size_multiplier"),
        archive_stream_limit=archive.get("stream_limit"),
        archive_max_depth=archive.get("max_depth"),
        logging_level=logging_conf.get("level"),
        logging_file=_path_or_none(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
        temp_directory=_path_or_none(file_config.get("temp_directory")),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from MEDIATHUMB_* environment variables."""
    return ConfigSource(
        ffmpeg_path=reader.get_path("FFMPEG_PATH"),
        ffprobe_path=reader.get_path("FFPROBE_PATH"),
        gm_path=reader.get_path("GM_PATH"),
        pngquant_path=reader.get_path("PNGQUANT_PATH"),
        thumb_width=reader.get_int("THUMB_WIDTH"),
        thumb_height=reader.get_int("THUMB_HEIGHT"),
        max_width=reader.get_int("MAX_WIDTH"),
        max_height=reader.get_int("MAX_HEIGHT"),
        jpeg_quality=reader.get_int("JPEG_QUALITY"),
        png_quality=reader.get_int("PNG_QUALITY"),
        stage_timeout=reader.get_float("STAGE_TIMEOUT"),
        pool_size=reader.get_int("POOL_SIZE"),
        buffer_size=reader.get_size("BUFFER_SIZE"),
        archive_stream_limit=reader.get_size("ARCHIVE_STREAM_LIMIT"),
        archive_max_depth=reader.get_int("ARCHIVE_MAX_DEPTH"),
        logging_level=reader.get_str("LOG_LEVEL"),
        logging_file=reader.get_path("LOG_FILE", must_exist=False),
        logging_format=reader.get_str("LOG_FORMAT"),
        logging_include_stderr=reader.get_bool("LOG_INCLUDE_STDERR"),
        logging_max_bytes=reader.get_size("LOG_MAX_BYTES"),
        temp_directory=reader.get_path("TEMP_DIR"),
    )
