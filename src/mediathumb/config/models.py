"""Configuration data models.

This module defines dataclasses for mediathumb configuration options.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None
    gm: Path | None = None
    pngquant: Path | None = None


@dataclass
class ThumbnailConfig:
    """Default thumbnailing options.

    Zero width/height falls back to the built-in 150px bound. Zero
    max_width/max_height disables the source dimension check.
    """

    width: int = 150
    height: int = 150
    max_width: int = 0
    max_height: int = 0
    jpeg_quality: int = 75
    png_quality: int = 80

    def __post_init__(self) -> None:
        """Validate configuration."""
        for name in ("width", "height", "max_width", "max_height"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        for name in ("jpeg_quality", "png_quality"):
            value = getattr(self, name)
            if not 1 <= value <= 100:
                raise ValueError(f"{name} must be between 1 and 100, got {value}")


@dataclass
class PipelineConfig:
    """Configuration for external process pipelines."""

    # Seconds a single stage may run before it is killed
    stage_timeout: float = 60.0

    # Idle buffers kept in the shared buffer pool
    pool_size: int = 8

    # Initial capacity of pooled buffers in bytes
    buffer_size: int = 64 << 10

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.stage_timeout <= 0:
            raise ValueError(
                f"stage_timeout must be positive, got {self.stage_timeout}"
            )
        if self.pool_size < 0:
            raise ValueError(f"pool_size must be non-negative, got {self.pool_size}")
        if self.buffer_size < 1:
            raise ValueError(f"buffer_size must be positive, got {self.buffer_size}")


@dataclass
class ArchiveConfig:
    """Configuration for archive (zip/rar) scanning."""

    # Entries examined when looking for images
    scan_limit: int = 10

    # Fraction of image entries that marks an archive as a comic book
    comic_threshold: float = 0.9

    # Extraction limit as a multiple of the container size (random access)
    size_multiplier: int = 4

    # Extraction limit in bytes for streamed formats (rar)
    stream_limit: int = 100 << 20

    # Maximum nesting of archive members and cover art
    max_depth: int = 4

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.scan_limit < 1:
            raise ValueError(f"scan_limit must be at least 1, got {self.scan_limit}")
        if not 0.0 < self.comic_threshold <= 1.0:
            raise ValueError(
                f"comic_threshold must be in (0, 1], got {self.comic_threshold}"
            )
        if self.size_multiplier < 1:
            raise ValueError(
                f"size_multiplier must be at least 1, got {self.size_multiplier}"
            )
        if self.stream_limit < 1:
            raise ValueError(
                f"stream_limit must be positive, got {self.stream_limit}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )

    def with_overrides(self, **overrides: object) -> "LoggingConfig":
        """Copy with the given fields replaced, skipping None values.

        Used for command line options, where None means "not given".
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


@dataclass
class MediathumbConfig:
    """Main configuration container.

    Aggregates all configuration sections.
    """

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    thumbnail: ThumbnailConfig = field(default_factory=ThumbnailConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Directory for temporary copies of non-file inputs (None = system default)
    temp_directory: Path | None = None

    def get_tool_path(self, tool_name: str) -> Path | None:
        """Get configured path for a tool.

        Args:
            tool_name: Name of the tool (ffmpeg, ffprobe, gm, pngquant).

        Returns:
            Configured path or None if not configured.
        """
        return getattr(self.tools, tool_name.lower(), None)
