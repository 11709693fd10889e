"""Configuration management for mediathumb.

Configuration is layered with the following precedence:
1. Explicit arguments (highest priority)
2. Environment variables (MEDIATHUMB_*)
3. Config file (~/.mediathumb/config.toml)
4. Default values (lowest priority)
"""

from mediathumb.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from mediathumb.config.env import EnvReader
from mediathumb.config.loader import (
    ConfigFileError,
    clear_config_cache,
    get_config,
    get_default_config_path,
    get_temp_directory,
    load_config_file,
)
from mediathumb.config.models import (
    ArchiveConfig,
    LoggingConfig,
    MediathumbConfig,
    PipelineConfig,
    ThumbnailConfig,
    ToolPathsConfig,
)

__all__ = [
    # Models
    "ArchiveConfig",
    "LoggingConfig",
    "MediathumbConfig",
    "PipelineConfig",
    "ThumbnailConfig",
    "ToolPathsConfig",
    # Loader
    "ConfigFileError",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "get_temp_directory",
    "load_config_file",
    # Layering
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
]
