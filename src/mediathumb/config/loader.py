"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. Arguments passed to get_config()
2. Environment variables (MEDIATHUMB_*)
3. Config file (~/.mediathumb/config.toml)
4. Default values

Environment variables:
- MEDIATHUMB_CONFIG_PATH: Path to config file (overrides default location)
- MEDIATHUMB_FFMPEG_PATH / _FFPROBE_PATH / _GM_PATH / _PNGQUANT_PATH
- MEDIATHUMB_THUMB_WIDTH / _THUMB_HEIGHT / _MAX_WIDTH / _MAX_HEIGHT
- MEDIATHUMB_JPEG_QUALITY / _PNG_QUALITY
- MEDIATHUMB_STAGE_TIMEOUT: Seconds before a pipeline stage is killed
- MEDIATHUMB_POOL_SIZE, MEDIATHUMB_BUFFER_SIZE: Buffer pool sizing
- MEDIATHUMB_ARCHIVE_STREAM_LIMIT / _ARCHIVE_MAX_DEPTH
- MEDIATHUMB_LOG_LEVEL / _LOG_FILE / _LOG_FORMAT / _LOG_INCLUDE_STDERR / _LOG_MAX_BYTES

Byte sizes accept K, M and G suffixes (binary units), e.g. 100M.
- MEDIATHUMB_TEMP_DIR: Directory for temporary copies of inputs
"""

from __future__ import annotations

import logging
import threading
import tomllib
from pathlib import Path
from typing import Any

from mediathumb.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from mediathumb.config.env import EnvReader
from mediathumb.config.models import MediathumbConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".mediathumb"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# Cache for loaded config files (path -> (parsed dict, mtime))
_config_cache: dict[Path, tuple[dict[str, Any], float]] = {}
_config_cache_lock = threading.Lock()


class ConfigFileError(ValueError):
    """Raised when a config file cannot be parsed in strict mode."""


def get_default_config_path() -> Path:
    """Get the default config file path.

    Can be overridden by MEDIATHUMB_CONFIG_PATH environment variable.
    """
    env_path = EnvReader().get_path("CONFIG_PATH", must_exist=False)
    return env_path or DEFAULT_CONFIG_FILE


def _read_toml(path: Path, strict: bool) -> dict[str, Any]:
    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}
    try:
        with path.open("rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise ConfigFileError(f"Cannot parse config file {path}: {e}") from e
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}
    logger.debug("Loaded config from %s", path)
    return config


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from TOML file.

    Results are cached with mtime-based invalidation, so an edited file is
    picked up on the next call.

    Args:
        path: Path to config file. If None, uses default location.
        strict: If True, raise ConfigFileError on parse failures.
            If False (default), return empty dict on errors.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        current_mtime = 0.0

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == current_mtime:
            return cached[0]

        result = _read_toml(path, strict)
        _config_cache[path] = (result, current_mtime)
        return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    with _config_cache_lock:
        _config_cache.clear()


def get_config(
    config_path: Path | None = None,
    # Explicit overrides (highest precedence)
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
    temp_directory: Path | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> MediathumbConfig:
    """Get configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides MEDIATHUMB_CONFIG_PATH).
        ffmpeg_path: Override for the ffmpeg path.
        ffprobe_path: Override for the ffprobe path.
        temp_directory: Override for the temporary directory.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise ConfigFileError on config file parse failures.

    Returns:
        MediathumbConfig with merged configuration.
    """
    reader = env_reader or EnvReader()
    file_config = load_config_file(config_path, strict=strict)

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config))
    builder.apply(source_from_env(reader))
    builder.apply(
        ConfigSource(
            ffmpeg_path=ffmpeg_path,
            ffprobe_path=ffprobe_path,
            temp_directory=temp_directory,
        )
    )
    return builder.build()


def get_temp_directory() -> Path | None:
    """Get the directory for temporary copies of inputs.

    Returns:
        Configured directory, or None to use the system default.
    """
    temp = get_config().temp_directory
    if temp is not None and not temp.is_dir():
        logger.warning(
            "Configured temp directory '%s' is not a valid directory, "
            "falling back to system default",
            temp,
        )
        return None
    return temp
