"""External tool detection and version parsing.

Resolves the programs the pipelines shell out to (ffmpeg, ffprobe, gm,
pngquant): configured paths first, then PATH. Results are cached per process
behind a lock.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess  # nosec B404 - subprocess is required for tool detection
import threading
from pathlib import Path

from mediathumb.errors import ToolNotFoundError
from mediathumb.tools.models import TOOL_SPECS, ToolInfo, ToolSpec, ToolStatus

logger = logging.getLogger(__name__)

# Timeout for version detection commands (seconds)
DETECTION_TIMEOUT = 10

_tool_cache: dict[str, ToolInfo] = {}
_tool_cache_lock = threading.Lock()


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Parse a version string into a comparable tuple.

    Handles "6.1.1", "n6.1.1" (ffmpeg nightlies), "6.1-static" and
    "1.3.42 2023-12-23" style strings.

    Returns:
        Tuple of version components, or None if parsing fails.
    """
    if not version_str:
        return None

    version_str = version_str.lstrip("nv")
    match = re.match(r"(\d+(?:\.\d+)*)", version_str)
    if not match:
        return None
    return tuple(int(p) for p in match.group(1).split("."))


def find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Find a tool executable.

    Args:
        name: Tool name (e.g., "ffmpeg").
        configured_path: Optional configured path override.

    Returns:
        Path to tool executable, or None if not found.
    """
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Configured path for %s is not a file: %s", name, configured_path
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)
    return None


def detect_tool(spec: ToolSpec, configured_path: Path | None = None) -> ToolInfo:
    """Locate a tool and probe its version."""
    info = ToolInfo(name=spec.name, required=spec.required)

    path = find_tool(spec.name, configured_path)
    if path is None:
        info.status_message = f"{spec.name} not found in PATH"
        return info
    info.path = path

    try:
        result = subprocess.run(  # nosec B603 - tool path and fixed flags
            [str(path), *spec.version_args],
            capture_output=True,
            text=True,
            errors="replace",
            timeout=DETECTION_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        info.status = ToolStatus.ERROR
        info.status_message = f"Failed to run {spec.name}: {e}"
        return info

    if result.returncode != 0:
        info.status = ToolStatus.ERROR
        info.status_message = (
            f"Failed to get {spec.name} version: {result.stderr.strip()}"
        )
        return info

    match = re.search(spec.version_pattern, result.stdout, re.MULTILINE)
    if match:
        info.version = match.group(1)
        info.version_tuple = parse_version_string(info.version)

    info.status = ToolStatus.AVAILABLE
    return info


def get_tool_info(name: str) -> ToolInfo:
    """Get cached detection info for a known tool."""
    cached = _tool_cache.get(name)
    if cached is not None:
        return cached

    with _tool_cache_lock:
        cached = _tool_cache.get(name)
        if cached is not None:
            return cached

        from mediathumb.config import get_config

        spec = TOOL_SPECS[name]
        info = detect_tool(spec, get_config().get_tool_path(name))
        if not info.is_available():
            log = logger.warning if spec.required else logger.debug
            log("%s unavailable: %s", name, info.status_message)
        _tool_cache[name] = info
        return info


def detect_all_tools() -> list[ToolInfo]:
    """Detect every known tool."""
    return [get_tool_info(name) for name in TOOL_SPECS]


def is_available(name: str) -> bool:
    """Check whether a tool is installed and usable."""
    return get_tool_info(name).is_available()


def require_tool(name: str) -> Path:
    """Get the path of a tool, raising if it is unavailable.

    Raises:
        ToolNotFoundError: If the tool is not installed.
    """
    info = get_tool_info(name)
    if not info.is_available() or info.path is None:
        raise ToolNotFoundError(name)
    return info.path


def refresh_tools() -> None:
    """Forget cached detection results (thread-safe)."""
    with _tool_cache_lock:
        _tool_cache.clear()
