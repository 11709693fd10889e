"""External tool discovery for mediathumb."""

from mediathumb.tools.detection import (
    detect_all_tools,
    detect_tool,
    find_tool,
    get_tool_info,
    is_available,
    parse_version_string,
    refresh_tools,
    require_tool,
)
from mediathumb.tools.models import TOOL_SPECS, ToolInfo, ToolSpec, ToolStatus

__all__ = [
    "TOOL_SPECS",
    "ToolInfo",
    "ToolSpec",
    "ToolStatus",
    "detect_all_tools",
    "detect_tool",
    "find_tool",
    "get_tool_info",
    "is_available",
    "parse_version_string",
    "refresh_tools",
    "require_tool",
]
