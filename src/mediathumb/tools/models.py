"""Data models for external tool detection."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ToolStatus(Enum):
    """Status of an external tool."""

    AVAILABLE = "available"  # Tool found and version detected
    MISSING = "missing"  # Tool not found in PATH or configured location
    ERROR = "error"  # Tool found but version probe failed


@dataclass
class ToolInfo:
    """Detection result for one external program."""

    name: str
    path: Path | None = None
    version: str | None = None
    version_tuple: tuple[int, ...] | None = None
    status: ToolStatus = ToolStatus.MISSING
    status_message: str | None = None
    required: bool = True
    """False for optional helpers (the PNG quantizer, the PDF renderer)."""

    def is_available(self) -> bool:
        """Return True if the tool is available and usable."""
        return self.status == ToolStatus.AVAILABLE


@dataclass(frozen=True)
class ToolSpec:
    """How to find and version-probe a tool."""

    name: str
    version_args: tuple[str, ...]
    version_pattern: str
    required: bool = True


TOOL_SPECS: dict[str, ToolSpec] = {
    "ffmpeg": ToolSpec("ffmpeg", ("-version",), r"ffmpeg version (\S+)"),
    "ffprobe": ToolSpec("ffprobe", ("-version",), r"ffprobe version (\S+)"),
    "gm": ToolSpec("gm", ("version",), r"GraphicsMagick (\S+)", required=False),
    "pngquant": ToolSpec(
        "pngquant", ("--version",), r"^(\d+(?:\.\d+)*)", required=False
    ),
}
