"""Media introspection for mediathumb.

- MediaIntrospector: Protocol defining the introspection interface
- FFprobeIntrospector: Production implementation using ffprobe
- MediaInfo, StreamInfo: Probe results
"""

from mediathumb.introspector.ffprobe import FFprobeIntrospector
from mediathumb.introspector.interface import MediaIntrospector
from mediathumb.introspector.models import (
    MediaInfo,
    StreamInfo,
    pixel_format_has_alpha,
)
from mediathumb.introspector.parsers import parse_ffprobe_output

__all__ = [
    "FFprobeIntrospector",
    "MediaInfo",
    "MediaIntrospector",
    "StreamInfo",
    "parse_ffprobe_output",
    "pixel_format_has_alpha",
]
