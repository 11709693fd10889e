"""Pure parsing functions for ffprobe JSON output.

These functions transform ffprobe JSON data into MediaInfo objects.
All functions are pure (no I/O, no side effects) for easy testing.
"""

import logging

from mediathumb.introspector.models import MediaInfo, StreamInfo

logger = logging.getLogger(__name__)

_MAX_TAG_VALUE_LENGTH = 4096


def sanitize_string(value: str | None) -> str | None:
    """Sanitize a tag value for display.

    Replaces invalid UTF-8, drops control characters and surrounding
    whitespace, and truncates overlong values.

    Returns:
        Sanitized string, or None if nothing printable remains.
    """
    if value is None:
        return None
    value = value.encode("utf-8", errors="replace").decode("utf-8")
    value = "".join(c for c in value if c.isprintable() or c == " ").strip()
    if not value:
        return None
    return value[:_MAX_TAG_VALUE_LENGTH]


def _log_validation_warning(
    message: str,
    field_name: str,
    file_path: str | None,
    *args: object,
) -> None:
    """Log a validation warning with optional file context."""
    context = f" in {file_path}" if file_path else ""
    logger.warning(f"{message}{context}", field_name, *args)


def validate_positive_int(
    value: int | None,
    field_name: str,
    file_path: str | None = None,
) -> int | None:
    """Validate that a value is a positive integer or None.

    Args:
        value: Value to validate.
        field_name: Field name for warning messages.
        file_path: File path context for warnings.

    Returns:
        Validated value or None if invalid.
    """
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        _log_validation_warning(
            "Expected int for %s, got %s", field_name, file_path, type(value).__name__
        )
        return None
    if value < 0:
        _log_validation_warning("Invalid negative %s: %d", field_name, file_path, value)
        return None
    return value


def parse_duration(value: str | None) -> float | None:
    """Parse duration string from ffprobe into seconds.

    Args:
        value: Duration string from ffprobe (e.g., "3600.000") or None.

    Returns:
        Duration in seconds as float, or None if parsing fails or the
        value is negative.
    """
    if value is None:
        return None
    try:
        duration = float(value)
    except (ValueError, TypeError):
        return None
    return duration if duration >= 0 else None


def find_tag(tags: dict, *names: str) -> str | None:
    """Look up the first present tag among names, ignoring key case."""
    folded = {str(k).casefold(): v for k, v in tags.items()}
    for name in names:
        value = folded.get(name.casefold())
        if value is not None:
            sanitized = sanitize_string(str(value))
            if sanitized:
                return sanitized
    return None


def parse_stream(stream: dict, file_path: str | None = None) -> StreamInfo:
    """Parse a single ffprobe stream dict into a StreamInfo."""
    disposition = stream.get("disposition", {})
    info = StreamInfo(
        index=stream.get("index", 0),
        codec_type=stream.get("codec_type", ""),
        codec=stream.get("codec_name"),
        pix_fmt=stream.get("pix_fmt"),
        duration_seconds=parse_duration(stream.get("duration")),
        is_cover_art=disposition.get("attached_pic", 0) == 1,
        tags=dict(stream.get("tags", {})),
    )

    if info.codec_type == "video":
        info.width = validate_positive_int(stream.get("width"), "width", file_path)
        info.height = validate_positive_int(stream.get("height"), "height", file_path)

    return info


def parse_ffprobe_output(data: dict, file_path: str | None = None) -> MediaInfo:
    """Parse ffprobe JSON output into MediaInfo.

    Title and artist come from container tags first, then from the tags of
    the stream a thumbnail would be taken from.
    """
    format_info = data.get("format", {})
    info = MediaInfo(
        format_name=format_info.get("format_name"),
        duration_seconds=parse_duration(format_info.get("duration")),
    )

    seen_indices: set[int] = set()
    for raw in data.get("streams", []):
        stream = parse_stream(raw, file_path)
        if stream.index in seen_indices:
            info.warnings.append(f"Duplicate stream index {stream.index}, skipping")
            continue
        seen_indices.add(stream.index)
        info.streams.append(stream)

    if not info.streams:
        info.warnings.append("No streams found in file")

    # Fall back to the longest stream when the container has no duration
    if info.duration_seconds is None:
        durations = [
            s.duration_seconds for s in info.streams if s.duration_seconds is not None
        ]
        if durations:
            info.duration_seconds = max(durations)

    container_tags = format_info.get("tags", {})
    best = info.video_stream or info.audio_stream
    stream_tags = best.tags if best else {}
    info.title = find_tag(container_tags, "title") or find_tag(stream_tags, "title")
    info.artist = find_tag(container_tags, "artist", "album_artist") or find_tag(
        stream_tags, "artist", "album_artist"
    )
    return info
