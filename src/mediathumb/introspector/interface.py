"""MediaIntrospector interface for media metadata extraction."""

from pathlib import Path
from typing import Protocol

from mediathumb.introspector.models import MediaInfo


class MediaIntrospector(Protocol):
    """Protocol for media introspection implementations.

    Implementations report stream layout, duration, dimensions, pixel format
    and tags of an audio, video or image file.
    """

    def probe(self, path: Path) -> MediaInfo:
        """Extract metadata from a media file.

        Args:
            path: Path to the media file.

        Returns:
            MediaInfo describing the file.

        Raises:
            MediaIntrospectionError: If the file cannot be introspected.
        """
        ...
