"""FFprobe-based implementation of MediaIntrospector protocol."""

import json
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from mediathumb.errors import MediaIntrospectionError
from mediathumb.introspector.models import MediaInfo
from mediathumb.introspector.parsers import parse_ffprobe_output


class FFprobeIntrospector:
    """ffprobe-based implementation of MediaIntrospector protocol.

    Supports configured ffprobe paths via the mediathumb configuration.
    """

    def __init__(
        self, ffprobe_path: Path | None = None, timeout: float | None = None
    ) -> None:
        """Initialize the introspector.

        Args:
            ffprobe_path: Optional explicit path to ffprobe. If not provided,
                uses the path from configuration or system PATH.
            timeout: Seconds to wait for ffprobe. Defaults to the configured
                stage timeout.

        Raises:
            ToolNotFoundError: If ffprobe is not available.
        """
        if ffprobe_path is None:
            from mediathumb.tools import require_tool

            ffprobe_path = require_tool("ffprobe")
        if timeout is None:
            from mediathumb.config import get_config

            timeout = get_config().pipeline.stage_timeout
        self._ffprobe_path = ffprobe_path
        self._timeout = timeout

    @staticmethod
    def is_available() -> bool:
        """Check if ffprobe is available on the system."""
        from mediathumb.tools import is_available

        return is_available("ffprobe")

    def probe(self, path: Path) -> MediaInfo:
        """Extract metadata from a media file.

        Raises:
            MediaIntrospectionError: If the file cannot be introspected.
        """
        if not path.exists():
            raise MediaIntrospectionError(f"File not found: {path}")

        try:
            ffprobe_output = self._run_ffprobe(path)
        except subprocess.TimeoutExpired as e:
            raise MediaIntrospectionError(
                f"ffprobe timed out for {path} after {e.timeout}s"
            ) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise MediaIntrospectionError(
                f"ffprobe failed for {path}: {stderr or e}"
            ) from e
        except json.JSONDecodeError as e:
            raise MediaIntrospectionError(
                f"Invalid ffprobe output for {path}: {e}"
            ) from e
        except OSError as e:
            raise MediaIntrospectionError(f"Failed to run ffprobe: {e}") from e

        return parse_ffprobe_output(ffprobe_output, str(path))

    def _run_ffprobe(self, path: Path) -> dict:
        """Run ffprobe and return parsed JSON output.

        Raises:
            subprocess.CalledProcessError: If ffprobe returns non-zero.
            json.JSONDecodeError: If output is not valid JSON.
            MediaIntrospectionError: If output is missing required keys.
        """
        result = subprocess.run(  # nosec B603 - ffprobe path is validated
            [
                str(self._ffprobe_path),
                "-v",
                "error",
                "-print_format",
                "json",
                "-show_streams",
                "-show_format",
                str(path),
            ],
            capture_output=True,
            text=True,
            errors="replace",
            check=True,
            timeout=self._timeout,
        )
        data = json.loads(result.stdout)

        if "streams" not in data:
            raise MediaIntrospectionError(
                f"Missing 'streams' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )
        return data
