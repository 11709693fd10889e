"""Exception hierarchy for thumbnailing operations.

Every component raises a subclass of ThumbnailerError so callers can catch
all library failures with a single except clause, or tell the categories
apart when they need to (unsupported input, dimension limits, external tool
failures, archive members).

NoThumbnailError is not a hard failure: it marks input that was valid but has
nothing to preview. The top-level process() call converts it into a result
with no thumbnail.
"""


class ThumbnailerError(Exception):
    """Base class for all thumbnailer errors."""


class UnsupportedMimeError(ThumbnailerError):
    """Raised when the input type could not be identified or is not handled.

    Attributes:
        mime: Observed or best-guess MIME type of the input.
    """

    def __init__(self, mime: str, message: str | None = None) -> None:
        self.mime = mime
        super().__init__(message or f"unsupported MIME type: {mime}")


class MimeNotAcceptedError(UnsupportedMimeError):
    """Raised when the input type was identified but excluded by the caller."""

    def __init__(self, mime: str) -> None:
        super().__init__(mime, f"MIME type not accepted: {mime}")


class InvalidImageError(ThumbnailerError):
    """Raised when a source image violates a configured constraint."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid image: {reason}")


class TooWideError(InvalidImageError):
    """Source width exceeds the configured maximum."""

    def __init__(self, width: int, max_width: int) -> None:
        self.width = width
        self.max_width = max_width
        super().__init__(f"image too wide ({width} > {max_width})")


class TooTallError(InvalidImageError):
    """Source height exceeds the configured maximum."""

    def __init__(self, height: int, max_height: int) -> None:
        self.height = height
        self.max_height = max_height
        super().__init__(f"image too tall ({height} > {max_height})")


class NoThumbnailError(ThumbnailerError):
    """The input is valid but no thumbnail can be generated for it.

    Example: an audio file without cover art, or an archive without any
    image-like members.
    """

    def __init__(self, reason: str = "thumbnail can't be generated") -> None:
        self.reason = reason
        super().__init__(reason)


class NoStreamsError(ThumbnailerError):
    """No decodable audio or video streams were found in a media container."""

    def __init__(self) -> None:
        super().__init__("no decodeable video or audio streams found")


class StageError(ThumbnailerError):
    """Raised when an external pipeline stage fails.

    Attributes:
        stage: Name of the program that failed.
        returncode: Process exit code, or None if it never ran to completion.
        stderr: Captured standard error, stripped of surrounding whitespace.
    """

    def __init__(
        self,
        stage: str,
        returncode: int | None,
        stderr: str = "",
        message: str | None = None,
    ) -> None:
        self.stage = stage
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            message = f"{stage} exited with status {returncode}"
        if stderr:
            message = f"{message}: {stderr}"
        super().__init__(message)


class StageSpawnError(StageError):
    """The external program of a stage could not be started."""

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(stage, None, message=f"{stage} failed to start: {reason}")


class StageTimeoutError(StageError):
    """A stage did not finish within its timeout and was killed."""

    def __init__(self, stage: str, timeout: float, stderr: str = "") -> None:
        self.timeout = timeout
        super().__init__(
            stage, None, stderr, message=f"{stage} timed out after {timeout}s"
        )


class ArchiveError(ThumbnailerError):
    """Wraps a failure that happened while processing an archive member."""

    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause
        super().__init__(f"archive: {cause}")


class CoverArtError(ThumbnailerError):
    """Wraps a failure that happened while thumbnailing embedded cover art."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"cover art: {cause}")


class MediaIntrospectionError(ThumbnailerError):
    """Raised when the media probe fails or reports unusable output."""


class ToolNotFoundError(ThumbnailerError):
    """Raised when a required external program is not installed."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(
            f"{tool} is not installed or not in PATH. "
            f"Configure it via MEDIATHUMB_{tool.upper()}_PATH or "
            "~/.mediathumb/config.toml"
        )


class MatcherConflictError(ThumbnailerError):
    """Raised when a matcher claims a signature already owned by another MIME."""


class BufferReleasedError(ThumbnailerError):
    """Raised when a pooled buffer is used or released after its release."""
