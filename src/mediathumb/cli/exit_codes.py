"""Centralized exit codes for all CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Input errors
    20-29: Target/file errors
    30-39: Tool/dependency errors
    40-49: Operation errors
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for mediathumb CLI commands."""

    # Success (0)
    SUCCESS = 0

    # General errors (1-9)
    GENERAL_ERROR = 1
    INTERRUPTED = 2

    # Input errors (10-19)
    UNSUPPORTED_TYPE = 10
    NOT_ACCEPTED = 11
    INVALID_IMAGE = 12
    CONFIG_ERROR = 13

    # Target/file errors (20-29)
    TARGET_NOT_FOUND = 20
    NO_THUMBNAIL = 21
    NO_STREAMS = 22

    # Tool/dependency errors (30-39)
    TOOL_NOT_AVAILABLE = 30

    # Operation errors (40-49)
    OPERATION_FAILED = 40
    ARCHIVE_ERROR = 41
