"""Unified CLI output formatting for JSON and human-readable output."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

from mediathumb.cli.exit_codes import ExitCode
from mediathumb.errors import (
    ArchiveError,
    InvalidImageError,
    MimeNotAcceptedError,
    NoStreamsError,
    ThumbnailerError,
    ToolNotFoundError,
    UnsupportedMimeError,
)

# Most specific classes first
_ERROR_EXIT_CODES: tuple[tuple[type[ThumbnailerError], ExitCode], ...] = (
    (MimeNotAcceptedError, ExitCode.NOT_ACCEPTED),
    (UnsupportedMimeError, ExitCode.UNSUPPORTED_TYPE),
    (InvalidImageError, ExitCode.INVALID_IMAGE),
    (NoStreamsError, ExitCode.NO_STREAMS),
    (ToolNotFoundError, ExitCode.TOOL_NOT_AVAILABLE),
    (ArchiveError, ExitCode.ARCHIVE_ERROR),
)


def exit_code_for(error: ThumbnailerError) -> ExitCode:
    """Map a library error onto the CLI exit code reported for it."""
    for error_type, code in _ERROR_EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return ExitCode.OPERATION_FAILED


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Exit with formatted error message.

    Args:
        message: Error message to display.
        code: Exit code to use (ExitCode enum or int).
        json_output: Whether to format output as JSON.
    """
    if isinstance(code, ExitCode):
        code_name = code.name
        exit_value = int(code)
    else:
        code_name = "UNKNOWN_ERROR"
        exit_value = code

    if json_output:
        click.echo(
            json.dumps(
                {
                    "status": "failed",
                    "error": {
                        "code": code_name,
                        "message": message,
                    },
                }
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(exit_value)


def json_output(data: dict[str, Any]) -> None:
    """Print a JSON document to stdout."""
    click.echo(json.dumps(data, indent=2))
