"""CLI sniff command: identify file types by content."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from mediathumb.cli.exit_codes import ExitCode
from mediathumb.cli.output import json_output
from mediathumb.errors import UnsupportedMimeError
from mediathumb.processor import get_processor

logger = logging.getLogger(__name__)


@click.command("sniff")
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
def sniff_command(files: tuple[Path, ...], as_json: bool) -> None:
    """Print the MIME type and canonical extension of each FILE.

    Types are detected from file contents; file names are ignored. Exits
    non-zero if any file could not be identified.
    """
    processor = get_processor()
    results: list[dict] = []
    exit_code = ExitCode.SUCCESS

    for path in files:
        entry: dict = {"file": str(path)}
        try:
            with path.open("rb") as f:
                mime, extension = processor.detect_mime(f)
        except FileNotFoundError:
            entry["error"] = "file not found"
            exit_code = ExitCode.TARGET_NOT_FOUND
        except UnsupportedMimeError as e:
            entry["error"] = str(e)
            if exit_code == ExitCode.SUCCESS:
                exit_code = ExitCode.UNSUPPORTED_TYPE
        except OSError as e:
            entry["error"] = str(e)
            exit_code = ExitCode.GENERAL_ERROR
        else:
            entry["mime"] = mime
            entry["extension"] = extension
        results.append(entry)

    if as_json:
        json_output({"files": results})
    else:
        for entry in results:
            if "error" in entry:
                click.echo(f"{entry['file']}: error: {entry['error']}")
            else:
                click.echo(f"{entry['file']}: {entry['mime']} ({entry['extension']})")

    sys.exit(exit_code)
