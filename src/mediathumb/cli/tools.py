"""CLI tools command for checking external program availability."""

import sys

import click

from mediathumb.cli.exit_codes import ExitCode
from mediathumb.cli.output import json_output
from mediathumb.tools import ToolInfo, detect_all_tools, refresh_tools


def _format_status(info: ToolInfo) -> str:
    """Format status for display."""
    if info.is_available():
        return "✓"
    return "✗" if info.required else "-"


@click.command("tools")
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
def tools_command(as_json: bool) -> None:
    """Report which external programs were found.

    ffmpeg and ffprobe are required. gm (PDF rendering) and pngquant (PNG
    quantization) are optional.

    Exits with TOOL_NOT_AVAILABLE (30) if a required program is missing.
    """
    refresh_tools()
    tools = detect_all_tools()

    if as_json:
        json_output(
            {
                "tools": [
                    {
                        "name": t.name,
                        "status": t.status.value,
                        "required": t.required,
                        "version": t.version,
                        "path": str(t.path) if t.path else None,
                        "message": t.status_message,
                    }
                    for t in tools
                ]
            }
        )
    else:
        for t in tools:
            version = t.version or "not found"
            path_info = f" ({t.path})" if t.path else ""
            optional = "" if t.required else " [optional]"
            status = _format_status(t)
            click.echo(f"  {status} {t.name}: {version}{path_info}{optional}")
            if t.status_message and not t.is_available():
                click.echo(f"    └─ {t.status_message}")

    missing = [t.name for t in tools if t.required and not t.is_available()]
    sys.exit(ExitCode.TOOL_NOT_AVAILABLE if missing else ExitCode.SUCCESS)
