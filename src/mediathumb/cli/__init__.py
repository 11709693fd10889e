"""CLI module for mediathumb."""

import logging
import os
from pathlib import Path

import click

_logging_configured: bool = False

logger = logging.getLogger(__name__)


def _configure_logging(
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from CLI options.

    Args:
        log_level: Override log level (debug, info, warning, error).
        log_file: Override log file path.
        log_json: Use JSON log format.
    """
    global _logging_configured
    if _logging_configured:
        return

    from mediathumb.config import get_config
    from mediathumb.logging import configure_logging

    configure_logging(
        get_config().logging.with_overrides(
            level=log_level,
            file=log_file,
            format="json" if log_json else None,
        )
    )
    _logging_configured = True


@click.group()
@click.version_option(package_name="mediathumb")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file to use instead of ~/.mediathumb/config.toml.",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """mediathumb - Identify media files by content and generate thumbnails."""
    ctx.ensure_object(dict)

    if config_path is not None:
        # Every later get_config() call, including tool detection, reads it
        os.environ["MEDIATHUMB_CONFIG_PATH"] = str(config_path)
        ctx.obj["config_path"] = config_path

    _configure_logging(log_level, log_file, log_json)
    logger.debug("mediathumb starting: command=%s", ctx.invoked_subcommand)


# Defer import to avoid circular dependency
def _register_commands():
    from mediathumb.cli.sniff import sniff_command
    from mediathumb.cli.thumb import thumb_command
    from mediathumb.cli.tools import tools_command

    main.add_command(sniff_command)
    main.add_command(thumb_command)
    main.add_command(tools_command)


_register_commands()
