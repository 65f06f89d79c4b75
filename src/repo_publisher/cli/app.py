"""Typer CLI root application."""

import typer

from repo_publisher.core.config import get_settings
from repo_publisher.core.logging import setup_logging

app = typer.Typer(name="repo-publisher", help="Repository-to-object-store publishing CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


def _register_subcommands() -> None:
    """Register all CLI commands."""
    from repo_publisher.cli.publish_cmd import check_command, drain_command, ingest_command, status_command

    app.command("ingest")(ingest_command)
    app.command("drain")(drain_command)
    app.command("status")(status_command)
    app.command("check")(check_command)


_register_subcommands()
