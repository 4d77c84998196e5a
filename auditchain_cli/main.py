#!/usr/bin/env python3
"""
auditchain CLI - Tamper-evident encrypted audit trail

Main entrypoint for the auditchain command-line tool.
"""

import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from auditchain.config import load_settings
from auditchain.logging_config import get_logger, setup_logging
from auditchain.metrics import start_metrics_server

from auditchain_cli.commands import chain, events

app = typer.Typer(
    name="auditchain",
    help="Tamper-evident encrypted audit trail CLI",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


@app.callback()
def root(
    ctx: typer.Context,
    env_file: Optional[str] = typer.Option(None, "--env-file", help="Path to .env file"),
):
    """Load configuration and logging for every command."""
    trace_id = f"{ctx.invoked_subcommand}-{os.getpid()}"
    settings = load_settings(env_file)
    setup_logging(settings.log_level, settings.log_format, trace_id=trace_id)
    get_logger(__name__, trace_id).info("auditchain %s started", ctx.invoked_subcommand)
    start_metrics_server(settings.metrics_enabled, settings.metrics_port)
    ctx.obj = settings


app.command()(events.register)
app.command()(chain.verify)
app.command()(chain.rotate)
app.command()(events.queue)
app.command("list")(events.list_events)
app.command()(events.view)


@app.command()
def version():
    """Show version information."""
    from auditchain_cli import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]auditchain CLI[/bold]", f"v{__version__}")
    table.add_row("Cipher", "AES-256-GCM")
    table.add_row("Chain", "SHA-256(ciphertext || previous_hash)")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
