"""
Event commands: register, queue, list, view
"""

import getpass
import time
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from auditchain.core.errors import AuditChainError

from ..context import build_context, build_publisher

console = Console()


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def register(
    ctx: typer.Context,
    event_type: Optional[str] = typer.Argument(None, help="Event type (default: manual_event)"),
):
    """
    Record an event directly in the audit chain.

    Examples:
        auditchain register login_sistema
    """
    event_type = (event_type or "").strip() or "manual_event"
    data = {"executed_by": _current_user(), "timestamp": int(time.time())}
    try:
        app_ctx = build_context(ctx.obj)
        record_id = app_ctx.ledger.append(event_type, data)
    except AuditChainError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    console.print(f"[green]Event registered[/green] with type: {escape(event_type)} (#{record_id})")


def queue(
    ctx: typer.Context,
    event_type: Optional[str] = typer.Argument(None, help="Event type (default: queued_event)"),
):
    """
    Send an event to the message queue for asynchronous processing.

    Examples:
        auditchain queue remote_access
    """
    event_type = (event_type or "").strip() or "queued_event"
    data = {"user": _current_user(), "from_cli": True, "timestamp": int(time.time())}
    settings = ctx.obj
    try:
        build_publisher(settings).publish(event_type, data)
    except AuditChainError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    console.print(
        f"[green]Event sent to queue[/green] {escape(settings.amqp_queue)}: {escape(event_type)}"
    )


def list_events(
    ctx: typer.Context,
    limit: Optional[str] = typer.Argument(None, help="Number of events to show (default: 10)"),
):
    """
    List the most recent events.

    Examples:
        auditchain list 20
    """
    n = int(limit) if limit is not None and limit.isdigit() else 10
    try:
        records = build_context(ctx.obj).ledger.recent(n)
    except AuditChainError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    if not records:
        console.print("[yellow]Audit trail is empty[/yellow]")
        return

    table = Table(title=f"Last {n} events")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Created", style="dim")
    for rec in records:
        table.add_row(str(rec.id), escape(rec.event_type), str(rec.created_at))
    console.print(table)


def view(
    ctx: typer.Context,
    record_id: Optional[str] = typer.Argument(None, help="Event ID"),
):
    """
    Show the decrypted content of one event.

    Examples:
        auditchain view 7
    """
    if record_id is None or not record_id.isdigit() or int(record_id) < 1:
        console.print("[red]You must provide a valid event ID.[/red]")
        raise typer.Exit(1)

    try:
        ledger = build_context(ctx.obj).ledger
        record = ledger.get_record(int(record_id))
    except AuditChainError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    if record is None:
        console.print("[yellow]Event not found.[/yellow]")
        return

    opened = ledger.read_event(record)
    if opened.ok:
        content = escape(opened.plaintext.decode("utf-8", errors="replace"))
    else:
        content = "[red]unable to decrypt (wrong key or altered data)[/red]"

    console.print(f"[bold]Event #{record.id}[/bold]")
    console.print(f"  Type   : {escape(record.event_type)}")
    console.print(f"  Date   : {record.created_at}")
    console.print(f"  Content: {content}")
