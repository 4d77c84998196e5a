"""
Chain commands: verify, rotate
"""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from auditchain.core.errors import AuditChainError

from ..context import build_context

console = Console()


def verify(ctx: typer.Context):
    """
    Verify the integrity of the whole event chain.

    A broken chain is reported (and alerts are sent) but still exits 0.
    """
    try:
        result = build_context(ctx.obj).ledger.verify()
    except AuditChainError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    if result.valid:
        console.print(
            f"[green]Integrity verified.[/green] All {result.checked} records are intact."
        )
    else:
        console.print(
            f"[bold red]Integrity compromised[/bold red] at record #{result.record.id} "
            f"({result.error}). Check the logs."
        )


def rotate(
    ctx: typer.Context,
    new_secret: Optional[str] = typer.Argument(None, help="New secret for key derivation"),
):
    """
    Rotate the encryption key.

    The current key is archived to the key backup directory. Update APP_KEY
    afterwards; records written under the old key need the archived key.

    Examples:
        auditchain rotate new_secure_key_123
    """
    new_secret = (new_secret or "").strip()
    if not new_secret:
        console.print("[red]You must provide the new secret as an argument.[/red]")
        raise typer.Exit(1)

    try:
        app_ctx = build_context(ctx.obj)
        app_ctx.cipher.rotate_key(new_secret)
    except AuditChainError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    console.print(f"[green]Encryption key rotated[/green] (new key id {app_ctx.cipher.key_id}).")
    console.print(
        f"Previous key archived in {escape(app_ctx.settings.key_backup_dir)}; "
        "set APP_KEY to the new secret."
    )
