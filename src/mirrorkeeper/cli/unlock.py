"""
mirrorkeeper unlock - Clear a stale lock record.

A run killed with SIGKILL (or a crashed host) leaves its lock record behind
and every later run refuses to start until it is removed.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from mirrorkeeper.exceptions import MirrorKeeperError
from mirrorkeeper.handlers.registry import DEFAULT_HANDLER, build_default_handler_registry
from mirrorkeeper.mirror.runner import lock_key
from mirrorkeeper.utils.lockfile import ProcessLock

app = typer.Typer(name="unlock", help="Clear a stale lock record", invoke_without_command=True)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def unlock(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", help="Source name (with --lock-scope source)"),
    handler: str = typer.Option(DEFAULT_HANDLER, "--handler", help="Completion handler the lock belongs to"),
    lock_dir: Path | None = typer.Option(None, "--lock-dir", help="Directory for the lock record"),
    lock_scope: str = typer.Option("handler", "--lock-scope", help="Lock per 'handler' type or per 'source'"),
) -> None:
    """
    Remove the lock record for a handler (or handler + source).
    """
    if ctx.invoked_subcommand is not None:
        return

    registry = build_default_handler_registry()
    factory = registry.get(handler)
    if factory is None:
        err_console.print(f"[red]Error:[/red] Unknown handler '{escape(handler)}'. Available: {escape(str(sorted(registry)))}", soft_wrap=True)
        raise typer.Exit(1)
    if lock_scope == "source" and not name:
        err_console.print("[red]Error:[/red] --name is required with --lock-scope source", soft_wrap=True)
        raise typer.Exit(1)

    try:
        lock = ProcessLock(lock_key(factory.__name__, name or "", lock_scope), lock_dir)
    except MirrorKeeperError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1) from None

    pid = lock.owner_pid()
    if lock.clear():
        console.print(f"Removed lock {escape(str(lock.path))} (PID {pid or 'unknown'})", soft_wrap=True)
    else:
        console.print(f"No lock at {escape(str(lock.path))}", soft_wrap=True)
