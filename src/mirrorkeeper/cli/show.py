"""
mirrorkeeper show - Display the persisted file set of a source.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mirrorkeeper.exceptions import MirrorKeeperError
from mirrorkeeper.mirror.files import MirroredFiles

app = typer.Typer(name="show", help="Show files still transferring as of the last run", invoke_without_command=True)

console = Console()


@app.callback()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Source name"),
    state_dir: Path | None = typer.Option(None, "--state-dir", help="Directory for persisted file sets"),
) -> None:
    """
    List the files recorded as transferring at the end of the last cycle.
    """
    if ctx.invoked_subcommand is not None:
        return

    files = MirroredFiles(name, state_dir)
    try:
        files.load()
    except MirrorKeeperError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False, soft_wrap=True)
        raise typer.Exit(1) from None

    if not len(files):
        console.print(f"[yellow]No files recorded for '{escape(name)}'[/yellow] ({escape(str(files.path))})", highlight=False, soft_wrap=True)
        return

    table = Table(title=f"{escape(name)} ({len(files)} file(s))")
    table.add_column("File", style="cyan", no_wrap=True, overflow="fold")
    for filename in files:
        table.add_row(escape(filename))
    console.print(table)
