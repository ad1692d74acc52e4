"""
Main CLI entry point.
"""

import typer

from mirrorkeeper import __version__
from mirrorkeeper.cli import mirror, show, unlock


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"mirrorkeeper version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="mirrorkeeper",
    help="mirrorkeeper - Mirror FTP/FTPS/SFTP sources and process each finished file exactly once",
    add_completion=False,
)

app.add_typer(mirror.app, name="mirror")
app.add_typer(unlock.app, name="unlock")
app.add_typer(show.app, name="show")


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    mirrorkeeper - Mirror FTP/FTPS/SFTP sources and process each finished file exactly once.

    Run 'mirrorkeeper <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
