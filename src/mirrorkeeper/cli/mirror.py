"""
mirrorkeeper mirror - Run one mirroring cycle for a source.

A source is described by a `sources:` entry in config.yaml, by options, or
both (options override the config entry).
"""

import signal
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from mirrorkeeper.config.loader import CONFIG_FILENAME, Config, load_config
from mirrorkeeper.exceptions import MirrorKeeperError
from mirrorkeeper.mirror.runner import run_mirror_job
from mirrorkeeper.mirror.types import SourceConfig
from mirrorkeeper.utils.logging import get_logger, setup_logging_from_config

logger = get_logger("mirrorkeeper.cli.mirror")

app = typer.Typer(name="mirror", help="Mirror a remote FTP/FTPS/SFTP source", invoke_without_command=True)

console = Console()
err_console = Console(stderr=True)


def load_project_config(project_dir: Path, env: str | None, required: bool = False) -> Config:
    """config.yaml from project_dir, or an empty Config when there is none."""
    if required or (project_dir / CONFIG_FILENAME).is_file():
        return load_config(project_dir, env=env)
    return Config({})


def _terminate(signum: int, frame: Any) -> None:
    # Turn SIGTERM into SystemExit so the lock record is released
    raise SystemExit(128 + signum)


def build_source_settings(config: Config, source: str | None, overrides: dict[str, Any]) -> tuple[dict[str, Any], str | None]:
    """
    Merge a config entry with option overrides.

    Returns (settings, handler name).
    """
    settings = config.source_settings(source) if source else {}
    handler_name = settings.pop("handler", None)
    for key, value in overrides.items():
        if value is None or value is False:
            continue
        settings[key] = value
    return settings, handler_name


@app.callback()
def mirror(
    ctx: typer.Context,
    source: str | None = typer.Argument(None, help="Source name from config.yaml"),
    protocol: str | None = typer.Option(None, "--protocol", help="One of ftp, ftps, sftp"),
    host: str | None = typer.Option(None, "--host", help="Remote host"),
    port: int | None = typer.Option(None, "--port", help="Remote port (default: protocol's standard port)"),
    path: str | None = typer.Option(None, "--path", help="Remote path to mirror"),
    output: str | None = typer.Option(None, "--output", help="Local directory for raw mirrored data"),
    links: str | None = typer.Option(None, "--links", help="Local directory for hardlinks to finished files"),
    name: str | None = typer.Option(None, "--name", help="Directory within --output/--links for this source"),
    username: str | None = typer.Option(None, "--username", help="Remote user"),
    password: str | None = typer.Option(None, "--password", help="Remote password"),
    ignore_unverified: bool = typer.Option(False, "--ignore-unverified", help="Skip TLS certificate verification"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log the lftp command without running it"),
    lftp_program: str | None = typer.Option(None, "--lftp-program", help="Path to the lftp executable"),
    handler: str | None = typer.Option(None, "--handler", help="Completion handler (hardlink, log)"),
    state_dir: Path | None = typer.Option(None, "--state-dir", help="Directory for persisted file sets"),
    lock_dir: Path | None = typer.Option(None, "--lock-dir", help="Directory for the lock record"),
    lock_scope: str | None = typer.Option(None, "--lock-scope", help="Lock per 'handler' type or per 'source'"),
    env: str | None = typer.Option(None, help="Environment overlay (config.<env>.yaml)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every lftp output line"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """
    Mirror a remote source and process files that finished transferring.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_project_config(project_dir, env, required=source is not None)
        setup_logging_from_config(config.data, project_dir=project_dir, verbose=verbose)

        settings, config_handler = build_source_settings(
            config,
            source,
            {
                "protocol": protocol,
                "host": host,
                "port": port,
                "path": path,
                "output": output,
                "links": links,
                "name": name,
                "username": username,
                "password": password,
                "ignore_unverified": ignore_unverified,
                "dry_run": dry_run,
                "lftp_program": lftp_program,
            },
        )
        source_config = SourceConfig.from_mapping(settings)

        previous_handler = signal.signal(signal.SIGTERM, _terminate)
        try:
            summary = run_mirror_job(
                source_config,
                handler_name=handler or config_handler,
                state_dir=state_dir or config.get("state.dir"),
                lock_dir=lock_dir or config.get("lock.dir"),
                lock_scope=lock_scope or config.get("lock.scope", "handler"),
            )
        finally:
            signal.signal(signal.SIGTERM, previous_handler)
    except MirrorKeeperError as e:
        logger.debug(f"mirror failed: {e}", exc_info=True)
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False, soft_wrap=True)
        raise typer.Exit(1) from None

    if summary["dry_run"]:
        console.print(f"Dry run for [cyan]{escape(summary['name'])}[/cyan]: no changes made")
        return

    console.print(
        f"[cyan]{escape(summary['name'])}[/cyan]: {len(summary['transferring'])} transferring, "
        f"[green]{len(summary['finished'])} finished[/green], "
        f"[red]{len(summary['failed'])} failed[/red]"
    )
    for filename, error in summary["failures"].items():
        err_console.print(f"  [red]✗[/red] {escape(filename)}: {escape(str(error))}", highlight=False, soft_wrap=True)
