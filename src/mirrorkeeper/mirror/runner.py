"""
Mirror job runner: one guarded mirroring cycle for one source.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from mirrorkeeper.exceptions import ConfigurationError
from mirrorkeeper.handlers.registry import resolve_handler
from mirrorkeeper.mirror.source import FTPSource
from mirrorkeeper.mirror.types import CompletionHandler, SourceConfig
from mirrorkeeper.utils.lockfile import ProcessLock
from mirrorkeeper.utils.logging import get_logger

logger = get_logger("mirrorkeeper.mirror.runner")

LOCK_SCOPES = ("handler", "source")


def lock_key(handler_type: str, source_name: str, scope: str = "handler") -> str:
    """
    Identity of the lock record for a run.

    ``handler`` scope serialises every source sharing a handler type on this
    host; ``source`` scope serialises runs of the same source only.
    """
    if scope not in LOCK_SCOPES:
        raise ConfigurationError(f"Unsupported lock scope: <{scope}>. Use one of {list(LOCK_SCOPES)}")
    key = handler_type
    if scope == "source":
        key = f"{key}-{source_name}"
    return key


def run_mirror_job(
    source: SourceConfig,
    *,
    handler: CompletionHandler | None = None,
    handler_name: str | None = None,
    state_dir: str | Path | None = None,
    lock_dir: str | Path | None = None,
    lock_scope: str = "handler",
) -> dict[str, Any]:
    """
    Run a single mirroring cycle for ``source`` under the process lock.

    Settings are validated before the lock is taken, so a bad configuration
    fails without touching the filesystem. Dry runs do not take the lock.

    Returns a summary dict for logs and the CLI.
    """
    handler = handler or resolve_handler(handler_name, source)
    session = FTPSource(source, handler=handler, state_dir=state_dir)
    session.validate()
    key = lock_key(type(handler).__name__, source.name, lock_scope)

    if source.dry_run:
        batch = session.run()
    else:
        with ProcessLock(key, lock_dir):
            batch = session.run()

    return {
        "name": source.name,
        "dry_run": source.dry_run,
        "transferring": session.mirrored_files.keys(),
        "finished": batch.succeeded,
        "failed": batch.failed,
        "failures": {r.filename: r.error for r in batch.results if not r.ok},
    }
