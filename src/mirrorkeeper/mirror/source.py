"""
FTP/FTPS/SFTP source mirrored with lftp.

Design goals:

- hide the differences between the FTP flavours behind one settings object
- process each **whole** file exactly once, with no "upload finished" signal
  from the remote side

lftp reports a file as ``Transferring file`` on every pass until the local
copy matches the remote one. A file that was being transferred at the end of
the previous pass and is no longer transferred in this one is therefore
taken to be finished, and handed to the completion handler.

Example::

    source = SourceConfig(name="west-coast", protocol="sftp", host="ftp.example.com",
                          username="bob", password="ross", path="/systemX/2017/03",
                          output="/tmp/ftp/raw", links="/tmp/ftp/clean")
    FTPSource(source, handler=HardlinkFileHandler(source)).run()
"""

from __future__ import annotations

import subprocess
import traceback
from enum import Enum
from pathlib import Path

from mirrorkeeper.exceptions import ConfigurationError, MirrorProcessError
from mirrorkeeper.mirror.command import build_command
from mirrorkeeper.mirror.files import MirroredFiles
from mirrorkeeper.mirror.output import OutputEvent, TransferEvent, classify_line
from mirrorkeeper.mirror.types import (
    PROTOCOLS,
    BatchResult,
    CompletionHandler,
    CompletionResult,
    SourceConfig,
)
from mirrorkeeper.utils.logging import get_logger

logger = get_logger("mirrorkeeper.mirror.source")


class CycleState(str, Enum):
    IDLE = "idle"
    MIRRORING = "mirroring"
    DIFFING = "diffing"
    DISPATCHING = "dispatching"
    PERSISTING = "persisting"


class FTPSource:
    """
    One remote source and its mirroring cycle.

    Owns three file sets, all keyed by the source name:

    - ``mirrored_files``: paths seen transferring during this pass (cleared per pass)
    - ``previously_mirrored_files``: the persisted set as of the last completed pass
    - ``finished_files``: files handed to the handler successfully in this pass
    """

    def __init__(
        self,
        settings: SourceConfig,
        handler: CompletionHandler,
        state_dir: str | Path | None = None,
    ):
        self.settings = settings
        self.handler = handler
        self.state_dir = state_dir
        self.state = CycleState.IDLE
        self.mirrored_files = MirroredFiles(settings.name or "_unnamed", state_dir)
        self.previously_mirrored_files = MirroredFiles(settings.name or "_unnamed", state_dir)
        self.finished_files = MirroredFiles(settings.name or "_unnamed", state_dir)

    def validate(self) -> bool:
        """
        Check the source settings.

        Raises:
            ConfigurationError: naming the first missing or invalid setting
        """
        s = self.settings
        if s.protocol not in PROTOCOLS:
            raise ConfigurationError(f"Unsupported --protocol: <{s.protocol}>")
        if not s.host:
            raise ConfigurationError("A --host is required")
        if not s.path:
            raise ConfigurationError("A --path is required")
        if not s.output:
            raise ConfigurationError("A local --output directory is required")
        if not s.links:
            raise ConfigurationError("A local --links directory is required")
        if not s.name:
            raise ConfigurationError("The --name of a directory within the output directory is required")
        return True

    @property
    def port(self) -> int:
        """Explicit port, else the protocol's standard port."""
        if self.settings.port is not None:
            return self.settings.port
        return PROTOCOLS[self.settings.protocol]

    @property
    def command(self) -> str:
        return build_command(self.settings, self.port)

    def describe(self) -> str:
        s = self.settings
        user = f"{s.username}@" if s.username else ""
        return f"{s.protocol} {user}{s.host}:{self.port}{s.path}"

    def mirror(self) -> None:
        """
        Run one lftp pass, collecting transferring paths into ``mirrored_files``.

        In dry-run mode only logs the command.

        Raises:
            MirrorProcessError: if lftp cannot be started or exits non-zero
        """
        logger.info(f"Mirroring {self.describe()} to {self.settings.destination}")
        self.mirrored_files.clear()

        if self.settings.dry_run:
            logger.info(build_command(self.settings, self.port, redact=True))
            self.handler.close()
            return

        self.state = CycleState.MIRRORING
        try:
            self._run_subprocess(self.command)
        finally:
            self.state = CycleState.IDLE
            self.handler.close()

    def _run_subprocess(self, command: str) -> None:
        try:
            process = subprocess.Popen(
                command,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise MirrorProcessError(f"Could not start lftp: {e}", command=self._redacted()) from e

        with process:
            for line in process.stdout:
                self.handle_output(line)
            returncode = process.wait()

        if returncode != 0:
            raise MirrorProcessError(
                f"lftp exited with status {returncode} while mirroring {self.describe()}",
                command=self._redacted(),
                returncode=returncode,
            )

    def _redacted(self) -> str:
        return build_command(self.settings, self.port, redact=True)

    def handle_output(self, line: str) -> OutputEvent:
        """Log one lftp output line and record it if it is a transfer."""
        event = classify_line(line)
        logger.debug(line.rstrip("\r\n"))
        if isinstance(event, TransferEvent):
            self.mirrored_files.mark(event.path)
        return event

    def handle_newly_mirrored_files(self) -> BatchResult:
        """
        Hand every finished file to the handler, then persist this pass's set.

        Finished files were transferring at the end of the previous pass but
        not in this one. A failing file is logged and skipped; the persisted
        set is replaced by ``mirrored_files`` regardless. The handler is closed
        once the batch is dispatched.
        """
        try:
            self.state = CycleState.DIFFING
            self.previously_mirrored_files.load()
            self.finished_files.clear()
            finished_names = sorted(set(self.previously_mirrored_files.keys()) - set(self.mirrored_files.keys()))

            self.state = CycleState.DISPATCHING
            batch = BatchResult()
            for filename in finished_names:
                result = self._dispatch(filename)
                batch.results.append(result)
                if result.ok:
                    self.finished_files.mark(filename)
            self.handler.close()

            self.state = CycleState.PERSISTING
            self.previously_mirrored_files = self.mirrored_files.copy()
            self.previously_mirrored_files.save()
        finally:
            self.state = CycleState.IDLE

        succeeded, failed = batch.counts
        logger.info(
            f"Source <{self.settings.name}>: {len(self.mirrored_files)} transferring, "
            f"{succeeded} finished, {failed} failed"
        )
        return batch

    def _dispatch(self, filename: str) -> CompletionResult:
        try:
            self.handler.process_finished(filename)
        except Exception as e:
            logger.error(f"Could not handle finished file <{filename}>: {type(e).__name__} -- {e}")
            tb = traceback.format_exc()
            for line in tb.splitlines():
                logger.debug(line)
            return CompletionResult(filename=filename, ok=False, error=f"{type(e).__name__}: {e}", traceback=tb)
        logger.info(f"Finished file <{filename}>")
        return CompletionResult(filename=filename, ok=True)

    def run(self) -> BatchResult:
        """
        Validate, mirror, and (unless dry-run) process finished files.
        """
        self.validate()
        self.mirror()
        if self.settings.dry_run:
            return BatchResult()
        return self.handle_newly_mirrored_files()
