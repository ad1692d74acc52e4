"""
Default completion handler: stable hardlinks for finished files.

A file lftp has stopped re-transferring is linked from the raw mirror tree
``<output>/<name>/<file>`` into ``<links>/<name>/<file>``. Consumers read from
the links tree and never see a partially downloaded file.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from mirrorkeeper.exceptions import CompletionError
from mirrorkeeper.mirror.types import SourceConfig
from mirrorkeeper.utils.logging import get_logger

logger = get_logger("mirrorkeeper.handlers.hardlink")


class HardlinkFileHandler:
    """Hardlink finished files into the links directory."""

    name = "hardlink"

    def __init__(self, source: SourceConfig):
        self.source = source
        self.raw_root = Path(source.output) / source.name
        self.links_root = Path(source.links) / source.name
        self.linked = 0

    def paths_for(self, filename: str) -> tuple[Path, Path]:
        """(raw file, link) for a filename reported by lftp."""
        rel = PurePosixPath(filename)
        if rel.is_absolute() or ".." in rel.parts or not rel.parts:
            raise CompletionError(filename, "path escapes the mirror directory")
        return self.raw_root.joinpath(*rel.parts), self.links_root.joinpath(*rel.parts)

    def process_finished(self, filename: str) -> None:
        raw, link = self.paths_for(filename)
        if not raw.is_file():
            raise CompletionError(filename, f"mirrored file <{raw}> does not exist")

        if link.exists():
            if os.path.samefile(raw, link):
                logger.debug(f"Link <{link}> already exists")
                return
            raise CompletionError(filename, f"<{link}> exists and is not a link to <{raw}>")

        try:
            link.parent.mkdir(parents=True, exist_ok=True)
            os.link(raw, link)
        except OSError as e:
            raise CompletionError(filename, f"could not link <{raw}> to <{link}>: {e}", cause=e) from e

        self.linked += 1
        logger.info(f"Linked <{raw}> -> <{link}>")

    def close(self) -> None:
        if self.linked:
            logger.info(f"Created {self.linked} link(s) in <{self.links_root}>")
        self.linked = 0
