"""
Completion handler that only reports finished files.
"""

from __future__ import annotations

from mirrorkeeper.mirror.types import SourceConfig
from mirrorkeeper.utils.logging import get_logger

logger = get_logger("mirrorkeeper.handlers.log")


class LogFileHandler:
    name = "log"

    def __init__(self, source: SourceConfig):
        self.source = source
        self.seen: list[str] = []

    def process_finished(self, filename: str) -> None:
        self.seen.append(filename)
        logger.info(f"Finished file <{self.source.name}:{filename}>")

    def close(self) -> None:
        pass
