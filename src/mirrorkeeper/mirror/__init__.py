"""
Mirroring subsystem.

lftp-driven mirror passes, completed-file inference by diffing consecutive
passes, and the persisted file sets that carry state between them.
"""

from mirrorkeeper.mirror.files import MirroredFiles
from mirrorkeeper.mirror.output import InfoEvent, TransferEvent, classify_line
from mirrorkeeper.mirror.runner import run_mirror_job
from mirrorkeeper.mirror.source import FTPSource
from mirrorkeeper.mirror.types import PROTOCOLS, BatchResult, CompletionResult, SourceConfig

__all__ = [
    "PROTOCOLS",
    "BatchResult",
    "CompletionResult",
    "FTPSource",
    "InfoEvent",
    "MirroredFiles",
    "SourceConfig",
    "TransferEvent",
    "classify_line",
    "run_mirror_job",
]
