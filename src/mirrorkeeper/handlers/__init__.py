"""
Completion handlers run once per finished file.
"""

from mirrorkeeper.handlers.hardlink import HardlinkFileHandler
from mirrorkeeper.handlers.log import LogFileHandler
from mirrorkeeper.handlers.registry import build_default_handler_registry, resolve_handler

__all__ = [
    "HardlinkFileHandler",
    "LogFileHandler",
    "build_default_handler_registry",
    "resolve_handler",
]
