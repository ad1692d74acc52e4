"""
mirrorkeeper exception hierarchy.

All domain-specific exceptions inherit from MirrorKeeperError, making it easy
to catch any mirroring error with a single base class while still allowing
fine-grained handling when needed.

Hierarchy::

    MirrorKeeperError
    ├── ConfigurationError   - settings, config.yaml, unknown protocol/handler
    ├── LockError            - lock record already held or not creatable
    ├── MirrorProcessError   - lftp launch failure or non-zero exit
    ├── CompletionError      - a completion handler failed for one file
    └── StateStoreError      - persisted file set read/write
"""

from __future__ import annotations


class MirrorKeeperError(Exception):
    """Base exception for all mirrorkeeper errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(MirrorKeeperError):
    """Raised when configuration loading, parsing, or validation fails."""


# --- Exclusivity -------------------------------------------------------------


class LockError(MirrorKeeperError):
    """Raised when a lock record exists or cannot be written."""

    def __init__(self, message: str, *, pid: str | None = None, path: str | None = None) -> None:
        super().__init__(message, details={"pid": pid, "path": path})
        self.pid = pid
        self.path = path


# --- Mirroring ---------------------------------------------------------------


class MirrorProcessError(MirrorKeeperError):
    """Raised when the transfer subprocess cannot be started or fails."""

    def __init__(self, message: str, *, command: str | None = None, returncode: int | None = None) -> None:
        super().__init__(message, details={"command": command, "returncode": returncode})
        self.command = command
        self.returncode = returncode


class CompletionError(MirrorKeeperError):
    """Raised by a completion handler when a finished file cannot be processed."""

    def __init__(self, filename: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Could not handle finished file '{filename}': {message}", details={"filename": filename})
        self.filename = filename
        if cause is not None:
            self.__cause__ = cause


# --- State store -------------------------------------------------------------


class StateStoreError(MirrorKeeperError):
    """Raised when a persisted file set cannot be read or written."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message, details={"path": path})
        self.path = path
