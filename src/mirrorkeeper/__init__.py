"""
mirrorkeeper - incremental FTP/FTPS/SFTP mirroring with exactly-once
processing of finished files.
"""

__version__ = "0.1.0"

from mirrorkeeper.exceptions import (
    CompletionError,
    ConfigurationError,
    LockError,
    MirrorKeeperError,
    MirrorProcessError,
    StateStoreError,
)
from mirrorkeeper.mirror import (
    PROTOCOLS,
    BatchResult,
    FTPSource,
    MirroredFiles,
    SourceConfig,
    run_mirror_job,
)
from mirrorkeeper.utils.lockfile import ProcessLock
from mirrorkeeper.utils.logging import get_logger, setup_logging

__all__ = [
    "__version__",
    # Mirroring
    "FTPSource",
    "MirroredFiles",
    "SourceConfig",
    "BatchResult",
    "PROTOCOLS",
    "run_mirror_job",
    "ProcessLock",
    # Exceptions
    "MirrorKeeperError",
    "ConfigurationError",
    "LockError",
    "MirrorProcessError",
    "CompletionError",
    "StateStoreError",
    # Logging
    "get_logger",
    "setup_logging",
]
