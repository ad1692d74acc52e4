"""
Hashing utilities for on-disk record names.

Source names and lock keys become file names. Characters outside a safe set
are replaced, and a SHA256 digest of the original keeps two names that
sanitise to the same string apart.
"""

import hashlib
import re

UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def name_digest(name: str, length: int = 16) -> str:
    """
    Truncated SHA256 hex digest of ``name``.

    Args:
        name: Text to hash (UTF-8 encoded)
        length: Number of hex characters to keep

    Returns:
        Hex digest prefix
    """
    return hashlib.sha256(name.encode("utf-8")).hexdigest()[:length]


def safe_basename(name: str) -> str:
    """``name`` with unsafe characters replaced, plus a digest suffix if any were."""
    safe = UNSAFE_CHARS.sub("_", name)
    if safe != name:
        safe = f"{safe}-{name_digest(name)}"
    return safe
