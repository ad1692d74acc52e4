"""
Classification of lftp output lines.

lftp prints one event per line. With ``--verbose=3`` each download shows up as::

    Transferring file `reports/2017-03-01.csv'

Everything else is informational.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

TRANSFER_MARKER = "Transferring file"

# lftp quotes as `path'; a plain 'path' is accepted too
_QUOTED_PATH = re.compile(r"[`'](.*)'")


@dataclass(frozen=True)
class TransferEvent:
    """A remote file is being downloaded."""

    path: str


@dataclass(frozen=True)
class InfoEvent:
    """Any other output line."""

    text: str


OutputEvent = TransferEvent | InfoEvent


def classify_line(line: str) -> OutputEvent:
    """Turn one raw output line into a typed event."""
    text = line.rstrip("\r\n")
    marker = text.find(TRANSFER_MARKER)
    if marker == -1:
        return InfoEvent(text)
    match = _QUOTED_PATH.search(text, marker + len(TRANSFER_MARKER))
    if match is None or not match.group(1):
        return InfoEvent(text)
    return TransferEvent(match.group(1))
