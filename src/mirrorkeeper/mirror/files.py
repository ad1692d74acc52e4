"""
Persisted set of mirrored filenames.

One JSON document per source name under the state directory. Writes go to a
temporary file in the same directory followed by ``os.replace`` so a
concurrent reader sees either the old or the new set, never a partial one.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path

from mirrorkeeper.exceptions import StateStoreError
from mirrorkeeper.utils.hashing import safe_basename
from mirrorkeeper.utils.logging import get_logger

logger = get_logger("mirrorkeeper.mirror.files")

DEFAULT_STATE_DIR = Path.home() / ".mirrorkeeper" / "state"


def state_filename(name: str) -> str:
    """
    Storage file name for a source name.

    Unsafe characters are replaced and a digest of the original name keeps
    sanitised names from colliding.
    """
    return f"{safe_basename(name)}.json"


class MirroredFiles:
    """A named set of filenames with explicit load/save."""

    def __init__(self, name: str, state_dir: str | Path | None = None, files: Iterable[str] = ()):
        if not name:
            raise ValueError("MirroredFiles requires a name")
        self.name = name
        self.state_dir = Path(state_dir) if state_dir else DEFAULT_STATE_DIR
        self._files: set[str] = set(files)

    @property
    def path(self) -> Path:
        return self.state_dir / state_filename(self.name)

    def load(self) -> MirroredFiles:
        """
        Replace the in-memory set with the persisted one.

        A missing file loads as the empty set.

        Raises:
            StateStoreError: if the file cannot be read or decoded
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._files = set()
            return self
        except OSError as e:
            raise StateStoreError(f"Could not read mirrored files <{self.path}>: {e}", path=str(self.path)) from e

        try:
            data = json.loads(raw)
            files = data["files"]
            if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
                raise ValueError("'files' must be a list of strings")
        except (ValueError, KeyError, TypeError) as e:
            raise StateStoreError(f"Corrupt mirrored files <{self.path}>: {e}", path=str(self.path)) from e

        self._files = set(files)
        logger.debug(f"Loaded {len(self._files)} mirrored file(s) for <{self.name}> from <{self.path}>")
        return self

    def save(self) -> None:
        """
        Atomically replace the persisted set with the in-memory one.

        Raises:
            StateStoreError: if the file cannot be written
        """
        payload = json.dumps({"name": self.name, "files": self.keys()}, indent=2)
        tmp_path = None
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".part", dir=self.state_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StateStoreError(f"Could not save mirrored files <{self.path}>: {e}", path=str(self.path)) from e
        logger.debug(f"Saved {len(self._files)} mirrored file(s) for <{self.name}> to <{self.path}>")

    def clear(self) -> None:
        """Empty the in-memory set. Storage is untouched."""
        self._files.clear()

    def mark(self, filename: str) -> None:
        self._files.add(filename)

    def contains(self, filename: str) -> bool:
        return filename in self._files

    def keys(self) -> list[str]:
        """All filenames, sorted for deterministic enumeration."""
        return sorted(self._files)

    def copy(self) -> MirroredFiles:
        """By-value copy sharing name and storage location."""
        return MirroredFiles(self.name, self.state_dir, self._files)

    def __contains__(self, filename: object) -> bool:
        return filename in self._files

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"MirroredFiles(name={self.name!r}, files={len(self._files)})"
