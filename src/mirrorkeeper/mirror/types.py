"""
Type definitions for mirror sources and cycle results.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Protocol

from mirrorkeeper.exceptions import ConfigurationError

# Protocol name -> standard port
PROTOCOLS: dict[str, int] = {
    "ftp": 21,
    "ftps": 443,
    "sftp": 22,
}

# Verbosity level passed to `lftp mirror`
VERBOSITY = 3

BOOLEAN_STRINGS: dict[str, bool] = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


def parse_flag(key: str, value: Any) -> bool:
    """Boolean setting from a bool or a yes/no style string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in BOOLEAN_STRINGS:
        return BOOLEAN_STRINGS[value.strip().lower()]
    raise ConfigurationError(f"Invalid {key}: <{value}> (expected true or false)", details={key: value})


@dataclass(frozen=True)
class SourceConfig:
    """
    Settings for one remote source, immutable for the duration of a run.

    ``name`` is the logical source name: files land in ``<output>/<name>`` and
    the persisted file set is keyed by it.
    """

    name: str = ""
    protocol: str = "ftp"
    host: str = ""
    path: str = ""
    output: str = ""
    links: str = ""
    port: int | None = None
    username: str | None = None
    password: str | None = None
    ignore_unverified: bool = False
    dry_run: bool = False
    lftp_program: str = "lftp"

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SourceConfig:
        """
        Build a SourceConfig from a config/CLI mapping.

        ``None`` values are dropped so defaults apply. Unknown keys are rejected.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown source setting(s): {', '.join(unknown)}",
                details={"unknown": unknown},
            )
        values = {k: v for k, v in data.items() if v is not None}
        if "port" in values:
            try:
                values["port"] = int(values["port"])
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid --port: <{values['port']}>") from None
        for key in ("name", "protocol", "host", "path", "output", "links", "username", "password"):
            if key in values:
                values[key] = str(values[key])
        for key in ("ignore_unverified", "dry_run"):
            if key in values:
                values[key] = parse_flag(key, values[key])
        return cls(**values)

    @property
    def destination(self) -> str:
        """Local directory the remote path is mirrored into."""
        return f"{self.output.rstrip('/')}/{self.name}"


class CompletionHandler(Protocol):
    """
    Downstream action for a finished file.

    ``process_finished`` may raise; it must be safe to call again for a file
    it has already handled. ``close`` flushes any resources at the end of a
    mirror pass and must leave the handler usable.
    """

    name: str

    def process_finished(self, filename: str) -> None: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of one completion handler call."""

    filename: str
    ok: bool
    error: str | None = None
    traceback: str | None = None


@dataclass
class BatchResult:
    """Per-file outcomes for one dispatch batch."""

    results: list[CompletionResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return [r.filename for r in self.results if r.ok]

    @property
    def failed(self) -> list[str]:
        return [r.filename for r in self.results if not r.ok]

    @property
    def counts(self) -> tuple[int, int]:
        """(succeeded, failed)"""
        return len(self.succeeded), len(self.failed)
