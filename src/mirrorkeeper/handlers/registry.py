"""
Completion handler registry.

Resolves the ``handler:`` name of a source to a concrete handler instance.
"""

from __future__ import annotations

from collections.abc import Callable

from mirrorkeeper.exceptions import ConfigurationError
from mirrorkeeper.handlers.hardlink import HardlinkFileHandler
from mirrorkeeper.handlers.log import LogFileHandler
from mirrorkeeper.mirror.types import CompletionHandler, SourceConfig

DEFAULT_HANDLER = HardlinkFileHandler.name

HandlerFactory = Callable[[SourceConfig], CompletionHandler]


def build_default_handler_registry() -> dict[str, HandlerFactory]:
    """
    Build registry of built-in handlers.
    """
    return {
        HardlinkFileHandler.name: HardlinkFileHandler,
        LogFileHandler.name: LogFileHandler,
    }


def resolve_handler(
    name: str | None,
    source: SourceConfig,
    *,
    registry: dict[str, HandlerFactory] | None = None,
) -> CompletionHandler:
    """
    Instantiate the named handler for ``source`` (default: hardlink).
    """
    registry = registry or build_default_handler_registry()
    factory = registry.get(name or DEFAULT_HANDLER)
    if factory is None:
        raise ConfigurationError(
            f"Unknown handler '{name}'. Available: {sorted(registry.keys())}",
            details={"handler": name},
        )
    return factory(source)
