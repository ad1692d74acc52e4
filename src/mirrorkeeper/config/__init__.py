"""
Configuration management.

config.yaml parsing, environment overlays and variable resolution.
"""

from mirrorkeeper.config.loader import Config, load_config
from mirrorkeeper.config.resolver import resolve_config

__all__ = [
    "load_config",
    "Config",
    "resolve_config",
]
