"""
Configuration file loading.

Loads config.yaml (plus an optional config.{env}.yaml overlay) from a project
directory.
"""

from pathlib import Path
from typing import Any

import yaml

from mirrorkeeper.config.resolver import resolve_config
from mirrorkeeper.exceptions import ConfigurationError

CONFIG_FILENAME = "config.yaml"


class Config:
    """mirrorkeeper configuration container with dot-notation access."""

    def __init__(self, data: dict[str, Any]):
        self.data = data
        self.sources = data.get("sources") or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        value = self.data
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def source_settings(self, name: str) -> dict[str, Any]:
        """
        Settings mapping for a named source.

        The source's name defaults to its key under ``sources``.
        """
        if name not in self.sources:
            available = sorted(self.sources)
            raise ConfigurationError(
                f"Source '{name}' not found in configuration. Available: {available}",
                details={"source": name},
            )
        settings = dict(self.sources[name] or {})
        settings.setdefault("name", name)
        return settings

    def validate(self) -> None:
        """Validate configuration structure."""
        errors = []

        if not isinstance(self.data, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(self.data).__name__}")

        for section in ("sources", "state", "lock", "logging"):
            value = self.data.get(section)
            if value is not None and not isinstance(value, dict):
                errors.append(f"Configuration '{section}' must be a mapping, got {type(value).__name__}")

        sources = self.data.get("sources")
        if isinstance(sources, dict):
            for name, settings in sources.items():
                if settings is not None and not isinstance(settings, dict):
                    errors.append(f"Source '{name}' must be a mapping, got {type(settings).__name__}")

        if errors:
            raise ConfigurationError("\n".join(errors))


def load_config(project_path: Path | None = None, env: str | None = None) -> Config:
    """
    Load mirrorkeeper configuration.

    Args:
        project_path: Directory containing config.yaml (default: current directory)
        env: Environment name; config.{env}.yaml is merged over the base file

    Returns:
        Config instance with merged, resolved configuration

    Raises:
        ConfigurationError: if config.yaml is missing or cannot be parsed
    """
    if project_path is None:
        project_path = Path.cwd()

    base_config_path = project_path / CONFIG_FILENAME
    if not base_config_path.is_file():
        raise ConfigurationError(
            f"Configuration file not found: {base_config_path}\n"
            f"  Suggestion: Create a {CONFIG_FILENAME} file or pass source settings as options"
        )

    config_data = _read_yaml(base_config_path)

    if env:
        env_config_path = project_path / f"config.{env}.yaml"
        if env_config_path.exists():
            _merge_dict(config_data, _read_yaml(env_config_path))

    config = Config(resolve_config(config_data, env or "dev"))
    config.validate()
    return config


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark is not None else ""
        raise ConfigurationError(
            f"Error parsing {path.name}{where}:\n"
            f"  {e}\n"
            f"  Suggestion: Check YAML syntax, ensure proper indentation and quotes"
        ) from e
    except OSError as e:
        raise ConfigurationError(f"Could not read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path.name} must contain a mapping, got {type(data).__name__}")
    return data


def _merge_dict(base: dict, override: dict):
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value
