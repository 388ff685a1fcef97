"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path

import yaml

from .schema import BuildNotesConfig


def substitute_env_vars(text: str) -> str:
    """
    Replace ${VAR_NAME} patterns with environment variable values.

    Args:
        text: Text containing ${VAR_NAME} patterns

    Returns:
        Text with environment variables substituted

    Raises:
        ValueError: If a referenced environment variable is not found
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(f"Environment variable {var_name} not found")
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)


def load_config(path: Path | None = None) -> BuildNotesConfig:
    """
    Load configuration, optionally from a YAML file.

    Without a path the defaults apply, overridable through ``BUILD_NOTES_*``
    environment variables (``BUILD_NOTES_GITHUB__TOKEN`` and so on).

    Args:
        path: Path to YAML configuration file, or None

    Returns:
        Validated BuildNotesConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If environment variables are missing or the YAML is not a mapping
        pydantic.ValidationError: If config doesn't match schema
    """
    if path is None:
        return BuildNotesConfig()

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open() as f:
        raw_yaml = f.read()

    config_dict = yaml.safe_load(substitute_env_vars(raw_yaml)) or {}
    if not isinstance(config_dict, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")

    return BuildNotesConfig.model_validate(config_dict)


def validate_config(config: BuildNotesConfig) -> None:
    """
    Perform cross-field validation once CLI overrides have been applied.

    Args:
        config: Configuration to validate

    Raises:
        ValueError: If provider-specific settings are missing
    """
    if config.connector.provider == "github" and not config.github.token:
        raise ValueError(
            "GitHub provider selected but no token configured "
            "(set github.token or BUILD_NOTES_GITHUB__TOKEN)"
        )
