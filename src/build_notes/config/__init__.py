"""Configuration loading and validation."""

from .loader import load_config, substitute_env_vars, validate_config
from .schema import (
    BuildNotesConfig,
    ConnectorConfig,
    GitHubConfig,
    LoggingConfig,
    ReportConfig,
)

__all__ = [
    # Loader
    "load_config",
    "substitute_env_vars",
    "validate_config",
    # Root config
    "BuildNotesConfig",
    # Sections
    "ConnectorConfig",
    "GitHubConfig",
    "LoggingConfig",
    "ReportConfig",
]
