"""Configuration for the pull request re-trigger worker.

Example usage:
    from pr_retrigger.config import load_config

    config = load_config("retrigger.yaml")
    owner, repo = config.retrigger.owner, config.retrigger.repo
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)
from .loader import ConfigurationLoader, load_config
from .models import (
    Config,
    DispatchMode,
    GitHubConfig,
    LogLevel,
    RetriggerConfig,
    SystemConfig,
)

__all__ = [
    "Config",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationMissingError",
    "ConfigurationValidationError",
    "DispatchMode",
    "GitHubConfig",
    "LogLevel",
    "RetriggerConfig",
    "SystemConfig",
    "load_config",
]
