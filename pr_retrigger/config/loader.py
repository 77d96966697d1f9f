"""Configuration loading.

A configuration is built once at start-up and handed to every component.
Sources, in order of application:
1. Default values from the Pydantic models
2. A YAML file, or the GitHub Actions environment (``INPUT_*`` and
   ``GITHUB_*`` variables) when no file is given
3. Runtime overrides (command line flags)
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)
from .models import Config

# Action input -> retrigger setting
_RETRIGGER_INPUTS = {
    "INPUT_REQUIRE_LABEL_REGEX": "require_label_regex",
    "INPUT_SKIP_FAILED_RUNS": "skip_failed_runs",
    "INPUT_IGNORE_FAILED_JOBS_REGEX": "ignore_failed_jobs_regex",
    "INPUT_DRY_RUN": "dry_run",
    "INPUT_DISPATCH_MODE": "dispatch_mode",
    "INPUT_MAX_CONCURRENT_DISPATCHES": "max_concurrent_dispatches",
    "INPUT_WORKFLOW_EVENT": "workflow_event",
}


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigurationLoader:
    """Builds a validated ``Config`` from a file, a dict or the environment."""

    def __init__(self) -> None:
        self._config: Config | None = None
        self._config_file_path: Path | None = None
        self._loaded_from_sources: dict[str, bool] = {
            "file": False,
            "env": False,
            "dict": False,
            "overrides": False,
        }

    def load_from_file(self, config_path: str | Path) -> Config:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationFileError: If file cannot be read or parsed
            ConfigurationValidationError: If configuration validation fails
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationFileError(
                f"Configuration file not found: {config_path}",
                file_path=str(config_path),
            )

        if not config_path.is_file():
            raise ConfigurationFileError(
                f"Configuration path is not a file: {config_path}",
                file_path=str(config_path),
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationFileError(
                f"Failed to parse YAML configuration: {e}", file_path=str(config_path)
            ) from e
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read configuration file: {e}", file_path=str(config_path)
            ) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigurationFileError(
                "Configuration file must contain a mapping at the top level",
                file_path=str(config_path),
            )

        self._config = self._build(config_data)
        self._config_file_path = config_path.resolve()
        self._loaded_from_sources["file"] = True
        return self._config

    def load_from_dict(self, config_data: dict[str, Any]) -> Config:
        """Load configuration from a dictionary.

        Raises:
            ConfigurationValidationError: If configuration validation fails
        """
        self._config = self._build(config_data)
        self._loaded_from_sources["dict"] = True
        return self._config

    def load_from_environment(self, environ: Mapping[str, str] | None = None) -> Config:
        """Load configuration from GitHub Actions inputs.

        Args:
            environ: Environment mapping, ``os.environ`` by default

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationMissingError: If the token or repository is not set
            ConfigurationValidationError: If configuration validation fails
        """
        env = os.environ if environ is None else environ

        def value(name: str) -> str | None:
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return None
            return raw.strip()

        token = value("INPUT_GITHUB_TOKEN") or value("GITHUB_TOKEN")
        repository = value("INPUT_REPOSITORY") or value("GITHUB_REPOSITORY")

        missing = []
        if not token:
            missing.append("github_token")
        if not repository:
            missing.append("repository")
        if missing:
            raise ConfigurationMissingError(
                f"Missing required inputs: {', '.join(missing)}",
                missing_fields=missing,
            )

        github: dict[str, Any] = {"token": token}
        if value("GITHUB_API_URL"):
            github["api_url"] = value("GITHUB_API_URL")

        retrigger: dict[str, Any] = {"repository": repository}
        base_branch = value("INPUT_BASE_BRANCH")
        github_ref = value("GITHUB_REF")
        if base_branch:
            retrigger["base_branch"] = base_branch
        elif github_ref and github_ref.startswith("refs/heads/"):
            retrigger["base_branch"] = github_ref
        for env_name, setting in _RETRIGGER_INPUTS.items():
            if value(env_name) is not None:
                retrigger[setting] = value(env_name)

        config_data: dict[str, Any] = {"github": github, "retrigger": retrigger}
        log_level = value("INPUT_LOG_LEVEL")
        if log_level:
            config_data["system"] = {"log_level": log_level.upper()}

        self._config = self._build(config_data)
        self._loaded_from_sources["env"] = True
        return self._config

    def apply_overrides(self, overrides: Mapping[str, Any]) -> Config:
        """Re-validate the loaded configuration with runtime overrides.

        Args:
            overrides: Nested mapping, e.g. ``{"retrigger": {"dry_run": True}}``

        Raises:
            ConfigurationError: If nothing has been loaded yet
            ConfigurationValidationError: If the result is invalid
        """
        if self._config is None:
            raise ConfigurationError("No configuration loaded to override")
        if not overrides:
            return self._config

        merged = _deep_merge(self._config.model_dump(mode="json"), overrides)
        self._config = self._build(merged)
        self._loaded_from_sources["overrides"] = True
        return self._config

    def _build(self, config_data: dict[str, Any]) -> Config:
        try:
            return Config(**config_data)
        except ValidationError as e:
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}",
                validation_errors=e.errors(),
            ) from e
        except ValueError as e:
            # raised by environment variable substitution
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}"
            ) from e

    @property
    def config(self) -> Config | None:
        """Get the loaded configuration."""
        return self._config

    @property
    def config_file_path(self) -> Path | None:
        """Get the path to the loaded configuration file."""
        return self._config_file_path

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._config is not None

    def get_loading_info(self) -> dict[str, Any]:
        """Describe where the configuration came from, without secrets."""
        summary = None
        if self._config is not None:
            retrigger = self._config.retrigger
            summary = {
                "repository": retrigger.repository,
                "base_branch": retrigger.base_branch,
                "dispatch_mode": retrigger.dispatch_mode.value,
                "dry_run": retrigger.dry_run,
                "skip_failed_runs": retrigger.skip_failed_runs,
                "require_label_regex": retrigger.require_label_regex,
                "api_url": self._config.github.api_url,
            }
        return {
            "loaded": self.is_loaded,
            "config_file": str(self._config_file_path)
            if self._config_file_path
            else None,
            "sources": self._loaded_from_sources.copy(),
            "config_summary": summary,
        }


def load_config(
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from a file, falling back to the Actions environment.

    Args:
        config_path: Explicit path to a YAML configuration file
        overrides: Runtime overrides applied last
        environ: Environment used when no file is given

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If configuration cannot be loaded or is invalid
    """
    loader = ConfigurationLoader()
    if config_path:
        loader.load_from_file(config_path)
    else:
        loader.load_from_environment(environ)
    return loader.apply_overrides(overrides or {})
