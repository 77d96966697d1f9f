"""Pydantic configuration models for the pull request re-trigger worker.

The configuration hierarchy follows this structure:
- Config: Root configuration
- SystemConfig: Process-wide settings (logging)
- GitHubConfig: API endpoint, credentials and client tuning
- RetriggerConfig: Which pull requests to consider and how to dispatch them

String values may reference environment variables using the format
${VAR_NAME} with optional defaults: ${VAR_NAME:default_value}
"""

import os
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")
_REPOSITORY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DispatchMode(str, Enum):
    """How eligible pull requests are dispatched."""

    SEQUENTIAL = "sequential"  # One pull request at a time, in discovery order
    CONCURRENT = "concurrent"  # Bounded parallel dispatch


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute environment variables in string values.

        Supports formats:
        - ${VAR_NAME} - Required environment variable
        - ${VAR_NAME:default} - Optional with default value

        Raises:
            ValueError: If required environment variable is missing
        """
        if not isinstance(values, dict):
            return values

        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)

            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ValueError(f"Required environment variable '{var_name}' not found")

        def substitute_value(value: Any) -> Any:
            if isinstance(value, str):
                return _ENV_PATTERN.sub(replacer, value)
            elif isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [substitute_value(item) for item in value]
            return value

        return {key: substitute_value(value) for key, value in values.items()}


def _validate_pattern(v: str | None) -> str | None:
    if v is None or v == "":
        return None
    try:
        re.compile(v)
    except re.error as e:
        raise ValueError(f"Invalid regular expression {v!r}: {e}") from e
    return v


class SystemConfig(BaseConfigModel):
    """Process-wide settings."""

    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="System-wide logging level"
    )


class GitHubConfig(BaseConfigModel):
    """GitHub API access."""

    token: str = Field(description="Token used as Bearer credential")

    api_url: str = Field(
        default="https://api.github.com", description="REST API base URL"
    )

    timeout: int = Field(
        default=30, ge=1, le=300, description="Request timeout in seconds"
    )

    max_retries: int = Field(
        default=3, ge=0, le=10, description="Retries for failed read requests"
    )

    retry_backoff_factor: float = Field(
        default=2.0, ge=1.0, le=10.0, description="Exponential backoff base"
    )

    rate_limit_buffer: int = Field(
        default=100,
        ge=0,
        description="API calls kept in reserve before requests are refused",
    )

    max_concurrent_requests: int = Field(
        default=10, ge=1, le=100, description="In-flight HTTP request ceiling"
    )

    user_agent: str = Field(default="pr-retrigger/0.1", description="User-Agent")

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate authentication token."""
        if not v or v.strip() == "":
            raise ValueError("GitHub token cannot be empty")
        return v.strip()

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate API URL scheme."""
        if not v.startswith(("https://", "http://")):
            raise ValueError("API URL must start with http:// or https://")
        return v.rstrip("/")


class RetriggerConfig(BaseConfigModel):
    """Selection and dispatch settings for re-triggering pull request runs."""

    repository: str = Field(description="Target repository as owner/name")

    base_branch: str = Field(
        default="main", description="Branch the pull requests must target"
    )

    require_label_regex: str | None = Field(
        default=None,
        description="Only dispatch pull requests with a label matching this "
        "pattern (case-insensitive)",
    )

    skip_failed_runs: bool = Field(
        default=False, description="Leave pull requests whose latest run failed"
    )

    ignore_failed_jobs_regex: str | None = Field(
        default=None,
        description="Pattern reported against job names of skipped failed runs",
    )

    dry_run: bool = Field(
        default=False, description="Log decisions without cancelling or re-running"
    )

    bot_login_patterns: list[str] = Field(
        default_factory=lambda: ["dependabot"],
        description="Author login substrings whose pull requests are ignored",
    )

    workflow_event: str = Field(
        default="pull_request", description="Event type of the runs to re-trigger"
    )

    dispatch_mode: DispatchMode = Field(
        default=DispatchMode.CONCURRENT, description="Sequential or concurrent"
    )

    max_concurrent_dispatches: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Pull requests dispatched at once in concurrent mode",
    )

    cancel_poll_interval: float = Field(
        default=4.0,
        ge=0.0,
        le=60.0,
        description="Seconds between polls while waiting for a cancellation",
    )

    cancel_poll_attempts: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Polls before giving up on a cancellation",
    )

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        """Validate owner/name format."""
        v = v.strip()
        if not _REPOSITORY_PATTERN.match(v):
            raise ValueError(f"Repository must be in owner/name form, got {v!r}")
        return v

    @field_validator("base_branch")
    @classmethod
    def validate_base_branch(cls, v: str) -> str:
        """Accept both ``main`` and ``refs/heads/main``."""
        v = v.strip().removeprefix("refs/heads/")
        if not v:
            raise ValueError("Base branch cannot be empty")
        return v

    @field_validator("require_label_regex", "ignore_failed_jobs_regex")
    @classmethod
    def validate_patterns(cls, v: str | None) -> str | None:
        """Compile patterns up front; empty means unset."""
        return _validate_pattern(v)

    @property
    def owner(self) -> str:
        """Repository owner."""
        return self.repository.split("/", 1)[0]

    @property
    def repo(self) -> str:
        """Repository name."""
        return self.repository.split("/", 1)[1]


class Config(BaseConfigModel):
    """Root configuration."""

    system: SystemConfig = Field(
        default_factory=SystemConfig, description="Process-wide settings"
    )

    github: GitHubConfig = Field(description="GitHub API access")

    retrigger: RetriggerConfig = Field(description="Re-trigger behaviour")
