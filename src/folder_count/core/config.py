"""Configuration system for folder-count.

This module implements the configuration schema using Pydantic for
validation, with support for environment variable resolution and fail-fast
validation with actionable error messages. Every section has defaults, so an
empty file (or no file at all) yields a working configuration.
"""

import os
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Final, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from folder_count.core.classifier import ExclusionPolicy

# Matches ${VARIABLE_NAME} references
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Z0-9_]+)\}")


class TraversalConfig(BaseModel):
    """Exclusion rules and I/O fan-out for tree traversal."""

    excluded_names: Annotated[
        Sequence[str],
        Field(description="Directory names excluded from traversal and self sizing"),
    ] = ["node_modules"]
    exclude_hidden: Annotated[
        bool,
        Field(description="Exclude directories whose name starts with a dot"),
    ] = True
    max_concurrency: Annotated[
        int,
        Field(gt=0, description="Maximum filesystem calls in flight at once"),
    ] = 8

    @field_validator("excluded_names", mode="after")
    @classmethod
    def validate_plain_names(cls, v: Sequence[str]) -> Sequence[str]:
        """Validate that excluded names are single path components.

        Raises:
            ValueError: If a name is empty or contains a path separator
        """
        for name in v:
            if not name or "/" in name or (os.sep != "/" and os.sep in name):
                msg = f"Excluded name must be a single path component, got: {name!r}"
                raise ValueError(msg)
        return v

    def to_policy(self) -> ExclusionPolicy:
        return ExclusionPolicy(self.excluded_names, exclude_hidden=self.exclude_hidden)


class WatchConfig(BaseModel):
    """Polling change source settings."""

    enabled: Annotated[bool, Field(description="Watch the tree for changes")] = True
    poll_interval: Annotated[
        float,
        Field(gt=0, description="Seconds between filesystem snapshots"),
    ] = 2.0


class CacheConfig(BaseModel):
    """Result cache settings."""

    enabled: Annotated[
        bool,
        Field(description="Memoize describe results until their path is announced stale"),
    ] = False


class ListingConfig(BaseModel):
    """Default order of the listing surface."""

    sort_key: Annotated[
        Literal["name", "size", "created", "modified"],
        Field(description="Initial sort column"),
    ] = "name"
    descending: Annotated[bool, Field(description="Initial sort direction")] = False


class ApplicationConfig(BaseModel):
    """Application-level settings."""

    log_level: Annotated[
        str,
        Field(
            description="Logging level",
            pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        ),
    ] = "WARNING"
    syslog_enabled: Annotated[bool, Field(description="Enable syslog integration")] = False


class MainConfig(BaseModel):
    """Main configuration schema.

    Top-level container aggregating all configuration sections:
    - root: Traversal root used when no path is given on the command line
    - traversal: Exclusion rules and concurrency
    - watch: Change source polling
    - cache: Optional result memoization
    - listing: Listing defaults
    - application: Logging settings
    """

    root: Annotated[Path | None, Field(description="Default traversal root")] = None
    traversal: TraversalConfig = TraversalConfig()
    watch: WatchConfig = WatchConfig()
    cache: CacheConfig = CacheConfig()
    listing: ListingConfig = ListingConfig()
    application: ApplicationConfig = ApplicationConfig()

    @field_validator("root", mode="after")
    @classmethod
    def validate_root_is_directory(cls, v: Path | None) -> Path | None:
        """Validate that a configured root is an existing directory.

        Raises:
            ValueError: If the root does not exist or is not a directory
        """
        if v is not None and not v.is_dir():
            msg = f"Root directory does not exist: {v}"
            raise ValueError(msg)
        return v


class EnvironmentVariableError(Exception):
    """Raised when a referenced environment variable is not set."""


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails.

    The message is actionable: it names the file and each invalid field.
    """


def resolve_env_var(value: str) -> str:
    """Resolve ${VARIABLE_NAME} references in a string value.

    Args:
        value: String potentially containing environment variable references

    Returns:
        String with environment variables resolved

    Raises:
        EnvironmentVariableError: If a referenced variable is missing

    Examples:
        >>> os.environ["PROJECTS"] = "/srv/projects"
        >>> resolve_env_var("${PROJECTS}/app")
        '/srv/projects/app'
    """

    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            msg = f"Required environment variable '{var_name}' is not set."
            raise EnvironmentVariableError(msg)
        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _resolve_value(value: object) -> object:
    if isinstance(value, str):
        return resolve_env_var(value)
    if isinstance(value, dict):
        # YAML data is untyped at load time; validated by Pydantic after resolution
        return resolve_env_vars_in_dict(value)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    if isinstance(value, list):
        return [_resolve_value(item) for item in value]  # pyright: ignore[reportUnknownVariableType]  # YAML list items
    return value


def resolve_env_vars_in_dict(data: Mapping[str, object]) -> dict[str, object]:
    """Recursively resolve environment variables in a mapping.

    Traverses nested mappings and lists, resolving references in string
    values. Other values are preserved as-is.

    Args:
        data: Mapping potentially containing environment variable references

    Returns:
        New dictionary with environment variables resolved

    Raises:
        EnvironmentVariableError: If a referenced variable is missing
    """
    return {key: _resolve_value(value) for key, value in data.items()}


def load_main_config(config_path: Path) -> MainConfig:
    """Load and validate configuration from a YAML file.

    Args:
        config_path: Path to the configuration YAML file

    Returns:
        Validated MainConfig instance

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    if not config_path.exists():
        msg = (
            f"Configuration file not found: {config_path}\n"
            f"Create the file or omit --config to run with defaults."
        )
        raise ConfigurationError(msg)

    try:
        with config_path.open("r") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = (
            f"Failed to parse YAML configuration file: {config_path}\n"
            f"YAML parsing error: {e}\n"
            f"Please check the file for syntax errors."
        )
        raise ConfigurationError(msg) from e
    except OSError as e:
        msg = f"Failed to read configuration file: {config_path}\nError: {e}\nPlease check file permissions."
        raise ConfigurationError(msg) from e

    # An empty file means all defaults
    if raw_data is None:
        raw_data = {}

    if not isinstance(raw_data, dict):
        msg = (
            f"Invalid configuration file format: {config_path}\n"
            f"Expected YAML dictionary at root level, got: {type(raw_data).__name__}"
        )
        raise ConfigurationError(msg)

    try:
        resolved_data = resolve_env_vars_in_dict(raw_data)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    except EnvironmentVariableError as e:
        msg = f"Environment variable resolution failed in: {config_path}\n{e}"
        raise ConfigurationError(msg) from e

    try:
        config = MainConfig.model_validate(resolved_data)
    except ValidationError as e:
        error_lines = ["Configuration validation failed:", ""]
        for error in e.errors():
            field_path = " → ".join(str(loc) for loc in error["loc"])
            error_lines.append(f"  Field: {field_path}")
            error_lines.append(f"  Error: {error['msg']}")
            error_lines.append("")
        error_lines.append(f"Configuration file: {config_path}")

        msg = "\n".join(error_lines)
        raise ConfigurationError(msg) from e

    return config
