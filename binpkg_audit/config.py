"""
Configuration file parsing and management.

Reads YAML configuration files and merges them from multiple sources
(project → user → system → defaults).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any

import yaml

from .common import vlog


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".binpkg-audit.yml",                                       # Project root (highest priority)
    ".binpkg-audit.yaml",
    os.path.expanduser("~/.config/binpkg-audit/config.yml"),   # User global
    os.path.expanduser("~/.config/binpkg-audit/config.yaml"),
    "/etc/binpkg-audit/config.yml",                            # System global
    "/etc/binpkg-audit/config.yaml",
]

DEFAULT_MAX_WORKERS = 16
DEFAULT_FILE_WORKERS = 8
MAX_WORKER_LIMIT = 64

PREFERENCE_FIELDS = ("max_workers", "file_workers", "timeout_seconds")


@dataclass(frozen=True)
class Preferences:
    """
    Execution preferences for an audit run.

    Attributes:
        max_workers: Parallel workers across packages (classification and build times)
        file_workers: Parallel workers across one package's installed files
        timeout_seconds: Timeout per external tool invocation, None waits forever
        explicit: Names of the fields a config file or override actually set
    """
    max_workers: int = DEFAULT_MAX_WORKERS
    file_workers: int = DEFAULT_FILE_WORKERS
    timeout_seconds: int | None = None
    explicit: frozenset[str] = field(default=frozenset(), compare=False)

    def __post_init__(self):
        """Validate preferences after initialization."""
        for name in ("max_workers", "file_workers"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1 or value > MAX_WORKER_LIMIT:
                raise ValueError(
                    f"Invalid {name}: {value}. "
                    f"Must be between 1 and {MAX_WORKER_LIMIT}"
                )

        if self.timeout_seconds is not None:
            if not isinstance(self.timeout_seconds, int) or self.timeout_seconds < 1:
                raise ValueError(
                    f"Invalid timeout_seconds: {self.timeout_seconds}. "
                    "Must be a positive number of seconds"
                )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Preferences:
        """Create Preferences from dictionary, remembering which keys were present."""
        return Preferences(
            max_workers=data.get("max_workers", DEFAULT_MAX_WORKERS),
            file_workers=data.get("file_workers", DEFAULT_FILE_WORKERS),
            timeout_seconds=data.get("timeout_seconds"),
            explicit=frozenset(name for name in PREFERENCE_FIELDS if name in data),
        )

    def merge_with(self, other: Preferences) -> Preferences:
        """
        Merge field by field: a field set here wins, otherwise the other's value is used.
        """
        values = {
            name: getattr(self if name in self.explicit else other, name)
            for name in PREFERENCE_FIELDS
        }
        return Preferences(**values, explicit=self.explicit | other.explicit)


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for binpkg-audit.

    Attributes:
        version: Config schema version
        tools: Executable overrides per query tool (e.g. {"eix": "/usr/local/bin/eix"})
        preferences: Execution preferences
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    tools: dict[str, str] = field(default_factory=dict)
    preferences: Preferences = field(default_factory=Preferences)
    source: str = ""

    def __post_init__(self):
        """Validate config after initialization."""
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

        for name, executable in self.tools.items():
            if not isinstance(executable, str) or not executable:
                raise ValueError(f"Invalid executable for tool '{name}': {executable!r}")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        tools_data = data.get("tools") or {}
        if not isinstance(tools_data, dict):
            raise ValueError("'tools' must be a mapping of tool name to executable")

        return Config(
            version=data.get("version", 1),
            tools=dict(tools_data),
            preferences=Preferences.from_dict(data.get("preferences") or {}),
            source=source,
        )

    def get_executable(self, tool_name: str) -> str | None:
        """
        Get the executable override for a query tool.

        Returns:
            Configured executable, or None to use the tool's default name
        """
        return self.tools.get(tool_name)

    def with_max_workers(self, max_workers: int) -> Config:
        """Return a copy with the package-level worker count replaced."""
        preferences = replace(
            self.preferences,
            max_workers=max_workers,
            explicit=self.preferences.explicit | {"max_workers"},
        )
        return replace(self, preferences=preferences)

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        merged_tools = dict(other.tools)
        merged_tools.update(self.tools)

        return Config(
            version=self.version,
            tools=merged_tools,
            preferences=self.preferences.merge_with(other.preferences),
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    data = _load_yaml(file_path)
    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided)
    2. Project .binpkg-audit.yml
    3. User ~/.config/binpkg-audit/config.yml
    4. System /etc/binpkg-audit/config.yml
    5. Default configuration

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged


def validate_config(config: Config) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Returns:
        List of validation warning messages (empty if valid)
    """
    from .query_tools import get_query_tool

    warnings = []

    for tool_name in config.tools:
        if get_query_tool(tool_name) is None:
            warnings.append(f"Unknown query tool in config: {tool_name}")

    prefs = config.preferences
    if prefs.max_workers * prefs.file_workers > 512:
        warnings.append(
            f"max_workers ({prefs.max_workers}) x file_workers ({prefs.file_workers}) "
            "may start more than 512 threads"
        )

    return warnings
