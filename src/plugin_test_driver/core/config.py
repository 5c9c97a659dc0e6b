# src/plugin_test_driver/core/config.py
# Configuration management for the plugin test driver.
"""
Configuration models and loading utilities.

The config file (.ptd.yaml) stores:
- Engine log severity
- Event iteration and metrics options
- Plugins to register automatically, and the sources they extract from
"""

import json
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from plugin_test_driver.log import LogSeverity

CONFIG_FILENAME = ".ptd.yaml"


class PluginSpec(BaseModel):
    """A plugin to register when a driver is built from configuration."""

    path: str = Field(..., description="Descriptor import path, 'module:attr'")
    config: Union[str, dict[str, Any]] = Field(
        default="",
        description="Plugin config string, or a mapping serialized to JSON",
    )
    extract_sources: list[str] = Field(
        default_factory=list,
        description="Event sources to enable the plugin's extractors for",
    )

    def config_string(self) -> str:
        if isinstance(self.config, dict):
            return json.dumps(self.config)
        return self.config


class DriverConfig(BaseModel):
    """Test driver configuration model."""

    version: str = Field(default="1.0", description="Config version")
    log_severity: LogSeverity = Field(
        default=LogSeverity.WARNING,
        description="Engine log threshold (name or number)",
    )
    include_engine_metrics: bool = Field(
        default=False,
        description="Report engine counters alongside plugin metrics",
    )
    max_timeouts: int = Field(
        default=1000,
        ge=0,
        description="Consecutive timeouts tolerated by TestDriver.events()",
    )
    platform_metadata: bool = Field(
        default=False,
        description="Attach host metadata to events from plugin sources",
    )
    plugins: list[PluginSpec] = Field(default_factory=list)

    @field_validator("log_severity", mode="before")
    @classmethod
    def _severity_by_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.isdigit():
                return int(value)
            try:
                return LogSeverity[value.upper()]
            except KeyError:
                raise ValueError(f"unknown log severity {value!r}") from None
        return value


# Global config cache
_cached_config: Optional[DriverConfig] = None
_config_path: Optional[Path] = None


def load_config(path: Optional[Path] = None) -> Optional[DriverConfig]:
    """
    Load driver configuration from file.

    Searches for config in order:
    1. Specified path
    2. Current directory (.ptd.yaml)
    3. Home directory (~/.ptd.yaml)

    Returns None if no config found.
    """
    global _cached_config, _config_path

    # Use cached config if same path
    if _cached_config and (path is None or path == _config_path):
        return _cached_config

    search_paths = []
    if path:
        search_paths.append(Path(path))
    search_paths.extend([
        Path(CONFIG_FILENAME),
        Path.home() / CONFIG_FILENAME,
    ])

    config_file = None
    for p in search_paths:
        if p.exists():
            config_file = p
            break

    if not config_file:
        return None

    with open(config_file) as f:
        data = yaml.safe_load(f) or {}

    config = DriverConfig.model_validate(data)

    _cached_config = config
    _config_path = config_file

    return config


def save_config(config: DriverConfig, path: Path) -> None:
    """Write a configuration file."""
    data = config.model_dump(mode="json")
    data["log_severity"] = config.log_severity.name.lower()
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def clear_config_cache() -> None:
    """Clear the cached configuration."""
    global _cached_config, _config_path
    _cached_config = None
    _config_path = None
