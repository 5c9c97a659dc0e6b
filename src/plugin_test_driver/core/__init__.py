# src/plugin_test_driver/core/__init__.py
# Core utilities: configuration.

from plugin_test_driver.core.config import (
    DriverConfig,
    PluginSpec,
    clear_config_cache,
    load_config,
    save_config,
)

__all__ = [
    "DriverConfig",
    "PluginSpec",
    "clear_config_cache",
    "load_config",
    "save_config",
]
