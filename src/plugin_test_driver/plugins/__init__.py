# src/plugin_test_driver/plugins/__init__.py
# Plugin API, plugin handles and the plugin registry.

"""
Plugins extend the inspection engine. This package provides:
- The base classes plugin descriptors are written against
- PluginRegistry, which validates and initializes descriptors
- load_descriptor, which imports descriptors by `module:attr` path
"""

from plugin_test_driver.plugins.api import (
    PLUGIN_API_VERSION,
    EndOfStream,
    EventBatch,
    ExtractField,
    ExtractOffset,
    ExtractPlugin,
    ExtractRequest,
    ParsePlugin,
    Plugin,
    SourceInstance,
    SourcePlugin,
    SourceTimeout,
    field,
)
from plugin_test_driver.plugins.handle import EventSourceFilter, PluginHandle
from plugin_test_driver.plugins.loader import load_descriptor
from plugin_test_driver.plugins.registry import PluginRegistry

__all__ = [
    "PLUGIN_API_VERSION",
    "EndOfStream",
    "EventBatch",
    "EventSourceFilter",
    "ExtractField",
    "ExtractOffset",
    "ExtractPlugin",
    "ExtractRequest",
    "ParsePlugin",
    "Plugin",
    "PluginHandle",
    "PluginRegistry",
    "SourceInstance",
    "SourcePlugin",
    "SourceTimeout",
    "field",
    "load_descriptor",
]
