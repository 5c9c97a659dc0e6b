# src/plugin_test_driver/extractors/__init__.py
# Field extractors: generic engine fields and plugin-provided fields.

"""
Extractors turn a field name into a value (and a byte range) for an event.

This module provides:
- BaseExtractor / ExtractorFactory base classes
- GenericExtractorFactory for the engine's `evt.*` fields
- PluginExtractorFactory for fields declared by extraction plugins
- ExtractorRegistry, which resolves and caches extractors by name
"""

from plugin_test_driver.extractors.base import BaseExtractor, ExtractorFactory, render_value
from plugin_test_driver.extractors.generic import GenericExtractor, GenericExtractorFactory
from plugin_test_driver.extractors.plugin import (
    PluginExtractor,
    PluginExtractorFactory,
    split_field_name,
)
from plugin_test_driver.extractors.registry import ExtractorRegistry

__all__ = [
    "BaseExtractor",
    "ExtractorFactory",
    "ExtractorRegistry",
    "GenericExtractor",
    "GenericExtractorFactory",
    "PluginExtractor",
    "PluginExtractorFactory",
    "render_value",
    "split_field_name",
]
