# src/plugin_test_driver/__init__.py
# Main package init - exports public API for the plugin test driver.

"""
Plugin test driver: a synchronous test harness over a plugin-extensible
event-inspection engine.

A test registers plugin descriptors, opens one event source (a capture file
or a live plugin source), steps through events and extracts fields from
them, including the byte range of the raw event each value came from.

CLI Usage:
    ptd init                                # Create a local .ptd.yaml
    ptd dump CAPTURE -f evt.num             # Extract fields from a capture
    ptd run PLUGIN --source NAME -f FIELD   # Extract fields from a live source
    ptd fields [PLUGIN]                     # List extractable fields
"""

from plugin_test_driver.core.config import DriverConfig, PluginSpec, load_config
from plugin_test_driver.driver import TestDriver, init_plugin, new_test_driver
from plugin_test_driver.errors import (
    CaptureFileError,
    CaptureStateError,
    DriverError,
    EngineError,
    ExtractionError,
    InitializationError,
    InvalidFieldError,
    NullEventError,
    NullValueError,
    OpenError,
    StaleEventError,
)
from plugin_test_driver.models import (
    Capability,
    CaptureState,
    EventHandle,
    EventStatus,
    ExtractedField,
    FieldArg,
    FieldInfo,
    FieldType,
    Metric,
    MetricRecord,
    MetricType,
)
from plugin_test_driver.plugins import (
    EndOfStream,
    EventBatch,
    ExtractPlugin,
    ExtractRequest,
    ParsePlugin,
    Plugin,
    PluginHandle,
    SourceInstance,
    SourcePlugin,
    SourceTimeout,
    field,
    load_descriptor,
)

__version__ = "0.1.0"
__all__ = [
    # Driver
    "TestDriver",
    "init_plugin",
    "new_test_driver",
    # Configuration
    "DriverConfig",
    "PluginSpec",
    "load_config",
    # Errors
    "CaptureFileError",
    "CaptureStateError",
    "DriverError",
    "EngineError",
    "ExtractionError",
    "InitializationError",
    "InvalidFieldError",
    "NullEventError",
    "NullValueError",
    "OpenError",
    "StaleEventError",
    # Models
    "Capability",
    "CaptureState",
    "EventHandle",
    "EventStatus",
    "ExtractedField",
    "FieldArg",
    "FieldInfo",
    "FieldType",
    "Metric",
    "MetricRecord",
    "MetricType",
    # Plugin API
    "EndOfStream",
    "EventBatch",
    "ExtractPlugin",
    "ExtractRequest",
    "ParsePlugin",
    "Plugin",
    "PluginHandle",
    "SourceInstance",
    "SourcePlugin",
    "SourceTimeout",
    "field",
    "load_descriptor",
]
