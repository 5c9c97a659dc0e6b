# src/plugin_test_driver/engine/__init__.py
# In-process inspection engine: event codec, capture files, inspector, metrics.

"""
The engine is what the test driver orchestrates:
- events: raw event layout and encoders
- capture: capture file reader and writer
- inspector: plugin hosting, event sources and event numbering
- metrics: counter snapshots

Only the codec and capture helpers are re-exported here; the plugin API
depends on them, so the inspector is imported from its own module.
"""

from plugin_test_driver.engine.capture import (
    CAPTURE_MAGIC,
    CaptureReader,
    CaptureWriter,
    read_capture,
    write_capture,
)
from plugin_test_driver.engine.events import (
    ASYNCEVENT_E,
    PLUGINEVENT_E,
    Event,
    RawEvent,
    async_event,
    encode_event,
    plugin_event,
)

__all__ = [
    "ASYNCEVENT_E",
    "CAPTURE_MAGIC",
    "PLUGINEVENT_E",
    "CaptureReader",
    "CaptureWriter",
    "Event",
    "RawEvent",
    "async_event",
    "encode_event",
    "plugin_event",
    "read_capture",
    "write_capture",
]
