# src/plugin_test_driver/driver.py
# TestDriver - serialized test surface over one inspection engine.

"""
TestDriver is what tests talk to. It owns one Inspector, one extractor
registry and one metrics collector, and exposes a synchronous surface:

    driver = TestDriver()
    handle = driver.register_plugin(CountdownPlugin, "")
    driver.add_extractors(handle, "countdown")
    driver.open_plugin_source("countdown", "")

    evt = driver.next()
    while evt.status != EventStatus.EOF:
        if evt.ok:
            print(driver.extract_field_as_string("countdown.payload", evt))
        evt = driver.next()

The engine holds process-wide state, so every public operation runs under a
single process-wide lock.

Event handles returned by `next()` are borrowed: they stop being usable as
soon as `next()` is called again.
"""

import threading
from pathlib import Path
from typing import Iterator, Optional, Union

from plugin_test_driver.core.config import DriverConfig
from plugin_test_driver.engine.inspector import Inspector
from plugin_test_driver.engine.metrics import MetricsCollector
from plugin_test_driver.errors import (
    EngineError,
    NullEventError,
    NullValueError,
    StaleEventError,
)
from plugin_test_driver.extractors.base import BaseExtractor
from plugin_test_driver.extractors.generic import GenericExtractorFactory
from plugin_test_driver.extractors.plugin import PluginExtractorFactory
from plugin_test_driver.extractors.registry import ExtractorRegistry
from plugin_test_driver.log import get_logger
from plugin_test_driver.models import (
    Capability,
    CaptureState,
    EventHandle,
    EventStatus,
    ExtractedField,
    FieldInfo,
    MetricRecord,
)
from plugin_test_driver.plugins.api import Plugin
from plugin_test_driver.plugins.handle import PluginHandle
from plugin_test_driver.plugins.loader import load_descriptor

_ENGINE_LOCK = threading.RLock()


class TestDriver:
    """Drives one inspection engine for a test."""

    # Not a test class, despite the name
    __test__ = False

    def __init__(self, config: Optional[DriverConfig] = None) -> None:
        with _ENGINE_LOCK:
            self.config = config or DriverConfig()
            get_logger().set_severity(self.config.log_severity)
            try:
                self._inspector = Inspector()
            except Exception as e:
                raise EngineError(f"cannot create inspection engine: {e}") from e
            self._generic = GenericExtractorFactory(self._inspector)
            self._extractors = ExtractorRegistry()
            self._extractors.register(self._generic)
            self._metrics = MetricsCollector(
                self._inspector, include_engine=self.config.include_engine_metrics
            )

    @classmethod
    def from_config(cls, config: DriverConfig) -> "TestDriver":
        """Build a driver and register the plugins listed in `config`."""
        driver = cls(config)
        try:
            for spec in config.plugins:
                handle = driver.register_plugin(load_descriptor(spec.path), spec.config_string())
                for source in spec.extract_sources:
                    driver.add_extractors(handle, source)
        except Exception:
            driver.close()
            raise
        return driver

    @property
    def state(self) -> CaptureState:
        return self._inspector.state

    @property
    def inspector(self) -> Inspector:
        return self._inspector

    @property
    def last_error(self) -> Optional[str]:
        """Message of the failure that put the event source in ERROR."""
        return self._inspector.last_error

    # -- registration ----------------------------------------------------

    def register_plugin(self, descriptor: Optional[type[Plugin]], config: str = "") -> PluginHandle:
        """Validate, configure and initialize a plugin.

        Raises InitializationError with the plugin's own message when the
        plugin rejects its configuration.
        """
        with _ENGINE_LOCK:
            return self._inspector.register_plugin(descriptor, config)

    def add_extractors(self, plugin: PluginHandle, source: str) -> None:
        """Enable the plugin's fields for events of `source`.

        Does nothing unless the plugin can extract fields and declares
        compatibility with `source`.
        """
        with _ENGINE_LOCK:
            if not plugin.has_capability(Capability.EXTRACTION):
                return
            if not plugin.is_source_compatible(source):
                return
            self._extractors.register(self._generic)
            if self._extractors.register(PluginExtractorFactory(plugin)):
                get_logger().debug(
                    f"extractors of {plugin.name} enabled for source {source}",
                    component="driver",
                )

    def list_fields(self) -> list[FieldInfo]:
        """Every field the driver can currently extract."""
        with _ENGINE_LOCK:
            return self._extractors.list_fields()

    # -- event sources ---------------------------------------------------

    def open_capture_file(self, path: Union[str, Path]) -> None:
        """Replay a capture file. Raises CaptureFileError if it is unusable."""
        with _ENGINE_LOCK:
            self._inspector.open_savefile(path)
            self._inspector.start_capture()

    def open_plugin_source(
        self,
        name: str,
        config: str = "",
        include_platform_metadata: Optional[bool] = None,
    ) -> None:
        """Open the live source of the registered plugin `name`."""
        if include_platform_metadata is None:
            include_platform_metadata = self.config.platform_metadata
        with _ENGINE_LOCK:
            self._inspector.open_plugin(name, config, include_platform_metadata)
            self._inspector.start_capture()

    # -- iteration -------------------------------------------------------

    def next(self) -> EventHandle:
        """Advance the event source by one step."""
        with _ENGINE_LOCK:
            status, event = self._inspector.next()
            return EventHandle(status, event, self._inspector.generation)

    def events(self, max_timeouts: Optional[int] = None) -> Iterator[EventHandle]:
        """Yield OK event handles until EOF or ERROR.

        Stops early, with a warning, after more than `max_timeouts`
        consecutive timeouts.
        """
        limit = self.config.max_timeouts if max_timeouts is None else max_timeouts
        timeouts = 0
        while True:
            evt = self.next()
            if evt.status == EventStatus.OK:
                timeouts = 0
                yield evt
            elif evt.status == EventStatus.TIMEOUT:
                timeouts += 1
                if timeouts > limit:
                    get_logger().warning(
                        f"giving up after {timeouts} consecutive timeouts", component="driver"
                    )
                    return
            else:
                return

    # -- extraction ------------------------------------------------------

    def _resolve(self, field_name: str, evt: EventHandle) -> BaseExtractor:
        extractor = self._extractors.resolve(field_name)
        if evt.event is None:
            raise NullEventError(f"cannot extract {field_name!r} from a null event", field_name)
        if (
            evt.generation != self._inspector.generation
            or self._inspector.current_event is not evt.event
        ):
            raise StaleEventError(
                f"event {evt.event.num} is no longer held by the engine", field_name
            )
        return extractor

    def extract_field_as_string(self, field_name: str, evt: EventHandle) -> str:
        """Rendered value of `field_name` for the event."""
        with _ENGINE_LOCK:
            extractor = self._resolve(field_name, evt)
            value = extractor.tostring(evt.event)  # type: ignore[arg-type]
            if value is None:
                raise NullValueError(f"field {field_name!r} has no value for this event", field_name)
            return value

    def extract_field_with_offsets(self, field_name: str, evt: EventHandle) -> ExtractedField:
        """Rendered value plus the byte range of its first occurrence.

        The range is (0, 0) when the extractor reports no offsets.
        """
        with _ENGINE_LOCK:
            extractor = self._resolve(field_name, evt)
            value = extractor.tostring(evt.event)  # type: ignore[arg-type]
            if value is None:
                raise NullValueError(f"field {field_name!r} has no value for this event", field_name)
            _, offsets = extractor.extract_with_offsets(evt.event)  # type: ignore[arg-type]
            if not offsets:
                return ExtractedField(value)
            start, length = offsets[0]
            return ExtractedField(value, start, length)

    # -- metrics ---------------------------------------------------------

    def get_metrics(self) -> list[MetricRecord]:
        """Snapshot metrics and return them as a new list."""
        with _ENGINE_LOCK:
            self._metrics.snapshot()
            return list(self._metrics.get_metrics())

    # -- teardown --------------------------------------------------------

    def close(self) -> None:
        """Close the event source and destroy every plugin."""
        with _ENGINE_LOCK:
            self._inspector.close()

    def __enter__(self) -> "TestDriver":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def new_test_driver(config: Optional[DriverConfig] = None) -> TestDriver:
    """Create a driver."""
    return TestDriver(config)


def init_plugin(
    descriptor: type[Plugin],
    config: str = "",
    driver_config: Optional[DriverConfig] = None,
) -> tuple[TestDriver, PluginHandle]:
    """Create a driver and register one plugin with it."""
    driver = TestDriver(driver_config)
    return driver, driver.register_plugin(descriptor, config)
