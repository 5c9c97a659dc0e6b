# src/plugin_test_driver/engine/inspector.py
# The inspection engine instance: plugin hosting, event sources, numbering.

"""
Inspector is the engine the test driver orchestrates. It is not thread-safe;
the driver serializes every call into it.

An inspector starts IDLE, is opened on exactly one event source (a capture
file or a registered source plugin), and then delivers events one step at a
time until the source reports end of stream or fails. Both terminal
conditions are sticky.
"""

import platform
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from plugin_test_driver.engine.capture import CaptureReader
from plugin_test_driver.engine.events import Event, RawEvent
from plugin_test_driver.errors import CaptureStateError, EventFormatError, OpenError
from plugin_test_driver.log import get_logger
from plugin_test_driver.models import Capability, CaptureState, EventStatus
from plugin_test_driver.plugins.api import (
    EndOfStream,
    EventBatch,
    Plugin,
    SourceInstance,
    SourceTimeout,
)
from plugin_test_driver.plugins.handle import SYSCALL_SOURCE, PluginHandle
from plugin_test_driver.plugins.registry import PluginRegistry


@dataclass(frozen=True)
class PlatformInfo:
    """Host metadata attached to events when platform metadata is enabled."""

    hostname: str
    os_name: str

    @classmethod
    def detect(cls) -> "PlatformInfo":
        return cls(
            hostname=platform.node(),
            os_name=platform.system(),
        )


@dataclass
class InspectorStats:
    """Engine-level counters."""

    n_evts: int = 0
    n_timeouts: int = 0
    n_parse_errors: int = 0
    n_source_errors: int = 0


class Inspector:
    """A single inspection engine instance."""

    def __init__(self) -> None:
        self.plugins = PluginRegistry()
        self.state = CaptureState.IDLE
        self.stats = InspectorStats()
        self.platform: Optional[PlatformInfo] = None
        self.source_kind: Optional[str] = None
        self.generation = 0
        self.last_error: Optional[str] = None

        self._reader: Optional[CaptureReader] = None
        self._source: Optional[PluginHandle] = None
        self._instance: Optional[SourceInstance] = None
        self._pending: deque[bytes] = deque()
        self._evtnum = 0
        self._terminal: Optional[EventStatus] = None
        self._current: Optional[Event] = None

    # -- setup -----------------------------------------------------------

    def register_plugin(self, descriptor: Optional[type[Plugin]], config: str) -> PluginHandle:
        if self.state != CaptureState.IDLE:
            raise CaptureStateError("plugins can only be registered before capture starts")
        return self.plugins.register(descriptor, config)

    def _check_idle(self) -> None:
        if self.state != CaptureState.IDLE or self.source_kind is not None:
            raise CaptureStateError(
                f"an event source is already open ({self.source_kind}); "
                "each driver can be opened once"
            )

    def open_savefile(self, path: Union[str, Path]) -> None:
        """Open a capture file for replay."""
        self._check_idle()
        self._reader = CaptureReader(path)
        self.source_kind = "savefile"
        get_logger().debug(f"opened capture file {path}", component="inspector")

    def open_plugin(self, name: str, config: str, platform_metadata: bool = False) -> None:
        """Open a live event source provided by the registered plugin `name`."""
        self._check_idle()
        handle = self.plugins.find_source(name)
        if handle is None:
            if name in self.plugins:
                raise OpenError(f"plugin {name!r} does not provide an event source")
            raise OpenError(f"unknown plugin source {name!r}")

        try:
            instance = handle.instance.open(config or None)  # type: ignore[attr-defined]
        except Exception as e:
            raise OpenError(f"failed to open source {name!r}: {e}") from e
        if instance is None:
            raise OpenError(f"plugin {name!r} returned no source instance")

        self._source = handle
        self._instance = instance
        self.source_kind = "plugin"
        if platform_metadata:
            self.platform = PlatformInfo.detect()
        get_logger().debug(f"opened plugin source {name}", component="inspector")

    def start_capture(self) -> None:
        if self.source_kind is None:
            raise CaptureStateError("no event source is open")
        if self.state != CaptureState.IDLE:
            raise CaptureStateError(f"cannot start capture in state {self.state.value}")
        self.state = CaptureState.CAPTURING

    # -- iteration -------------------------------------------------------

    @property
    def current_event(self) -> Optional[Event]:
        return self._current

    def next(self) -> tuple[EventStatus, Optional[Event]]:
        """Advance the event source by one step."""
        if self.state != CaptureState.CAPTURING:
            raise CaptureStateError("capture has not been started")

        self.generation += 1
        self._current = None
        if self._terminal is not None:
            return self._terminal, None

        try:
            raw = self._next_raw()
        except SourceTimeout:
            self.stats.n_timeouts += 1
            return EventStatus.TIMEOUT, None
        except EndOfStream:
            self._terminal = EventStatus.EOF
            return EventStatus.EOF, None
        except Exception as e:
            self.stats.n_source_errors += 1
            return self._fail(f"failed to get next event: {e}"), None

        try:
            event = self._decorate(raw)
        except EventFormatError as e:
            self.stats.n_source_errors += 1
            return self._fail(f"malformed event: {e}"), None

        for handle in self.plugins.with_capability(Capability.PARSING):
            if handle.parse_filter is not None and not handle.parse_filter.matches(event):
                continue
            try:
                handle.instance.parse_event(event)  # type: ignore[attr-defined]
            except Exception as e:
                self.stats.n_parse_errors += 1
                return self._fail(f"failed to parse event {event.num}: {e}", handle.name), None

        self.stats.n_evts += 1
        self._current = event
        return EventStatus.OK, event

    def _fail(self, message: str, component: str = "inspector") -> EventStatus:
        self.last_error = message
        self._terminal = EventStatus.ERROR
        get_logger().error(message, component=component)
        return EventStatus.ERROR

    def _next_raw(self) -> bytes:
        if self._reader is not None:
            raw = self._reader.next_event()
            if raw is None:
                raise EndOfStream(f"end of capture file {self._reader.path}")
            return raw

        if self._instance is None or self._source is None:
            raise CaptureStateError("no event source is open")

        if not self._pending:
            batch = EventBatch()
            self._instance.next_batch(self._source.instance, batch)  # type: ignore[arg-type]
            self._pending.extend(batch)
            if not self._pending:
                raise SourceTimeout("empty batch")
        return self._pending.popleft()

    def _decorate(self, raw: bytes) -> Event:
        info = RawEvent.from_bytes(raw)
        self._evtnum += 1

        if self._source is not None:
            source_plugin: Optional[PluginHandle] = self._source
            source = self._source.event_source
        elif info.is_plugin_event:
            source_plugin = self.plugins.source_by_id(info.plugin_id or 0)
            source = source_plugin.event_source if source_plugin else None
        else:
            source_plugin = None
            source = SYSCALL_SOURCE

        return Event(
            raw=raw,
            num=self._evtnum,
            source=source,
            source_plugin=source_plugin,
            decoded=info,
        )

    # -- teardown --------------------------------------------------------

    def close(self) -> None:
        """Stop capturing, close the source and destroy every plugin."""
        if self.state == CaptureState.CLOSED:
            return
        if self._reader is not None:
            self._reader.close()
        if self._instance is not None and self._source is not None:
            try:
                self._source.instance.close(self._instance)  # type: ignore[attr-defined]
            except Exception as e:
                get_logger().error(f"failed to close source: {e}", component=self._source.name)
        self._instance = None
        self._current = None
        self.plugins.destroy_all()
        self.state = CaptureState.CLOSED
