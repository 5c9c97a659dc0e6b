# src/plugin_test_driver/plugins/api.py
# Base classes a plugin descriptor is built from.

"""
A plugin descriptor is a subclass of `Plugin` combined with one or more
capability mixins:

- SourcePlugin: opens a live event source and produces event batches
- ExtractPlugin: declares fields and extracts their values from events
- ParsePlugin: sees every event the engine delivers

The engine instantiates the descriptor with its (parsed) configuration. A
plugin rejects its configuration by raising from `__init__`; the message of
that exception is what the test driver reports.

Example:

    class Dummy(SourcePlugin, ExtractPlugin):
        name = "dummy"
        plugin_id = 999
        event_source = "dummy"

        def open(self, params):
            return DummyInstance()

        def payload(self, req):
            return req.event.payload.decode()

        extract_fields = [field("dummy.payload", payload)]
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterable, Iterator, Optional, Sequence

from pydantic import BaseModel, TypeAdapter

from plugin_test_driver.engine.events import Event, plugin_event
from plugin_test_driver.log import LogSeverity, get_logger
from plugin_test_driver.models import FieldArg, FieldInfo, FieldType, Metric

PLUGIN_API_VERSION = "3.10.0"

_FIELD_LIST = TypeAdapter(list[FieldInfo])


class EndOfStream(Exception):
    """Raised by a source instance when it has no more events."""


class SourceTimeout(Exception):
    """Raised by a source instance when no event is available yet."""


class Plugin(ABC):
    """Base class for every plugin descriptor."""

    name: ClassVar[str] = ""
    version: ClassVar[str] = "0.0.0"
    description: ClassVar[str] = ""
    contact: ClassVar[str] = ""
    required_api_version: ClassVar[str] = PLUGIN_API_VERSION
    # When set, the config string is parsed as JSON into this model
    config_model: ClassVar[Optional[type[BaseModel]]] = None

    def __init__(self, config: Any) -> None:
        self.config = config

    def get_metrics(self) -> Iterable[Metric]:
        return ()

    def destroy(self) -> None:
        """Release plugin resources. Called once when the engine shuts down."""

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        get_logger().log(message, severity, component=self.name)


class EventBatch:
    """Collects the raw events a source instance produces in one call."""

    def __init__(self) -> None:
        self._events: list[bytes] = []

    def add(self, raw: bytes) -> None:
        self._events.append(bytes(raw))

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._events)


class SourceInstance(ABC):
    """An open event source created by `SourcePlugin.open`."""

    @abstractmethod
    def next_batch(self, plugin: "SourcePlugin", batch: EventBatch) -> None:
        """Add zero or more events to `batch`.

        Raise EndOfStream when exhausted and SourceTimeout (or add nothing)
        when no event is ready yet.
        """
        ...

    def close(self) -> None:
        """Close the source instance."""


class SourcePlugin(Plugin):
    """Mixin for plugins that generate events."""

    plugin_id: ClassVar[int] = 0
    event_source: ClassVar[str] = ""

    @abstractmethod
    def open(self, params: Optional[str]) -> SourceInstance:
        ...

    def close(self, instance: SourceInstance) -> None:
        instance.close()

    def event_to_string(self, event: Event) -> Optional[str]:
        """Human-readable form of an event, used for `evt.plugininfo`."""
        return None

    @classmethod
    def plugin_event(cls, data: bytes, ts: int = 0, tid: int = -1) -> bytes:
        """Encode a plugin event carrying `data` under this plugin's id."""
        return plugin_event(cls.plugin_id, data, ts=ts, tid=tid)


class ExtractOffset:
    """Byte range a plugin may report for the value it extracts.

    Only filled in when `requested` is true. Ranges set with
    `set_in_plugin_data` are relative to the plugin event payload; the engine
    relocates them to offsets in the raw event.
    """

    def __init__(self, requested: bool = False) -> None:
        self.requested = requested
        self.start: Optional[int] = None
        self.length: Optional[int] = None
        self.in_plugin_data = False

    def set_in_plugin_data(self, start: int, length: int) -> None:
        self.start, self.length, self.in_plugin_data = start, length, True

    def set_in_event(self, start: int, length: int) -> None:
        self.start, self.length, self.in_plugin_data = start, length, False

    @property
    def reported(self) -> bool:
        return self.start is not None and self.length is not None


@dataclass
class ExtractRequest:
    """One field extraction request handed to an ExtractPlugin."""

    field_id: int
    field_name: str
    event: Event
    offset: ExtractOffset
    arg_key: Optional[str] = None
    arg_index: Optional[int] = None
    arg_present: bool = False


@dataclass(frozen=True)
class ExtractField:
    """A declared field and the plugin method that extracts it."""

    info: FieldInfo
    method: Callable[..., Any]


def field(
    name: str,
    method: Callable[..., Any],
    type: FieldType = FieldType.STRING,
    *,
    is_list: bool = False,
    arg: Optional[FieldArg] = None,
    display: Optional[str] = None,
    desc: str = "",
) -> ExtractField:
    """Declare an extractable field backed by `method(self, request)`."""
    info = FieldInfo(
        name=name,
        type=type,
        is_list=is_list,
        arg=arg,
        display=display,
        desc=desc or (method.__doc__ or "").strip(),
    )
    return ExtractField(info=info, method=method)


class ExtractPlugin(Plugin):
    """Mixin for plugins that extract fields from events."""

    extract_fields: ClassVar[Sequence[ExtractField]] = ()
    # Empty means: the plugin's own event source if it has one, else any source
    extract_event_sources: ClassVar[Sequence[str]] = ()
    extract_event_types: ClassVar[Sequence[int]] = ()

    @classmethod
    def get_fields(cls) -> str:
        """Field schema as the JSON document the engine consumes."""
        return _FIELD_LIST.dump_json(
            [f.info for f in cls.extract_fields], by_alias=True, exclude_none=True
        ).decode()

    @classmethod
    def get_extract_event_sources(cls) -> str:
        return json.dumps(list(cls.extract_event_sources))

    def extract(self, request: ExtractRequest) -> Any:
        """Extract one field. Returns None when the event has no value."""
        spec = self.extract_fields[request.field_id]
        return spec.method(self, request)


class ParsePlugin(Plugin):
    """Mixin for plugins that observe every delivered event."""

    parse_event_sources: ClassVar[Sequence[str]] = ()
    parse_event_types: ClassVar[Sequence[int]] = ()

    @abstractmethod
    def parse_event(self, event: Event) -> None:
        ...


def parse_field_schema(document: str) -> list[FieldInfo]:
    """Validate a JSON field schema document."""
    return _FIELD_LIST.validate_json(document)
