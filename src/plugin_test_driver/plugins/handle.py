# src/plugin_test_driver/plugins/handle.py
# Handle to a registered plugin and its event source/type filter.

from typing import Optional, Sequence

from plugin_test_driver.engine.events import PLUGINEVENT_E, Event
from plugin_test_driver.models import Capability, FieldInfo
from plugin_test_driver.plugins.api import Plugin

SYSCALL_SOURCE = "syscall"


class EventSourceFilter:
    """Decides whether a plugin wants to see a given event.

    With no declared sources the filter falls back to the plugin's own event
    source. With no declared event types, plugins that do not target the
    syscall source only receive plugin events.
    """

    def __init__(
        self,
        event_sources: Sequence[str],
        event_types: Sequence[int],
        own_source: Optional[str] = None,
    ) -> None:
        sources = list(event_sources)
        if not sources and own_source:
            sources.append(own_source)
        types = list(event_types)
        if not types and SYSCALL_SOURCE not in sources:
            types.append(PLUGINEVENT_E)
        self.event_sources = frozenset(sources)
        self.event_types = frozenset(types)

    def is_source_compatible(self, source: str) -> bool:
        return not self.event_sources or source in self.event_sources

    def matches(self, event: Event) -> bool:
        if self.event_sources and event.source not in self.event_sources:
            return False
        if self.event_types and event.info.type not in self.event_types:
            return False
        return True


class PluginHandle:
    """A registered, initialized plugin.

    Shared between the plugin registry and the test driver. Holds the
    capability set computed at registration and the live plugin instance.
    """

    def __init__(
        self,
        instance: Plugin,
        capabilities: Capability,
        fields: Sequence[FieldInfo] = (),
        extract_filter: Optional[EventSourceFilter] = None,
        parse_filter: Optional[EventSourceFilter] = None,
    ) -> None:
        self.instance = instance
        self.capabilities = capabilities
        self.fields = list(fields)
        self.extract_filter = extract_filter
        self.parse_filter = parse_filter
        self.destroyed = False

    @property
    def descriptor(self) -> type[Plugin]:
        return type(self.instance)

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def version(self) -> str:
        return self.descriptor.version

    @property
    def plugin_id(self) -> int:
        return getattr(self.descriptor, "plugin_id", 0)

    @property
    def event_source(self) -> Optional[str]:
        if Capability.SOURCING in self.capabilities:
            return self.descriptor.event_source  # type: ignore[attr-defined]
        return None

    @property
    def extract_event_sources(self) -> frozenset[str]:
        if self.extract_filter is None:
            return frozenset()
        return self.extract_filter.event_sources

    def has_capability(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def is_source_compatible(self, source: str) -> bool:
        """Whether this plugin extracts fields from events of `source`."""
        if self.extract_filter is None:
            return False
        return self.extract_filter.is_source_compatible(source)

    def destroy(self) -> None:
        if not self.destroyed:
            self.destroyed = True
            self.instance.destroy()

    def __repr__(self) -> str:
        return f"PluginHandle(name={self.name!r}, capabilities={self.capabilities})"
