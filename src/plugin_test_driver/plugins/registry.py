# src/plugin_test_driver/plugins/registry.py
# Plugin registry - validates, initializes and stores plugin handles.

"""
PluginRegistry turns a plugin descriptor plus a configuration string into an
initialized PluginHandle.

Registration validates the descriptor before touching it:
- it must be a Plugin subclass with a name
- its required API version must be served by this engine
- it must declare at least one capability
- its field schema (for extractors) must be well-formed JSON
"""

from typing import Any, Iterator, Optional

from pydantic import ValidationError

from plugin_test_driver.errors import InitializationError
from plugin_test_driver.log import get_logger
from plugin_test_driver.models import Capability
from plugin_test_driver.plugins.api import (
    PLUGIN_API_VERSION,
    ExtractPlugin,
    ParsePlugin,
    Plugin,
    SourcePlugin,
    parse_field_schema,
)
from plugin_test_driver.plugins.handle import EventSourceFilter, PluginHandle


def _parse_version(version: str) -> tuple[int, int, int]:
    parts = version.split(".")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"invalid version string {version!r}")
    return int(parts[0]), int(parts[1]), int(parts[2])


def is_api_version_compatible(required: str, provided: str = PLUGIN_API_VERSION) -> bool:
    """Same major version, and the engine's minor is at least the required one."""
    req_major, req_minor, _ = _parse_version(required)
    major, minor, _ = _parse_version(provided)
    return req_major == major and req_minor <= minor


def descriptor_capabilities(descriptor: type[Plugin]) -> Capability:
    """Capability set declared by a descriptor's mixins."""
    caps = Capability.NONE
    if issubclass(descriptor, SourcePlugin):
        caps |= Capability.SOURCING
    if issubclass(descriptor, ExtractPlugin):
        caps |= Capability.EXTRACTION
    if issubclass(descriptor, ParsePlugin):
        caps |= Capability.PARSING
    return caps


class PluginRegistry:
    """
    Registry of initialized plugins, keyed by plugin name.

    Plugin names are unique; registering a second plugin with the same name
    is rejected.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, PluginHandle] = {}

    def register(self, descriptor: Optional[type[Plugin]], config: str = "") -> PluginHandle:
        """Validate and initialize a plugin descriptor."""
        capabilities = self._validate(descriptor)
        name = descriptor.name  # type: ignore[union-attr]

        extract_filter = None
        fields = []
        if Capability.EXTRACTION in capabilities:
            fields = self._load_fields(descriptor)
            extract_filter = EventSourceFilter(
                descriptor.extract_event_sources,  # type: ignore[attr-defined]
                descriptor.extract_event_types,  # type: ignore[attr-defined]
                own_source=getattr(descriptor, "event_source", None),
            )

        parse_filter = None
        if Capability.PARSING in capabilities:
            parse_filter = EventSourceFilter(
                descriptor.parse_event_sources,  # type: ignore[attr-defined]
                descriptor.parse_event_types,  # type: ignore[attr-defined]
                own_source=getattr(descriptor, "event_source", None),
            )

        parsed_config = self._parse_config(descriptor, config)
        try:
            instance = descriptor(parsed_config)
        except Exception as e:
            raise InitializationError(str(e), plugin=name) from e

        handle = PluginHandle(
            instance,
            capabilities,
            fields=fields,
            extract_filter=extract_filter,
            parse_filter=parse_filter,
        )
        self._plugins[name] = handle
        get_logger().debug(
            f"registered plugin {name} {descriptor.version} ({capabilities})",
            component="plugins",
        )
        return handle

    def _validate(self, descriptor: Any) -> Capability:
        if descriptor is None:
            raise InitializationError("null plugin descriptor")
        if not isinstance(descriptor, type) or not issubclass(descriptor, Plugin):
            raise InitializationError(f"{descriptor!r} is not a plugin descriptor")

        name = descriptor.name
        if not name:
            raise InitializationError(f"plugin descriptor {descriptor.__name__} has no name")
        if name in self._plugins:
            raise InitializationError(f"plugin {name!r} is already registered", plugin=name)

        try:
            compatible = is_api_version_compatible(descriptor.required_api_version)
        except ValueError as e:
            raise InitializationError(str(e), plugin=name) from e
        if not compatible:
            raise InitializationError(
                f"plugin {name!r} requires API version {descriptor.required_api_version}, "
                f"engine provides {PLUGIN_API_VERSION}",
                plugin=name,
            )

        capabilities = descriptor_capabilities(descriptor)
        if capabilities == Capability.NONE:
            raise InitializationError("Plugin does not have any capabilities", plugin=name)

        if Capability.SOURCING in capabilities and not descriptor.event_source:  # type: ignore[attr-defined]
            raise InitializationError(
                f"source plugin {name!r} does not declare an event source", plugin=name
            )
        return capabilities

    def _parse_config(self, descriptor: type[Plugin], config: str) -> Any:
        if descriptor.config_model is None:
            return config
        try:
            return descriptor.config_model.model_validate_json(config or "{}")
        except ValidationError as e:
            raise InitializationError(
                f"invalid config for plugin {descriptor.name!r}: {e}",
                plugin=descriptor.name,
            ) from e

    def _load_fields(self, descriptor: type[Plugin]) -> list:
        try:
            fields = parse_field_schema(descriptor.get_fields())  # type: ignore[attr-defined]
        except ValidationError as e:
            raise InitializationError(
                f"invalid field schema in plugin {descriptor.name!r}: {e}",
                plugin=descriptor.name,
            ) from e
        if not fields:
            raise InitializationError(
                f"extractor plugin {descriptor.name!r} declares no fields",
                plugin=descriptor.name,
            )
        seen = set()
        for f in fields:
            if f.name in seen:
                raise InitializationError(
                    f"plugin {descriptor.name!r} declares field {f.name!r} twice",
                    plugin=descriptor.name,
                )
            seen.add(f.name)
        return fields

    def get(self, name: str) -> Optional[PluginHandle]:
        """Get a plugin by name."""
        return self._plugins.get(name)

    def find_source(self, name: str) -> Optional[PluginHandle]:
        """Get a source-capable plugin by name."""
        handle = self._plugins.get(name)
        if handle is not None and Capability.SOURCING in handle.capabilities:
            return handle
        return None

    def source_by_id(self, plugin_id: int) -> Optional[PluginHandle]:
        """Get the source plugin that owns events with `plugin_id`."""
        for handle in self._plugins.values():
            if Capability.SOURCING in handle.capabilities and handle.plugin_id == plugin_id:
                return handle
        return None

    def with_capability(self, capability: Capability) -> list[PluginHandle]:
        return [h for h in self._plugins.values() if capability in h.capabilities]

    def destroy_all(self) -> None:
        """Destroy every plugin instance."""
        for handle in self._plugins.values():
            try:
                handle.destroy()
            except Exception as e:
                get_logger().error(f"failed to destroy plugin: {e}", component=handle.name)

    def __iter__(self) -> Iterator[PluginHandle]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, name: str) -> bool:
        return name in self._plugins
