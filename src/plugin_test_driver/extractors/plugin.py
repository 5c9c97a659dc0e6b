# src/plugin_test_driver/extractors/plugin.py
# Extractors backed by the fields an ExtractPlugin declares.

"""
Plugin field names may carry an argument: `name[arg]`. The argument rules
come from the plugin's field schema:

- isRequired: the argument must be present
- isIndex: the argument is a non-negative integer
- isKey: the argument is an arbitrary string

Values returned by the plugin are coerced to the declared field type.
Offsets a plugin reports relative to its event data are relocated to
absolute offsets inside the raw event.
"""

import ipaddress
from datetime import datetime, timedelta
from typing import Any, Optional

from plugin_test_driver.engine.events import Event
from plugin_test_driver.errors import ExtractionError, InvalidFieldError
from plugin_test_driver.extractors.base import BaseExtractor, ExtractorFactory, Offset
from plugin_test_driver.log import get_logger
from plugin_test_driver.models import FieldInfo, FieldType
from plugin_test_driver.plugins.api import ExtractOffset, ExtractRequest
from plugin_test_driver.plugins.handle import PluginHandle

_NS_PER_US = 1000


def split_field_name(field_name: str) -> tuple[str, Optional[str]]:
    """Split `name[arg]` into its name and argument."""
    if "[" not in field_name:
        if "]" in field_name:
            raise InvalidFieldError(f"unbalanced brackets in {field_name!r}", field_name)
        return field_name, None
    if not field_name.endswith("]"):
        raise InvalidFieldError(f"unterminated argument in {field_name!r}", field_name)
    name, _, arg = field_name[:-1].partition("[")
    if "[" in arg or "]" in arg:
        raise InvalidFieldError(f"nested brackets in {field_name!r}", field_name)
    return name, arg


def coerce_value(value: Any, field_type: FieldType) -> Any:
    """Convert a value returned by a plugin to the declared field type."""
    if field_type == FieldType.STRING:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return str(value)
    if field_type == FieldType.BOOL:
        return bool(value)
    if field_type == FieldType.RELTIME and isinstance(value, timedelta):
        return (value // timedelta(microseconds=1)) * _NS_PER_US
    if field_type == FieldType.ABSTIME and isinstance(value, datetime):
        return int(value.timestamp()) * 10**9 + value.microsecond * _NS_PER_US
    if field_type == FieldType.IPADDR:
        return ipaddress.ip_address(value)
    if field_type == FieldType.IPNET:
        return ipaddress.ip_network(value, strict=False)
    number = int(value)
    if number < 0:
        raise ValueError(f"negative value {number} for unsigned field")
    return number


class PluginExtractor(BaseExtractor):
    """Extracts one plugin field, possibly with an argument."""

    def __init__(
        self,
        field_name: str,
        info: FieldInfo,
        handle: PluginHandle,
        field_id: int,
        arg_key: Optional[str] = None,
        arg_index: Optional[int] = None,
    ) -> None:
        super().__init__(field_name, info)
        self.handle = handle
        self.field_id = field_id
        self.arg_key = arg_key
        self.arg_index = arg_index

    def extract(self, event: Event, want_offsets: bool = False) -> tuple[list[Any], list[Offset]]:
        extract_filter = self.handle.extract_filter
        if extract_filter is not None and not extract_filter.matches(event):
            return [], []

        offset = ExtractOffset(requested=want_offsets)
        request = ExtractRequest(
            field_id=self.field_id,
            field_name=self.info.name,
            event=event,
            offset=offset,
            arg_key=self.arg_key,
            arg_index=self.arg_index,
            arg_present=self.arg_key is not None or self.arg_index is not None,
        )
        try:
            result = self.handle.instance.extract(request)  # type: ignore[attr-defined]
            if result is None:
                return [], []
            raw_values = list(result) if self.info.is_list else [result]
            values = [coerce_value(v, self.info.type) for v in raw_values]
        except Exception as e:
            raise ExtractionError(
                f"plugin {self.handle.name!r} failed to extract {self.field_name!r}: {e}",
                self.field_name,
            ) from e

        if not values or not want_offsets or not offset.reported:
            return values, []
        start, length = offset.start, offset.length
        if offset.in_plugin_data:
            base = event.payload_offset
            if base is None:
                return values, []
            start += base  # type: ignore[operator]
        if start < 0 or length < 0 or start + length > len(event.raw):  # type: ignore[operator]
            get_logger().warning(
                f"ignoring offsets ({start}, {length}) of {self.field_name!r} "
                f"outside the {len(event.raw)}-byte event",
                component=self.handle.name,
            )
            return values, []
        return values, [(start, length)]  # type: ignore[list-item]


class PluginExtractorFactory(ExtractorFactory):
    """Builds extractors for the fields of one extraction-capable plugin."""

    def __init__(self, handle: PluginHandle) -> None:
        self.handle = handle
        self._fields = {info.name: (i, info) for i, info in enumerate(handle.fields)}

    @property
    def key(self) -> str:
        return f"plugin:{self.handle.name}"

    def fields(self) -> list[FieldInfo]:
        return list(self.handle.fields)

    def new_extractor(self, field_name: str) -> Optional[BaseExtractor]:
        name, arg = split_field_name(field_name)
        entry = self._fields.get(name)
        if entry is None:
            return None
        field_id, info = entry
        arg_rules = info.arg

        if arg is None:
            if arg_rules is not None and arg_rules.is_required:
                raise InvalidFieldError(f"field {name!r} requires an argument", field_name)
            return PluginExtractor(field_name, info, self.handle, field_id)

        if arg_rules is None or not (arg_rules.is_index or arg_rules.is_key):
            raise InvalidFieldError(f"field {name!r} does not accept an argument", field_name)
        if not arg:
            raise InvalidFieldError(f"empty argument in {field_name!r}", field_name)

        if arg_rules.is_index and arg.isdigit():
            return PluginExtractor(field_name, info, self.handle, field_id, arg_index=int(arg))
        if arg_rules.is_key:
            return PluginExtractor(field_name, info, self.handle, field_id, arg_key=arg)
        raise InvalidFieldError(f"field {name!r} expects a numeric index, got {arg!r}", field_name)
