# src/plugin_test_driver/extractors/base.py
# Base classes for field extractors and the factories that build them.

"""
An extractor is bound to one field name and knows how to pull that field out
of an event. It offers two distinct passes:

- tostring(): the canonical rendered value, used for plain extraction
- extract_with_offsets(): raw values plus the byte ranges they came from

Factories parse field names. A factory returns None for names it does not
own and raises InvalidFieldError for names it owns but that are malformed
(for example a missing required argument).
"""

import ipaddress
from abc import ABC, abstractmethod
from typing import Any, Optional

from plugin_test_driver.engine.events import Event
from plugin_test_driver.models import FieldInfo, FieldType

Offset = tuple[int, int]

_NUMERIC_TYPES = (FieldType.UINT64, FieldType.RELTIME, FieldType.ABSTIME)


def render_value(value: Any, field_type: FieldType) -> str:
    """Render one extracted value to its canonical string form."""
    if field_type in _NUMERIC_TYPES:
        return str(int(value))
    if field_type == FieldType.BOOL:
        return "true" if value else "false"
    if field_type == FieldType.IPADDR:
        return str(ipaddress.ip_address(value))
    if field_type == FieldType.IPNET:
        return str(ipaddress.ip_network(value, strict=False))
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class BaseExtractor(ABC):
    """
    Abstract base class for all extractors.

    Subclasses implement `extract`, which returns the list of values the
    field produced for an event and, when asked, the (start, length) byte
    range of each value inside the raw event.
    """

    def __init__(self, field_name: str, info: FieldInfo) -> None:
        self.field_name = field_name
        self.info = info

    @abstractmethod
    def extract(self, event: Event, want_offsets: bool = False) -> tuple[list[Any], list[Offset]]:
        """Extract raw values (and optionally offsets) from an event."""
        ...

    def tostring(self, event: Event) -> Optional[str]:
        """Rendering pass. Returns None when the field has no value."""
        values, _ = self.extract(event, want_offsets=False)
        if not values:
            return None
        return self.render(values)

    def extract_with_offsets(self, event: Event) -> tuple[list[Any], list[Offset]]:
        """Offset pass. Returns raw values and the offsets the extractor reported."""
        return self.extract(event, want_offsets=True)

    def render(self, values: list[Any]) -> str:
        if self.info.is_list:
            return "(" + ",".join(render_value(v, self.info.type) for v in values) + ")"
        return render_value(values[0], self.info.type)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.field_name!r})"


class ExtractorFactory(ABC):
    """Builds extractors for the field names it owns."""

    @property
    @abstractmethod
    def key(self) -> str:
        """Identity of this factory inside an ExtractorRegistry."""
        ...

    @abstractmethod
    def fields(self) -> list[FieldInfo]:
        """Fields this factory can build extractors for."""
        ...

    @abstractmethod
    def new_extractor(self, field_name: str) -> Optional[BaseExtractor]:
        ...
