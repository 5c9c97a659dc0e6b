# src/plugin_test_driver/extractors/registry.py
# Registry resolving field names to cached extractors.

"""
ExtractorRegistry maps field names to extractor instances.

Factories are consulted in registration order and the first one that
accepts a field name wins. Resolved extractors are cached per name; names
nobody understands are never cached.
"""

from typing import Iterator

from plugin_test_driver.errors import InvalidFieldError
from plugin_test_driver.extractors.base import BaseExtractor, ExtractorFactory
from plugin_test_driver.models import FieldInfo


class ExtractorRegistry:
    """Ordered collection of extractor factories plus an extractor cache."""

    def __init__(self) -> None:
        self._factories: list[ExtractorFactory] = []
        self._cache: dict[str, BaseExtractor] = {}

    def register(self, factory: ExtractorFactory) -> bool:
        """Register a factory. Returns False if one with the same key exists."""
        if factory.key in self:
            return False
        self._factories.append(factory)
        return True

    def resolve(self, field_name: str) -> BaseExtractor:
        """Get the extractor for `field_name`, building it on first use."""
        extractor = self._cache.get(field_name)
        if extractor is not None:
            return extractor

        for factory in self._factories:
            extractor = factory.new_extractor(field_name)
            if extractor is not None:
                self._cache[field_name] = extractor
                return extractor
        raise InvalidFieldError(f"invalid field name {field_name!r}", field_name)

    def list_fields(self) -> list[FieldInfo]:
        """Fields of every registered factory, in resolution order."""
        fields = []
        for factory in self._factories:
            fields.extend(factory.fields())
        return fields

    def list_keys(self) -> list[str]:
        return [f.key for f in self._factories]

    def __iter__(self) -> Iterator[ExtractorFactory]:
        return iter(self._factories)

    def __contains__(self, key: str) -> bool:
        return any(f.key == key for f in self._factories)

    def __len__(self) -> int:
        return len(self._factories)
