# tests/test_extractors.py
# Tests for the field extractors framework.

"""
Unit tests for extractors.

Tests cover:
- Value rendering and type coercion
- Field name and argument parsing
- Generic `evt.*` extractors on synthetic events
- Extractor registry ordering and caching
"""

import ipaddress
from datetime import datetime, timedelta, timezone

import pytest

from plugin_test_driver.engine.events import Event, encode_event, plugin_event
from plugin_test_driver.engine.inspector import Inspector
from plugin_test_driver.errors import InvalidFieldError
from plugin_test_driver.extractors import (
    ExtractorRegistry,
    GenericExtractorFactory,
    PluginExtractorFactory,
    render_value,
    split_field_name,
)
from plugin_test_driver.extractors.plugin import coerce_value
from plugin_test_driver.models import FieldType
from plugin_test_driver.plugins import PluginRegistry
from plugin_test_driver.plugins.samples import CountdownPlugin


@pytest.fixture
def inspector() -> Inspector:
    """Create an idle inspector."""
    return Inspector()


@pytest.fixture
def generic(inspector) -> GenericExtractorFactory:
    """Factory for the generic fields."""
    return GenericExtractorFactory(inspector)


@pytest.fixture
def countdown_factory() -> PluginExtractorFactory:
    """Factory for the countdown plugin's fields."""
    handle = PluginRegistry().register(CountdownPlugin, "")
    return PluginExtractorFactory(handle)


class TestRendering:
    """Tests for rendering and coercion of values."""

    def test_render_numbers(self):
        assert render_value(42, FieldType.UINT64) == "42"
        assert render_value(5, FieldType.RELTIME) == "5"

    def test_render_bool(self):
        assert render_value(True, FieldType.BOOL) == "true"
        assert render_value(False, FieldType.BOOL) == "false"

    def test_render_ip(self):
        assert render_value("10.0.0.1", FieldType.IPADDR) == "10.0.0.1"
        assert render_value(b"\x7f\x00\x00\x01", FieldType.IPADDR) == "127.0.0.1"
        assert render_value("10.1.2.3/8", FieldType.IPNET) == "10.0.0.0/8"

    def test_render_string(self):
        assert render_value(b"bytes", FieldType.STRING) == "bytes"
        assert render_value("text", FieldType.STRING) == "text"

    def test_coerce_times(self):
        """Test that time values are converted to nanoseconds."""
        assert coerce_value(timedelta(milliseconds=3), FieldType.RELTIME) == 3_000_000
        moment = datetime(2020, 1, 1, tzinfo=timezone.utc)
        assert coerce_value(moment, FieldType.ABSTIME) == 1577836800 * 10**9

    def test_coerce_ip(self):
        assert coerce_value("::1", FieldType.IPADDR) == ipaddress.ip_address("::1")

    def test_coerce_negative_unsigned(self):
        """Test that unsigned fields reject negative values."""
        with pytest.raises(ValueError):
            coerce_value(-1, FieldType.UINT64)


class TestFieldNames:
    """Tests for field name parsing."""

    def test_plain_name(self):
        assert split_field_name("countdown.payload") == ("countdown.payload", None)

    def test_name_with_arg(self):
        assert split_field_name("map.value[key]") == ("map.value", "key")

    @pytest.mark.parametrize("name", ["a.b[1", "a.b]", "a.b[1]x", "a.b[[1]]"])
    def test_malformed(self, name):
        with pytest.raises(InvalidFieldError):
            split_field_name(name)

    def test_required_arg_missing(self, countdown_factory):
        """Test a field that requires an argument."""
        with pytest.raises(InvalidFieldError, match="requires an argument"):
            countdown_factory.new_extractor("countdown.payload_repeated")

    def test_index_arg_must_be_numeric(self, countdown_factory):
        with pytest.raises(InvalidFieldError, match="numeric index"):
            countdown_factory.new_extractor("countdown.payload_repeated[x]")

    def test_arg_not_accepted(self, countdown_factory):
        with pytest.raises(InvalidFieldError, match="does not accept"):
            countdown_factory.new_extractor("countdown.payload[1]")

    def test_empty_arg(self, countdown_factory):
        with pytest.raises(InvalidFieldError, match="empty argument"):
            countdown_factory.new_extractor("countdown.remaining_with_override[]")

    def test_key_and_index_args(self, countdown_factory):
        """Test that arguments are bound to the extractor."""
        indexed = countdown_factory.new_extractor("countdown.payload_repeated[3]")
        keyed = countdown_factory.new_extractor("countdown.remaining_with_override[5 left]")

        assert indexed.arg_index == 3
        assert keyed.arg_key == "5 left"

    def test_unknown_name(self, countdown_factory):
        """Test that foreign names are left to other factories."""
        assert countdown_factory.new_extractor("other.field") is None


class TestGenericExtractors:
    """Tests for the engine's own fields."""

    def test_header_fields(self, generic):
        """Test header fields and their byte ranges."""
        evt = Event(raw=plugin_event(1, b"abc", ts=77, tid=3), num=4, source="src")

        ts = generic.new_extractor("evt.ts")
        assert ts.tostring(evt) == "77"
        assert ts.extract_with_offsets(evt) == ([77], [(0, 8)])

        assert generic.new_extractor("evt.tid").tostring(evt) == "3"
        assert generic.new_extractor("evt.num").tostring(evt) == "4"
        assert generic.new_extractor("evt.type").extract_with_offsets(evt) == (
            ["pluginevent"], [(20, 2)]
        )
        assert generic.new_extractor("evt.type.num").tostring(evt) == "322"
        assert generic.new_extractor("evt.source").tostring(evt) == "src"

    def test_computed_fields_have_no_offsets(self, generic):
        evt = Event(raw=plugin_event(1, b"abc"), num=1)
        assert generic.new_extractor("evt.num").extract_with_offsets(evt) == ([1], [])

    def test_rawarg(self, generic):
        """Test raw parameter access by name and position."""
        evt = Event(raw=plugin_event(9, b"abc"), num=1)

        by_name = generic.new_extractor("evt.rawarg.event_data")
        assert by_name.tostring(evt) == "abc"
        assert by_name.extract_with_offsets(evt) == (["abc"], [(38, 3)])

        plugin_id = generic.new_extractor("evt.arg[0]")
        assert plugin_id.tostring(evt) == "9"
        assert plugin_id.extract_with_offsets(evt) == ([9], [(34, 4)])

    def test_missing_param(self, generic):
        """Test that absent parameters have no value."""
        evt = Event(raw=encode_event(1, [b"x"]), num=1)
        assert generic.new_extractor("evt.rawarg.event_data").tostring(evt) is None
        assert generic.new_extractor("evt.arg[5]").tostring(evt) is None

    def test_no_source_plugin(self, generic):
        """Test plugin fields of events no plugin generated."""
        evt = Event(raw=encode_event(1, [b"x"]), num=1)
        assert generic.new_extractor("evt.pluginname").tostring(evt) is None
        assert generic.new_extractor("evt.plugininfo").tostring(evt) is None
        assert generic.new_extractor("evt.source").tostring(evt) is None

    def test_platform_fields_without_metadata(self, generic):
        evt = Event(raw=encode_event(1, [b"x"]), num=1)
        assert generic.new_extractor("evt.hostname").tostring(evt) is None

    @pytest.mark.parametrize("name", ["evt.rawarg.", "evt.arg[x]", "evt.arg[1"])
    def test_malformed_generic_names(self, generic, name):
        with pytest.raises(InvalidFieldError):
            generic.new_extractor(name)

    def test_unknown_generic_name(self, generic):
        assert generic.new_extractor("evt.nope") is None


class TestExtractorRegistry:
    """Tests for ExtractorRegistry."""

    def test_register_is_idempotent(self, generic):
        registry = ExtractorRegistry()
        assert registry.register(generic)
        assert not registry.register(generic)
        assert len(registry) == 1
        assert "evt" in registry

    def test_resolve_caches(self, generic):
        """Test that a name resolves to the same extractor every time."""
        registry = ExtractorRegistry()
        registry.register(generic)
        assert registry.resolve("evt.num") is registry.resolve("evt.num")

    def test_unknown_name(self, generic):
        registry = ExtractorRegistry()
        registry.register(generic)
        with pytest.raises(InvalidFieldError):
            registry.resolve("nope.field")

    def test_first_registered_wins(self, generic, countdown_factory):
        """Test resolution order between two factories."""
        registry = ExtractorRegistry()
        registry.register(countdown_factory)
        registry.register(generic)

        assert registry.list_keys() == ["plugin:countdown", "evt"]
        extractor = registry.resolve("countdown.payload")
        assert extractor.handle.name == "countdown"

    def test_list_fields(self, generic, countdown_factory):
        registry = ExtractorRegistry()
        registry.register(generic)
        registry.register(countdown_factory)
        names = [f.name for f in registry.list_fields()]

        assert names[0] == "evt.num"
        assert "countdown.payload" in names
