# tests/conftest.py
# Pytest configuration and fixtures for plugin-test-driver tests.

"""
Shared pytest fixtures for testing the library.

Provides:
- Test plugins: a scripted live source on "test_source", a competing
  extractor, an extractor for an unrelated source and a failing parser
- Drivers and capture file factories
"""

from datetime import timedelta
from typing import Optional

import pytest
from pydantic import BaseModel, Field

from plugin_test_driver.core.config import clear_config_cache
from plugin_test_driver.driver import TestDriver
from plugin_test_driver.engine.events import Event, encode_event, plugin_event
from plugin_test_driver.models import FieldArg, FieldType
from plugin_test_driver.plugins import (
    EndOfStream,
    EventBatch,
    ExtractPlugin,
    ExtractRequest,
    ParsePlugin,
    SourceInstance,
    SourcePlugin,
    SourceTimeout,
    field,
)
from plugin_test_driver.plugins.samples import CountdownPlugin
from plugin_test_driver.pytest_plugin import ptd_capture, ptd_driver  # noqa: F401

SCRIPTED_ID = 4242


class ScriptedConfig(BaseModel):
    """Steps played by the scripted source: payloads, "timeout" or "error"."""

    steps: list[str] = Field(default_factory=list)


class ScriptedInstance(SourceInstance):
    def __init__(self, steps: list[str]) -> None:
        self.steps = list(steps)
        self.closed = False

    def next_batch(self, plugin: SourcePlugin, batch: EventBatch) -> None:
        if not self.steps:
            raise EndOfStream("script finished")
        step = self.steps.pop(0)
        if step == "timeout":
            raise SourceTimeout("nothing yet")
        if step == "error":
            raise RuntimeError("scripted failure")
        batch.add(plugin.plugin_event(step.encode(), ts=1000, tid=7))

    def close(self) -> None:
        self.closed = True


def _text(req: ExtractRequest) -> str:
    return req.event.payload.decode()  # type: ignore[union-attr]


class ScriptedPlugin(SourcePlugin, ExtractPlugin):
    """Live source on "test_source" replaying a scripted list of payloads."""

    name = "scripted"
    version = "1.0.0"
    plugin_id = SCRIPTED_ID
    event_source = "test_source"
    config_model = ScriptedConfig

    def open(self, params: Optional[str]) -> ScriptedInstance:
        steps = params.split(",") if params else self.config.steps
        self.source_instance = ScriptedInstance(steps)
        return self.source_instance

    def event_to_string(self, event: Event) -> Optional[str]:
        return f"scripted: {event.payload.decode()}"  # type: ignore[union-attr]

    def extract_payload(self, req: ExtractRequest) -> str:
        """Whole payload."""
        text = _text(req)
        if req.offset.requested:
            req.offset.set_in_plugin_data(0, len(text))
        return text

    def extract_first_word(self, req: ExtractRequest) -> str:
        """First word of the payload."""
        word = _text(req).split(" ")[0]
        if req.offset.requested:
            req.offset.set_in_event(req.event.payload_offset, len(word))  # type: ignore[arg-type]
        return word

    def extract_length(self, req: ExtractRequest) -> int:
        """Payload length."""
        return len(_text(req))

    def extract_has_space(self, req: ExtractRequest) -> bool:
        """Whether the payload has a space."""
        return " " in _text(req)

    def extract_words(self, req: ExtractRequest) -> list[str]:
        """Words of the payload."""
        return _text(req).split()

    def extract_addr(self, req: ExtractRequest) -> Optional[str]:
        """Payload as an IP address, when it looks like one."""
        text = _text(req)
        return text if text.count(".") == 3 else None

    def extract_elapsed(self, req: ExtractRequest) -> timedelta:
        """Payload length, as milliseconds."""
        return timedelta(milliseconds=len(_text(req)))

    def extract_word(self, req: ExtractRequest) -> Optional[str]:
        """Word at the given index."""
        words = _text(req).split()
        if req.arg_index is None or req.arg_index >= len(words):
            return None
        return words[req.arg_index]

    def extract_broken(self, req: ExtractRequest) -> str:
        """Always fails."""
        raise RuntimeError("broken field")

    def extract_evt_num(self, req: ExtractRequest) -> int:
        """Shadowed by the engine's own evt.num."""
        return 999

    extract_fields = [
        field("test.payload", extract_payload),
        field("test.first_word", extract_first_word),
        field("test.length", extract_length, FieldType.UINT64),
        field("test.has_space", extract_has_space, FieldType.BOOL),
        field("test.words", extract_words, is_list=True),
        field("test.addr", extract_addr, FieldType.IPADDR),
        field("test.elapsed", extract_elapsed, FieldType.RELTIME),
        field("test.word", extract_word, arg=FieldArg(is_required=True, is_index=True)),
        field("test.broken", extract_broken),
        field("evt.num", extract_evt_num, FieldType.UINT64),
    ]


class ShadowPlugin(ExtractPlugin):
    """Extractor declaring the same field name as the scripted plugin."""

    name = "shadow"
    extract_event_sources = ["test_source"]

    def extract_payload(self, req: ExtractRequest) -> str:
        return "shadow"

    def extract_only(self, req: ExtractRequest) -> str:
        return "only in shadow"

    extract_fields = [
        field("test.payload", extract_payload),
        field("shadow.only", extract_only),
    ]


class OtherSourcePlugin(ExtractPlugin):
    """Extractor that only supports an unrelated source."""

    name = "other"
    extract_event_sources = ["other_source"]

    def extract_payload(self, req: ExtractRequest) -> str:
        return _text(req)

    extract_fields = [field("other.payload", extract_payload)]


class RawBytesPlugin(ExtractPlugin):
    """Extractor on "test_source" returning raw bytes and reporting odd ranges."""

    name = "raw"
    extract_event_sources = ["test_source"]

    def extract_bytes(self, req: ExtractRequest) -> Optional[bytes]:
        """Payload bytes as they are."""
        return req.event.payload

    def extract_before_start(self, req: ExtractRequest) -> str:
        if req.offset.requested:
            req.offset.set_in_event(-5, 10_000_000)
        return "v"

    def extract_past_end(self, req: ExtractRequest) -> str:
        if req.offset.requested:
            req.offset.set_in_plugin_data(0, len(req.event.payload) + 1)  # type: ignore[arg-type]
        return "v"

    extract_fields = [
        field("raw.bytes", extract_bytes),
        field("raw.before_start", extract_before_start),
        field("raw.past_end", extract_past_end),
    ]


class FailingParserPlugin(ParsePlugin):
    """Parse plugin that rejects events whose payload is "bad"."""

    name = "failing_parser"

    def parse_event(self, event: Event) -> None:
        if event.payload == b"bad":
            raise ValueError("cannot parse a bad event")


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Keep the config cache from leaking between tests."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def driver(ptd_driver: TestDriver) -> TestDriver:
    """A fresh test driver."""
    return ptd_driver


@pytest.fixture
def scripted(driver: TestDriver):
    """The scripted plugin registered with the driver."""
    return driver.register_plugin(ScriptedPlugin, "")


@pytest.fixture
def countdown_events() -> list[bytes]:
    """Three plugin events carrying the payloads "0", "1" and "2"."""
    return [
        plugin_event(CountdownPlugin.plugin_id, str(i).encode(), ts=100 + i, tid=1)
        for i in range(3)
    ]


@pytest.fixture
def three_event_capture(ptd_capture, countdown_events):
    """Capture file holding the three countdown events."""
    return ptd_capture(countdown_events)


@pytest.fixture
def mixed_capture(ptd_capture):
    """Capture with a non-plugin event followed by a countdown event."""
    return ptd_capture([
        encode_event(1, [b"hello"], ts=5, tid=42),
        plugin_event(CountdownPlugin.plugin_id, b"1 events remaining"),
    ])
