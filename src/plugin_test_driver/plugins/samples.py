# src/plugin_test_driver/plugins/samples.py
# Sample plugins used by the CLI examples and the test-suite.

"""
Ready-made plugin descriptors:

- CountdownPlugin: live source emitting "N events remaining" events, with
  fields over the payload and batch/event counters as metrics
- StrictConfigPlugin: source that only accepts the config string "testing"
  and never produces an event
- ParseCounterPlugin: parse plugin counting the plugin events it sees
"""

from typing import Optional

from pydantic import BaseModel, Field

from plugin_test_driver.engine.events import Event
from plugin_test_driver.models import FieldArg, FieldType, Metric, MetricType
from plugin_test_driver.plugins.api import (
    EndOfStream,
    EventBatch,
    ExtractPlugin,
    ExtractRequest,
    ParsePlugin,
    SourceInstance,
    SourcePlugin,
    field,
)


class CountdownConfig(BaseModel):
    """Configuration of the countdown plugin."""

    remaining: int = Field(default=3, ge=0, description="Events to produce")
    batch_size: int = Field(default=1, ge=1, description="Events per batch")


class CountdownInstance(SourceInstance):
    def __init__(self, remaining: int, batch_size: int) -> None:
        self.remaining = remaining
        self.batch_size = batch_size

    def next_batch(self, plugin: "CountdownPlugin", batch: EventBatch) -> None:  # type: ignore[override]
        plugin.num_batches += 1
        if self.remaining == 0:
            raise EndOfStream("all events produced")
        for _ in range(min(self.remaining, self.batch_size)):
            self.remaining -= 1
            plugin.num_events += 1
            batch.add(plugin.plugin_event(f"{self.remaining} events remaining".encode()))


def _payload(req: ExtractRequest) -> bytes:
    payload = req.event.payload
    if payload is None:
        raise ValueError("no payload in event")
    return payload


class CountdownPlugin(SourcePlugin, ExtractPlugin):
    """Counts down from a configured number of events."""

    name = "countdown"
    version = "0.1.0"
    description = "emits a fixed number of countdown events"
    plugin_id = 999
    event_source = "countdown"
    config_model = CountdownConfig

    def __init__(self, config: CountdownConfig) -> None:
        super().__init__(config)
        self.num_batches = 0
        self.num_events = 0

    def open(self, params: Optional[str]) -> CountdownInstance:
        remaining = self.config.remaining
        if params:
            remaining = int(params)
        return CountdownInstance(remaining, self.config.batch_size)

    def event_to_string(self, event: Event) -> Optional[str]:
        payload = event.payload
        return payload.decode(errors="replace") if payload is not None else None

    def get_metrics(self) -> list[Metric]:
        return [
            Metric(name="next_batch_call_count", type=MetricType.MONOTONIC, value=self.num_batches),
            Metric(name="events_produced", type=MetricType.MONOTONIC, value=self.num_events),
        ]

    def extract_payload(self, req: ExtractRequest) -> str:
        """The raw event payload."""
        payload = _payload(req)
        if req.offset.requested:
            req.offset.set_in_plugin_data(0, len(payload))
        return payload.decode()

    def extract_remaining(self, req: ExtractRequest) -> int:
        """Number of events still to come."""
        return int(_payload(req).split()[0])

    def extract_payload_repeated(self, req: ExtractRequest) -> list[str]:
        """The payload, repeated as many times as the index argument."""
        return [_payload(req).decode()] * (req.arg_index or 0)

    def extract_remaining_with_override(self, req: ExtractRequest) -> int:
        """Events remaining, read from the key argument when one is given."""
        text = req.arg_key if req.arg_key is not None else _payload(req).decode()
        return int(text.split()[0])

    def extract_is_last(self, req: ExtractRequest) -> bool:
        """Whether this is the final event."""
        return self.extract_remaining(req) == 0

    extract_fields = [
        field("countdown.payload", extract_payload),
        field("countdown.remaining", extract_remaining, FieldType.UINT64),
        field(
            "countdown.payload_repeated",
            extract_payload_repeated,
            is_list=True,
            arg=FieldArg(is_required=True, is_index=True),
        ),
        field(
            "countdown.remaining_with_override",
            extract_remaining_with_override,
            FieldType.UINT64,
            arg=FieldArg(is_key=True),
        ),
        field("countdown.is_last", extract_is_last, FieldType.BOOL),
    ]


class StrictConfigPlugin(SourcePlugin):
    """Source plugin that only accepts "testing" as its configuration."""

    name = "strict"
    plugin_id = 1111
    event_source = "strict"

    def __init__(self, config: str) -> None:
        if config != "testing":
            raise ValueError('I only accept "testing" as the config string')
        super().__init__(config)

    def open(self, params: Optional[str]) -> SourceInstance:
        return _EmptyInstance()

    def event_to_string(self, event: Event) -> Optional[str]:
        return "what event?"


class _EmptyInstance(SourceInstance):
    def next_batch(self, plugin: SourcePlugin, batch: EventBatch) -> None:
        raise EndOfStream("this plugin does nothing")


class ParseCounterPlugin(ParsePlugin):
    """Counts the plugin events delivered by the engine."""

    name = "parse_counter"

    def __init__(self, config: str) -> None:
        super().__init__(config)
        self.parsed = 0

    def parse_event(self, event: Event) -> None:
        if event.payload is None:
            raise ValueError(f"event {event.num} is not a plugin event")
        self.parsed += 1

    def get_metrics(self) -> list[Metric]:
        return [Metric(name="parsed_events", value=self.parsed)]
