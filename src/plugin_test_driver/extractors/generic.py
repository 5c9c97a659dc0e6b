# src/plugin_test_driver/extractors/generic.py
# Engine-provided `evt.*` fields available for every event source.

"""
Generic fields describe the event record itself rather than its payload:

    evt.num           event number, starting at 1
    evt.ts / evt.tid  header timestamp and thread id
    evt.len           total record length
    evt.type          event type name (evt.type.num for the numeric id)
    evt.source        event source name
    evt.pluginname    name of the plugin that generated the event
    evt.plugininfo    summary rendered by the source plugin
    evt.rawarg.NAME   raw parameter by name
    evt.arg[N]        raw parameter by position
    evt.hostname      host name (platform metadata only)
    evt.platform      operating system (platform metadata only)

Header and parameter fields report their byte range inside the raw record.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional

from plugin_test_driver.engine import events as ev
from plugin_test_driver.engine.events import Event, EventParam
from plugin_test_driver.errors import InvalidFieldError
from plugin_test_driver.extractors.base import BaseExtractor, ExtractorFactory, Offset
from plugin_test_driver.models import FieldArg, FieldInfo, FieldType

if TYPE_CHECKING:
    from plugin_test_driver.engine.inspector import Inspector

# (value, offset) or None when the event has no value for the field
Getter = Callable[["Inspector", Event], Optional[tuple[Any, Optional[Offset]]]]


def _num(inspector: "Inspector", event: Event):
    return event.num, None


def _ts(inspector: "Inspector", event: Event):
    return event.info.ts, (ev.TS_OFFSET, ev.TS_LEN)


def _tid(inspector: "Inspector", event: Event):
    return event.info.tid, (ev.TID_OFFSET, ev.TID_LEN)


def _len(inspector: "Inspector", event: Event):
    return event.info.len, (ev.LEN_OFFSET, ev.LEN_LEN)


def _type(inspector: "Inspector", event: Event):
    return event.info.name, (ev.TYPE_OFFSET, ev.TYPE_LEN)


def _type_num(inspector: "Inspector", event: Event):
    return event.info.type, (ev.TYPE_OFFSET, ev.TYPE_LEN)


def _source(inspector: "Inspector", event: Event):
    if event.source is None:
        return None
    return event.source, None


def _pluginname(inspector: "Inspector", event: Event):
    if event.source_plugin is None:
        return None
    return event.source_plugin.name, None


def _plugininfo(inspector: "Inspector", event: Event):
    if event.source_plugin is None:
        return None
    text = event.source_plugin.instance.event_to_string(event)  # type: ignore[attr-defined]
    if text is None:
        return None
    return text, None


def _hostname(inspector: "Inspector", event: Event):
    if inspector.platform is None:
        return None
    return inspector.platform.hostname, None


def _platform(inspector: "Inspector", event: Event):
    if inspector.platform is None:
        return None
    return inspector.platform.os_name, None


def _param_value(param: Optional[EventParam]):
    if param is None:
        return None
    return param.value, (param.offset, param.length)


GENERIC_FIELDS: dict[str, tuple[FieldInfo, Getter]] = {
    "evt.num": (FieldInfo(name="evt.num", type=FieldType.UINT64, desc="Event number."), _num),
    "evt.ts": (
        FieldInfo(name="evt.ts", type=FieldType.ABSTIME, desc="Event timestamp in nanoseconds."),
        _ts,
    ),
    "evt.tid": (FieldInfo(name="evt.tid", type=FieldType.UINT64, desc="Thread id."), _tid),
    "evt.len": (FieldInfo(name="evt.len", type=FieldType.UINT64, desc="Event length in bytes."), _len),
    "evt.type": (FieldInfo(name="evt.type", desc="Event type name."), _type),
    "evt.type.num": (
        FieldInfo(name="evt.type.num", type=FieldType.UINT64, desc="Numeric event type."),
        _type_num,
    ),
    "evt.source": (FieldInfo(name="evt.source", desc="Name of the event source."), _source),
    "evt.pluginname": (
        FieldInfo(name="evt.pluginname", desc="Plugin that generated the event."),
        _pluginname,
    ),
    "evt.plugininfo": (
        FieldInfo(name="evt.plugininfo", desc="Event summary rendered by the source plugin."),
        _plugininfo,
    ),
    "evt.hostname": (FieldInfo(name="evt.hostname", desc="Host name."), _hostname),
    "evt.platform": (FieldInfo(name="evt.platform", desc="Host operating system."), _platform),
}

RAWARG_PREFIX = "evt.rawarg."
ARG_PREFIX = "evt.arg["


class GenericExtractor(BaseExtractor):
    """Extractor for one `evt.*` field."""

    def __init__(
        self,
        field_name: str,
        info: FieldInfo,
        inspector: "Inspector",
        getter: Getter,
    ) -> None:
        super().__init__(field_name, info)
        self.inspector = inspector
        self.getter = getter

    def extract(self, event: Event, want_offsets: bool = False) -> tuple[list[Any], list[Offset]]:
        result = self.getter(self.inspector, event)
        if result is None:
            return [], []
        value, offset = result
        offsets = [offset] if want_offsets and offset is not None else []
        return [value], offsets


class GenericExtractorFactory(ExtractorFactory):
    """Builds extractors for the engine's own `evt.*` fields."""

    def __init__(self, inspector: "Inspector") -> None:
        self.inspector = inspector

    @property
    def key(self) -> str:
        return "evt"

    def fields(self) -> list[FieldInfo]:
        infos = [info for info, _ in GENERIC_FIELDS.values()]
        infos.append(
            FieldInfo(name="evt.rawarg", arg=FieldArg(is_required=True, is_key=True),
                      desc="Raw event parameter, by name (evt.rawarg.NAME).")
        )
        infos.append(
            FieldInfo(name="evt.arg", arg=FieldArg(is_required=True, is_index=True),
                      desc="Raw event parameter, by position.")
        )
        return infos

    def new_extractor(self, field_name: str) -> Optional[BaseExtractor]:
        if field_name in GENERIC_FIELDS:
            info, getter = GENERIC_FIELDS[field_name]
            return GenericExtractor(field_name, info, self.inspector, getter)

        if field_name.startswith(RAWARG_PREFIX):
            name = field_name[len(RAWARG_PREFIX):]
            if not name:
                raise InvalidFieldError("evt.rawarg requires a parameter name", field_name)
            info = FieldInfo(name=field_name, desc=f"Raw parameter {name}.")
            return GenericExtractor(
                field_name, info, self.inspector,
                lambda inspector, event: _param_value(event.info.param(name)),
            )

        if field_name.startswith(ARG_PREFIX):
            if not field_name.endswith("]"):
                raise InvalidFieldError(f"unterminated argument in {field_name!r}", field_name)
            arg = field_name[len(ARG_PREFIX):-1]
            if not arg.isdigit():
                raise InvalidFieldError(f"evt.arg expects a numeric index, got {arg!r}", field_name)
            index = int(arg)
            info = FieldInfo(name=field_name, desc=f"Raw parameter #{index}.")

            def by_index(inspector: "Inspector", event: Event):
                params = event.info.params
                return _param_value(params[index] if index < len(params) else None)

            return GenericExtractor(field_name, info, self.inspector, by_index)

        return None
