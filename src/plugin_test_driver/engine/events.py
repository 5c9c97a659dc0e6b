# src/plugin_test_driver/engine/events.py
# Raw event layout: encoding, decoding and parameter offsets.

"""
Every event is a little-endian binary record:

    ts:u64  tid:i64  len:u32  type:u16  nparams:u32     (26-byte header)
    nparams x u32 parameter lengths
    parameter payloads, back to back

`len` is the total size of the record including the header. Decoding keeps
the absolute offset of each parameter so extractors can report which bytes
of the record a value came from.
"""

import struct
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

from plugin_test_driver.errors import EventFormatError

if TYPE_CHECKING:
    from plugin_test_driver.plugins.handle import PluginHandle

HEADER = struct.Struct("<QqIHI")
HEADER_LEN = HEADER.size
PARAM_LEN = struct.Struct("<I")
U32 = struct.Struct("<I")

# Header field offsets, used for offset reporting of generic fields
TS_OFFSET, TS_LEN = 0, 8
TID_OFFSET, TID_LEN = 8, 8
LEN_OFFSET, LEN_LEN = 16, 4
TYPE_OFFSET, TYPE_LEN = 20, 2

PLUGINEVENT_E = 322
ASYNCEVENT_E = 402


class ParamKind:
    U32 = "u32"
    CHARBUF = "charbuf"
    BYTEBUF = "bytebuf"


@dataclass(frozen=True)
class EventInfo:
    """Name and parameter layout of a known event type."""

    name: str
    params: tuple[tuple[str, str], ...]


EVENT_TABLE: dict[int, EventInfo] = {
    PLUGINEVENT_E: EventInfo(
        "pluginevent",
        (("plugin_id", ParamKind.U32), ("event_data", ParamKind.BYTEBUF)),
    ),
    ASYNCEVENT_E: EventInfo(
        "asyncevent",
        (
            ("plugin_id", ParamKind.U32),
            ("name", ParamKind.CHARBUF),
            ("data", ParamKind.BYTEBUF),
        ),
    ),
}


@dataclass(frozen=True)
class EventParam:
    """One decoded parameter and its location inside the raw record."""

    index: int
    name: str
    kind: str
    offset: int
    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def value(self) -> int | str:
        """Decoded value: an int for u32 params, text otherwise."""
        if self.kind == ParamKind.U32:
            if len(self.data) != U32.size:
                raise EventFormatError(
                    f"param {self.name} has {len(self.data)} bytes, expected {U32.size}"
                )
            return U32.unpack(self.data)[0]
        if self.kind == ParamKind.CHARBUF:
            return self.data.rstrip(b"\0").decode("utf-8", errors="replace")
        return self.data.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class RawEvent:
    """Decoded view of a raw event record."""

    ts: int
    tid: int
    len: int
    type: int
    params: tuple[EventParam, ...]

    @classmethod
    def from_bytes(cls, buf: bytes) -> "RawEvent":
        if len(buf) < HEADER_LEN:
            raise EventFormatError(
                f"event is {len(buf)} bytes, shorter than the {HEADER_LEN}-byte header"
            )
        ts, tid, total_len, event_type, nparams = HEADER.unpack_from(buf, 0)
        if total_len != len(buf):
            raise EventFormatError(
                f"event header says {total_len} bytes but buffer has {len(buf)}"
            )

        lengths_end = HEADER_LEN + nparams * PARAM_LEN.size
        if lengths_end > total_len:
            raise EventFormatError(f"truncated parameter lengths ({nparams} params)")

        info = EVENT_TABLE.get(event_type)
        params = []
        offset = lengths_end
        for i in range(nparams):
            (plen,) = PARAM_LEN.unpack_from(buf, HEADER_LEN + i * PARAM_LEN.size)
            if offset + plen > total_len:
                raise EventFormatError(f"param {i} overruns the event buffer")
            if info is not None and i < len(info.params):
                name, kind = info.params[i]
            else:
                name, kind = f"arg{i}", ParamKind.BYTEBUF
            params.append(EventParam(i, name, kind, offset, bytes(buf[offset:offset + plen])))
            offset += plen

        if offset != total_len:
            raise EventFormatError(f"{total_len - offset} trailing bytes after parameters")

        return cls(ts=ts, tid=tid, len=total_len, type=event_type, params=tuple(params))

    @property
    def name(self) -> str:
        info = EVENT_TABLE.get(self.type)
        return info.name if info else "unknown"

    @property
    def is_plugin_event(self) -> bool:
        return self.type in (PLUGINEVENT_E, ASYNCEVENT_E)

    def param(self, name: str) -> Optional[EventParam]:
        for p in self.params:
            if p.name == name:
                return p
        return None

    @property
    def plugin_id(self) -> Optional[int]:
        p = self.param("plugin_id")
        return p.value if p is not None and self.is_plugin_event else None  # type: ignore[return-value]

    @property
    def event_data(self) -> Optional[EventParam]:
        """The payload param of a plugin event."""
        if self.type == PLUGINEVENT_E:
            return self.param("event_data")
        if self.type == ASYNCEVENT_E:
            return self.param("data")
        return None


def encode_event(
    event_type: int,
    params: Sequence[bytes],
    ts: int = 0,
    tid: int = -1,
) -> bytes:
    """Encode a raw event record."""
    total = HEADER_LEN + len(params) * PARAM_LEN.size + sum(len(p) for p in params)
    out = bytearray(HEADER.pack(ts, tid, total, event_type, len(params)))
    for p in params:
        out += PARAM_LEN.pack(len(p))
    for p in params:
        out += p
    return bytes(out)


def plugin_event(plugin_id: int, data: bytes, ts: int = 0, tid: int = -1) -> bytes:
    """Encode a PLUGINEVENT_E record carrying `data`."""
    return encode_event(PLUGINEVENT_E, [U32.pack(plugin_id), data], ts=ts, tid=tid)


def async_event(
    plugin_id: int, name: str, data: bytes, ts: int = 0, tid: int = -1
) -> bytes:
    """Encode an ASYNCEVENT_E record."""
    return encode_event(
        ASYNCEVENT_E,
        [U32.pack(plugin_id), name.encode() + b"\0", data],
        ts=ts,
        tid=tid,
    )


@dataclass
class Event:
    """An event delivered by the engine, with the metadata it attached."""

    raw: bytes
    num: int
    source: Optional[str] = None
    source_plugin: Optional["PluginHandle"] = field(default=None, repr=False)
    decoded: Optional[RawEvent] = field(default=None, repr=False, compare=False)

    @property
    def info(self) -> RawEvent:
        """Decoded header and params, decoded on first use unless given."""
        if self.decoded is None:
            self.decoded = RawEvent.from_bytes(self.raw)
        return self.decoded

    @property
    def payload(self) -> Optional[bytes]:
        """Plugin event data, or None for non-plugin events."""
        p = self.info.event_data
        return p.data if p is not None else None

    @property
    def payload_offset(self) -> Optional[int]:
        p = self.info.event_data
        return p.offset if p is not None else None
