# src/plugin_test_driver/models.py
# Core data models shared by the driver, the engine and plugins.

"""
Defines the data structures used throughout the library:
- EventStatus / EventHandle: the result of advancing an event source
- Capability: what a registered plugin can do
- FieldInfo: the field schema a plugin exchanges as JSON
- ExtractedField: a rendered value plus the byte range it came from
- Metric / MetricRecord: plugin-reported counters and their u64 snapshot form
"""

from dataclasses import dataclass
from enum import Enum, Flag, IntEnum, auto
from typing import TYPE_CHECKING, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from plugin_test_driver.engine.events import Event

U64_MAX = 2**64 - 1


class EventStatus(IntEnum):
    """Status of one step of an event source (values follow scap return codes)."""

    OK = 0
    ERROR = 1
    TIMEOUT = -1
    EOF = 6

    @property
    def is_terminal(self) -> bool:
        return self in (EventStatus.EOF, EventStatus.ERROR)


class CaptureState(str, Enum):
    """Capture state of an inspector."""

    IDLE = "idle"
    CAPTURING = "capturing"
    CLOSED = "closed"


class Capability(Flag):
    """Capabilities a plugin can declare."""

    NONE = 0
    SOURCING = auto()
    EXTRACTION = auto()
    PARSING = auto()


class FieldType(str, Enum):
    """Value types a plugin field can produce."""

    STRING = "string"
    UINT64 = "uint64"
    BOOL = "bool"
    RELTIME = "reltime"
    ABSTIME = "abstime"
    IPADDR = "ipaddr"
    IPNET = "ipnet"


class FieldArg(BaseModel):
    """Argument rules for a field, e.g. `proc.aname[2]` or `map.value[key]`."""

    model_config = ConfigDict(populate_by_name=True)

    is_required: bool = Field(default=False, alias="isRequired")
    is_index: bool = Field(default=False, alias="isIndex")
    is_key: bool = Field(default=False, alias="isKey")


class FieldInfo(BaseModel):
    """Schema of one extractable field."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, description="Full field name, e.g. 'evt.num'")
    type: FieldType = Field(default=FieldType.STRING)
    is_list: bool = Field(default=False, alias="isList")
    arg: Optional[FieldArg] = Field(default=None)
    display: Optional[str] = Field(default=None)
    desc: str = Field(default="")


class ExtractedField(NamedTuple):
    """A rendered field value and the byte range of the raw event it came from.

    `start` and `length` are both 0 when the extractor reported no offsets.
    """

    value: str
    start: int = 0
    length: int = 0

    @property
    def has_offsets(self) -> bool:
        return self.length > 0


@dataclass(frozen=True)
class EventHandle:
    """Borrowed reference to the event currently held by the engine.

    Valid only until the next call to `TestDriver.next()`.
    """

    status: EventStatus
    event: Optional["Event"] = None
    generation: int = 0

    @property
    def ok(self) -> bool:
        return self.status == EventStatus.OK and self.event is not None

    @property
    def raw(self) -> bytes:
        return self.event.raw if self.event is not None else b""


class MetricType(str, Enum):
    """Whether a metric only grows or can go up and down."""

    MONOTONIC = "monotonic"
    NON_MONOTONIC = "non_monotonic"


class Metric(BaseModel):
    """A metric as reported by a plugin."""

    name: str = Field(..., min_length=1)
    type: MetricType = Field(default=MetricType.MONOTONIC)
    value: Union[int, float] = Field(default=0)


class MetricRecord(BaseModel):
    """A point-in-time (name, value) pair returned by a metrics snapshot."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: int = Field(default=0, ge=0, le=U64_MAX)
