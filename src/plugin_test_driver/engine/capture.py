# src/plugin_test_driver/engine/capture.py
# Capture file reading and writing.

"""
A capture file is the 8-byte magic `PTDCAP01` followed by raw event records
back to back. Each record is self-delimiting through the `len` field of its
header, so the reader streams events one at a time.
"""

from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union

from plugin_test_driver.engine.events import HEADER, HEADER_LEN, RawEvent
from plugin_test_driver.errors import CaptureFileError, EventFormatError

CAPTURE_MAGIC = b"PTDCAP01"

PathLike = Union[str, Path]


class CaptureReader:
    """Streams raw events out of a capture file."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)
        try:
            self._file: Optional[BinaryIO] = open(self.path, "rb")
        except OSError as e:
            raise CaptureFileError(f"cannot open capture file {self.path}: {e}") from e

        magic = self._file.read(len(CAPTURE_MAGIC))
        if magic != CAPTURE_MAGIC:
            self.close()
            raise CaptureFileError(f"{self.path} is not a capture file (bad magic {magic!r})")
        self.events_read = 0

    def next_event(self) -> Optional[bytes]:
        """Read the next raw event, or return None at end of file.

        Raises EventFormatError if the file ends in the middle of an event.
        """
        if self._file is None:
            return None
        header = self._file.read(HEADER_LEN)
        if not header:
            return None
        if len(header) < HEADER_LEN:
            raise EventFormatError(
                f"{self.path}: truncated header after {self.events_read} events"
            )
        total_len = HEADER.unpack(header)[2]
        if total_len < HEADER_LEN:
            raise EventFormatError(f"{self.path}: invalid event length {total_len}")
        body = self._file.read(total_len - HEADER_LEN)
        if len(body) < total_len - HEADER_LEN:
            raise EventFormatError(
                f"{self.path}: truncated event after {self.events_read} events"
            )
        self.events_read += 1
        return header + body

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "CaptureReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class CaptureWriter:
    """Writes raw events into a new capture file."""

    def __init__(self, path: PathLike, validate: bool = True) -> None:
        self.path = Path(path)
        self.validate = validate
        self.events_written = 0
        self._file: Optional[BinaryIO] = open(self.path, "wb")
        self._file.write(CAPTURE_MAGIC)

    def write(self, raw: bytes) -> None:
        if self._file is None:
            raise ValueError("capture writer is closed")
        if self.validate:
            RawEvent.from_bytes(raw)
        self._file.write(raw)
        self.events_written += 1

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "CaptureWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def write_capture(path: PathLike, events: Iterable[bytes]) -> Path:
    """Write `events` to a capture file at `path` and return the path."""
    with CaptureWriter(path) as writer:
        for raw in events:
            writer.write(raw)
    return writer.path


def read_capture(path: PathLike) -> list[bytes]:
    """Read every raw event of a capture file."""
    events = []
    with CaptureReader(path) as reader:
        raw = reader.next_event()
        while raw is not None:
            events.append(raw)
            raw = reader.next_event()
    return events
