# src/plugin_test_driver/errors.py
# Exception hierarchy raised by the test driver and its engine.

"""
All driver errors derive from DriverError so tests can catch them broadly.

- EngineError: the inspection engine could not be created (fatal)
- InitializationError: a plugin descriptor was rejected or refused its config
- OpenError / CaptureFileError: an event source could not be opened
- CaptureStateError: an operation was called in the wrong capture state
- ExtractionError and subclasses: per-event field extraction failures
"""


class DriverError(RuntimeError):
    """Base class for every error raised by the test driver."""


class EngineError(DriverError):
    """The inspection engine could not be allocated."""


class InitializationError(DriverError):
    """A plugin descriptor failed validation or rejected its configuration."""

    def __init__(self, message: str, plugin: str | None = None) -> None:
        super().__init__(message)
        self.plugin = plugin


class OpenError(DriverError):
    """An event source could not be opened."""


class CaptureFileError(OpenError, OSError):
    """A capture file is unreadable or malformed."""


class CaptureStateError(DriverError):
    """The driver is not in the capture state the operation requires."""


class ExtractionError(DriverError):
    """A field could not be extracted from an event."""

    def __init__(self, message: str, field_name: str | None = None) -> None:
        super().__init__(message)
        self.field_name = field_name


class InvalidFieldError(ExtractionError):
    """No registered extractor understands the field name."""


class NullEventError(ExtractionError):
    """The event handle does not reference an event."""


class StaleEventError(NullEventError):
    """The event handle was invalidated by a later call to next()."""


class NullValueError(ExtractionError):
    """The field is valid but has no value for this event."""


class EventFormatError(ValueError):
    """A raw event buffer does not follow the event layout."""
