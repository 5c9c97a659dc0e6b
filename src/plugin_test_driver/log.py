# src/plugin_test_driver/log.py
# Engine-wide logger that prints plugin and engine messages through rich.

"""
The inspection engine has a single, process-wide logger. Plugins and engine
components log through it; the driver sets its severity threshold from the
configuration when it is constructed.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape


class LogSeverity(IntEnum):
    """Message severities, most severe first."""

    FATAL = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7
    TRACE = 8


_STYLES = {
    LogSeverity.FATAL: "bold red",
    LogSeverity.CRITICAL: "bold red",
    LogSeverity.ERROR: "red",
    LogSeverity.WARNING: "yellow",
    LogSeverity.NOTICE: "cyan",
    LogSeverity.INFO: "blue",
    LogSeverity.DEBUG: "dim",
    LogSeverity.TRACE: "dim",
}


class EngineLogger:
    """Severity-filtered logger writing to stderr."""

    def __init__(
        self,
        severity: LogSeverity = LogSeverity.WARNING,
        console: Console | None = None,
    ) -> None:
        self.severity = severity
        self.console = console or Console(stderr=True)

    def set_severity(self, severity: LogSeverity) -> None:
        self.severity = LogSeverity(severity)

    def enabled(self, severity: LogSeverity) -> bool:
        return severity <= self.severity

    def log(
        self,
        message: str,
        severity: LogSeverity = LogSeverity.INFO,
        component: str | None = None,
    ) -> None:
        """Print a message if its severity passes the threshold."""
        if not self.enabled(severity):
            return
        style = _STYLES[LogSeverity(severity)]
        prefix = f"[{style}]<{LogSeverity(severity).name.lower()}>[/{style}]"
        if component:
            prefix += f" [bold]{escape(component)}:[/bold]"
        self.console.print(f"{prefix} {escape(message)}")

    def error(self, message: str, component: str | None = None) -> None:
        self.log(message, LogSeverity.ERROR, component)

    def warning(self, message: str, component: str | None = None) -> None:
        self.log(message, LogSeverity.WARNING, component)

    def debug(self, message: str, component: str | None = None) -> None:
        self.log(message, LogSeverity.DEBUG, component)


# Global logger instance
_engine_logger: EngineLogger | None = None


def get_logger() -> EngineLogger:
    """Get the process-wide engine logger, creating it if needed."""
    global _engine_logger
    if _engine_logger is None:
        _engine_logger = EngineLogger()
    return _engine_logger
