# src/plugin_test_driver/cli/commands/common.py
# Helpers shared by the `ptd` commands.

from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from plugin_test_driver.core.config import DriverConfig, load_config
from plugin_test_driver.driver import TestDriver
from plugin_test_driver.errors import (
    DriverError,
    ExtractionError,
    InvalidFieldError,
    NullValueError,
)
from plugin_test_driver.models import EventHandle, MetricRecord
from plugin_test_driver.plugins.handle import SYSCALL_SOURCE, PluginHandle
from plugin_test_driver.plugins.loader import load_descriptor

console = Console()


def build_driver(
    plugin_paths: list[str],
    config_path: Optional[Path] = None,
    init_config: str = "",
) -> tuple[TestDriver, list[PluginHandle]]:
    """Create a driver from the config file and register extra plugins.

    `init_config` applies to every plugin given on the command line.
    """
    try:
        config = load_config(config_path) or DriverConfig()
    except (yaml.YAMLError, ValidationError) as e:
        console.print(f"[red]Error: invalid config file: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    try:
        driver = TestDriver.from_config(config)
    except DriverError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    handles = []
    try:
        for path in plugin_paths:
            handle = driver.register_plugin(load_descriptor(path), init_config)
            enable_extractors(driver, handle)
            handles.append(handle)
    except DriverError as e:
        driver.close()
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    return driver, handles


def enable_extractors(driver: TestDriver, handle: PluginHandle) -> None:
    """Enable a plugin's fields for every source it declares."""
    sources = handle.extract_event_sources or {handle.event_source or SYSCALL_SOURCE}
    for source in sorted(sources):
        driver.add_extractors(handle, source)


def render_cell(driver: TestDriver, field_name: str, evt: EventHandle, offsets: bool) -> str:
    """Extracted value for a table cell. Fields without a value show as <NA>."""
    try:
        if not offsets:
            return escape(driver.extract_field_as_string(field_name, evt))
        value, start, length = driver.extract_field_with_offsets(field_name, evt)
    except NullValueError:
        return "[dim]<NA>[/dim]"
    except InvalidFieldError:
        raise
    except ExtractionError as e:
        return f"[red]{escape(str(e))}[/red]"
    if length == 0:
        return escape(value)
    return f"{escape(value)} [dim]@{start}+{length}[/dim]"


def events_table(
    driver: TestDriver,
    fields: list[str],
    title: str,
    offsets: bool = False,
    limit: Optional[int] = None,
) -> Table:
    """Iterate the open source and tabulate the requested fields.

    Unknown field names raise InvalidFieldError on the first event.
    """
    table = Table(title=title)
    table.add_column("#", justify="right", style="cyan")
    for name in fields:
        table.add_column(name)

    count = 0
    for evt in driver.events():
        count += 1
        table.add_row(str(count), *[render_cell(driver, f, evt, offsets) for f in fields])
        if limit is not None and count >= limit:
            break
    return table


def metrics_table(metrics: list[MetricRecord]) -> Table:
    table = Table(title="Metrics")
    table.add_column("Name", style="cyan")
    table.add_column("Value", justify="right")
    for record in metrics:
        table.add_row(record.name, str(record.value))
    return table
