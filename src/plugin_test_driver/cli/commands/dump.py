# src/plugin_test_driver/cli/commands/dump.py
# Implementation of `ptd dump` command.
"""
Replays a capture file and prints the requested fields of every event.

Plugins whose events are in the capture must be registered (in the config
file or with --plugin) for their fields and `evt.pluginname` to resolve.
"""

from pathlib import Path
from typing import Optional

import typer

from plugin_test_driver.cli.commands.common import build_driver, console, events_table
from plugin_test_driver.errors import DriverError


def dump_command(
    capture: Path = typer.Argument(..., help="Capture file to replay"),
    field: list[str] = typer.Option(
        ..., "--field", "-f", help="Field to extract (repeatable)"
    ),
    plugin: Optional[list[str]] = typer.Option(
        None, "--plugin", "-p", help="Plugin descriptor to register, as module:attr"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    offsets: bool = typer.Option(
        False, "--offsets", help="Show the byte range of each value"
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", help="Stop after this many events"
    ),
) -> None:
    """Extract fields from the events of a capture file."""
    driver, _ = build_driver(list(plugin or []), config_path)
    with driver:
        try:
            driver.open_capture_file(capture)
        except DriverError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

        try:
            table = events_table(driver, list(field), title=str(capture), offsets=offsets, limit=limit)
        except DriverError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        console.print(table)
        if driver.last_error:
            console.print(f"[red]Capture ended with an error: {driver.last_error}[/red]")
            raise typer.Exit(1)
