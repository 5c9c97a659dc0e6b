# src/plugin_test_driver/cli/commands/run.py
# Implementation of `ptd run` command.
"""
Opens a plugin's live event source and prints the requested fields of the
events it produces, optionally followed by a metrics snapshot.

Examples:
    ptd run plugin_test_driver.plugins.samples:CountdownPlugin -f countdown.payload
    ptd run mypkg:Source mypkg:Parser --source mysource -f evt.num --metrics
"""

from pathlib import Path
from typing import Optional

import typer

from plugin_test_driver.cli.commands.common import (
    build_driver,
    console,
    events_table,
    metrics_table,
)
from plugin_test_driver.errors import DriverError
from plugin_test_driver.models import Capability


def run_command(
    plugins: list[str] = typer.Argument(..., help="Plugin descriptors, as module:attr"),
    source: Optional[str] = typer.Option(
        None, "--source", "-s", help="Name of the plugin to open as event source"
    ),
    field: list[str] = typer.Option(
        ..., "--field", "-f", help="Field to extract (repeatable)"
    ),
    init_config: str = typer.Option(
        "", "--init-config", "-i", help="Init config passed to the plugins"
    ),
    open_params: str = typer.Option(
        "", "--open-params", "-o", help="Parameters for opening the source"
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
    metrics: bool = typer.Option(
        False, "--metrics", "-m", help="Print a metrics snapshot at the end"
    ),
    platform_metadata: bool = typer.Option(
        False, "--platform-metadata", help="Attach host metadata to events"
    ),
) -> None:
    """Extract fields from the events of a live plugin source."""
    driver, handles = build_driver(list(plugins), config_path, init_config)
    with driver:
        if source is None:
            sources = [h for h in handles if h.has_capability(Capability.SOURCING)]
            if not sources:
                console.print("[red]Error: none of the plugins provides an event source[/red]")
                raise typer.Exit(1)
            source = sources[0].name

        try:
            driver.open_plugin_source(source, open_params, platform_metadata or None)
        except DriverError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

        try:
            table = events_table(driver, list(field), title=source, offsets=offsets, limit=limit)
        except DriverError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        console.print(table)
        if metrics:
            console.print(metrics_table(driver.get_metrics()))
        if driver.last_error:
            console.print(f"[red]Source ended with an error: {driver.last_error}[/red]")
            raise typer.Exit(1)
