# src/plugin_test_driver/cli/commands/fields.py
# Implementation of `ptd fields` command.

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from plugin_test_driver.cli.commands.common import build_driver, console


def fields_command(
    plugin: Optional[list[str]] = typer.Argument(
        None, help="Plugin descriptors whose fields to list, as module:attr"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
) -> None:
    """List the fields that can be extracted."""
    driver, _ = build_driver(list(plugin or []), config_path)
    with driver:
        fields = driver.list_fields()

    table = Table(title="Fields")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type", style="green")
    table.add_column("Arg")
    table.add_column("Description")

    for info in fields:
        arg = ""
        if info.arg is not None:
            arg = "index" if info.arg.is_index else "key"
            if info.arg.is_required:
                arg += " (required)"
        type_name = info.type.value + (" list" if info.is_list else "")
        table.add_row(info.name, type_name, arg, info.desc)

    console.print(table)
    console.print(f"\n[dim]Total: {len(fields)} fields[/dim]")
