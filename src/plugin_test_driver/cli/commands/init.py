# src/plugin_test_driver/cli/commands/init.py
# Implementation of `ptd init` command.
"""
Creates a local configuration file (.ptd.yaml) holding the driver defaults,
ready to be edited.
"""

import platform
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from plugin_test_driver.core.config import CONFIG_FILENAME, DriverConfig, save_config

console = Console()


def init_command(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config"),
    path: Path = typer.Option(
        Path(CONFIG_FILENAME), "--path", "-p", help="Config file path"
    ),
    platform_metadata: bool = typer.Option(
        False, "--platform-metadata", help="Attach host metadata to live events"
    ),
) -> None:
    """Initialize driver configuration."""

    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    config = DriverConfig(platform_metadata=platform_metadata)
    save_config(config, path)

    console.print(Panel(
        f"[bold]Host:[/bold] {platform.node()} ({platform.system()} {platform.machine()})\n"
        f"[bold]Log severity:[/bold] {config.log_severity.name.lower()}\n"
        f"[bold]Max timeouts:[/bold] {config.max_timeouts}\n"
        f"[bold]Platform metadata:[/bold] {'✓' if config.platform_metadata else '✗'}",
        title="Driver Configuration",
    ))
    console.print(f"\n[green]✓ Created config at {path}[/green]")

    console.print("\n[bold]Next steps:[/bold]")
    console.print("  1. List plugins to register under [cyan]plugins:[/cyan]")
    console.print("  2. Run [cyan]ptd fields[/cyan] to see the fields they provide")
