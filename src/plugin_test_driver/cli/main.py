# src/plugin_test_driver/cli/main.py
# Main CLI entrypoint for the plugin test driver.
"""
Main Typer application with all sub-commands.

Usage:
    ptd init                                     # Initialize local config
    ptd dump CAPTURE -f evt.num -f evt.type      # Fields from a capture file
    ptd run PLUGIN -f FIELD [--metrics]          # Fields from a live source
    ptd fields [PLUGIN]                          # List extractable fields
"""

import typer
from rich.console import Console

from plugin_test_driver import __version__
from plugin_test_driver.cli.commands import dump, fields, init, run

app = typer.Typer(
    name="ptd",
    help="Plugin test driver: run plugins against the inspection engine and extract fields",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

app.command("init")(init.init_command)
app.command("dump")(dump.dump_command)
app.command("run")(run.run_command)
app.command("fields")(fields.fields_command)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit"),
) -> None:
    """Plugin test driver CLI."""
    if version:
        console.print(f"[bold]ptd[/bold] version {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


if __name__ == "__main__":
    app()
