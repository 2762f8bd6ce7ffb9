"""nexusbot CLI — command line interface."""

import click
from nexusbot import __version__
from .shared import console


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="nexusbot")
@click.pass_context
def cli(ctx):
    """nexusbot — WhatsApp AI assistant"""
    if ctx.invoked_subcommand is None:
        _show_help()


def _show_help():
    """Show all available commands grouped by category."""
    console.print(f"[bold]nexusbot v{__version__}[/bold] — WhatsApp AI assistant\n")

    groups = {
        "Service": [
            ("start", "Start the WhatsApp session and dashboard API"),
        ],
        "Dashboard": [
            ("status", "Show connection status and stats"),
            ("dashboard", "Live status view (QR code, stats)"),
            ("config", "Show or edit the assistant config"),
            ("connect", "Connect (or reconnect) the WhatsApp session"),
            ("logout", "Unlink this device from WhatsApp"),
        ],
    }

    for category, commands in groups.items():
        console.print(f"  [bold cyan]{category}[/bold cyan]")
        for name, desc in commands:
            console.print(f"    [bold]nexusbot {name:12s}[/bold] {desc}")
        console.print()

    console.print("[dim]Run 'nexusbot <command> --help' for details on a specific command.[/dim]")


# Import all command modules (registers commands onto cli group)
from . import cmd_start  # noqa: E402, F401
from . import cmd_status  # noqa: E402, F401
from . import cmd_config  # noqa: E402, F401


@cli.command(name="help", hidden=True)
def help_cmd():
    """Show all available commands."""
    _show_help()
