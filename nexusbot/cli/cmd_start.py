"""Start command."""

import logging

import click

from . import cli
from .shared import console


@cli.command()
@click.option("--host", default=None, help="Bind host (default: NEXUS_HOST)")
@click.option("--port", type=int, default=None, help="Bind port (default: NEXUS_PORT)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def start(host, port, debug):
    """Start the WhatsApp session and dashboard API."""
    from nexusbot.main import main

    console.print("[bold blue]Starting nexusbot...[/bold blue]")
    if debug:
        logging.getLogger("nexusbot").setLevel(logging.DEBUG)
    main(host=host, port=port)
