"""Status and live dashboard commands."""

import time

import click
import httpx

from . import cli
from .shared import console, make_client, url_option


@cli.command()
@url_option
def status(url):
    """Show connection status and stats."""
    from nexusbot.dashboard import render_status

    client = make_client(url)
    try:
        snapshot = client.status()
    except httpx.HTTPError as e:
        console.print(f"[red]Cannot reach nexusbot at {url}: {e}[/red]")
        raise SystemExit(1)
    finally:
        client.close()
    console.print(render_status(snapshot))


@cli.command()
@url_option
@click.option("--interval", default=2.0, show_default=True, help="Polling interval in seconds")
def dashboard(url, interval):
    """Live status view — re-polls until Ctrl+C."""
    from rich.live import Live
    from nexusbot.dashboard import render_status

    client = make_client(url)
    try:
        with Live(console=console, refresh_per_second=4) as live:
            while True:
                try:
                    live.update(render_status(client.status()))
                except httpx.HTTPError as e:
                    live.update(f"[red]Polling error: {e}[/red]")
                time.sleep(interval)
    except KeyboardInterrupt:
        pass
    finally:
        client.close()
