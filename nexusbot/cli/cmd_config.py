"""Config, connect and logout commands."""

import click
import httpx

from . import cli
from .shared import console, make_client, url_option


@cli.command()
@url_option
@click.option("--ai/--no-ai", "ai_active", default=None, help="Turn AI replies on or off")
@click.option("--prompt", default=None, help="New system prompt")
@click.option("--preset", default=None, help="Use a preset system prompt (sales, support, scheduler, custom)")
def config(url, ai_active, prompt, preset):
    """Show or edit the assistant config.

    Without options, prints the config the server is currently using.
    """
    from nexusbot.presets import DEFAULT_PRESET, PRESETS

    if prompt is not None and preset is not None:
        raise click.UsageError("--prompt and --preset are mutually exclusive")
    if preset is not None:
        if preset not in PRESETS:
            raise click.BadParameter(
                f"unknown preset {preset!r} (choose from {', '.join(PRESETS)})",
                param_hint="--preset",
            )
        prompt = PRESETS[preset]

    client = make_client(url)
    try:
        if ai_active is None and prompt is None:
            current = client.get_config()
            state = "[green]on[/green]" if current.get("isAiActive") else "[red]off[/red]"
            console.print(f"[bold]AI replies:[/bold] {state}")
            console.print("[bold]System prompt:[/bold]")
            console.print(
                current.get("systemPrompt")
                or f"[dim](empty, try --preset {DEFAULT_PRESET})[/dim]"
            )
            return

        client.update_config(ai_active=ai_active, system_prompt=prompt)
        console.print("[green]✓ Config updated[/green]")
    except httpx.HTTPError as e:
        console.print(f"[red]Config request failed: {e}[/red]")
        raise SystemExit(1)
    finally:
        client.close()


@cli.command()
@url_option
def connect(url):
    """Connect (or reconnect) the WhatsApp session."""
    client = make_client(url)
    try:
        result = client.connect()
    except httpx.HTTPError as e:
        console.print(f"[red]Connect failed: {e}[/red]")
        raise SystemExit(1)
    finally:
        client.close()
    console.print(f"[green]✓ Session {result.get('connectionStatus', 'starting')}[/green]")
    console.print("[dim]Run 'nexusbot dashboard' to scan the QR code if one is shown.[/dim]")


@cli.command()
@url_option
@click.confirmation_option(prompt="Unlink this device from WhatsApp?")
def logout(url):
    """Unlink this device from WhatsApp (a new QR scan will be needed)."""
    client = make_client(url)
    try:
        client.logout()
    except httpx.HTTPError as e:
        console.print(f"[red]Logout failed: {e}[/red]")
        raise SystemExit(1)
    finally:
        client.close()
    console.print("[green]✓ Logged out[/green]")
