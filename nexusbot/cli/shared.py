"""Shared utilities for nexusbot CLI commands."""

import os

import click
from rich.console import Console

console = Console()

DEFAULT_URL = "http://127.0.0.1:3000"


def url_option(f):
    """--url option, defaulting to $NEXUS_URL."""
    return click.option(
        "--url",
        default=lambda: os.environ.get("NEXUS_URL", DEFAULT_URL),
        show_default=DEFAULT_URL,
        help="nexusbot API base URL",
    )(f)


def make_client(url: str):
    from nexusbot.dashboard import DashboardClient
    return DashboardClient(url)
