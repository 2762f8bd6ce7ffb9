"""Terminal dashboard — a client of the status/config API."""

import io
from typing import Optional

import httpx
import qrcode
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

_STATUS_STYLES = {
    "connected": "green",
    "connecting": "yellow",
    "disconnected": "red",
}


class DashboardClient:
    """Thin synchronous client for the nexusbot HTTP API."""

    def __init__(self, base_url: str = "http://127.0.0.1:3000", client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(base_url=self.base_url, timeout=10)

    def close(self):
        self._client.close()

    def _post(self, path: str, body: Optional[dict] = None) -> dict:
        resp = self._client.post(path, json=body)
        resp.raise_for_status()
        return resp.json()

    def status(self) -> dict:
        resp = self._client.get("/status")
        resp.raise_for_status()
        return resp.json()

    def get_config(self) -> dict:
        resp = self._client.get("/config")
        resp.raise_for_status()
        return resp.json()

    def update_config(self, ai_active: Optional[bool] = None, system_prompt: Optional[str] = None) -> dict:
        body = {}
        if ai_active is not None:
            body["isAiActive"] = ai_active
        if system_prompt is not None:
            body["systemPrompt"] = system_prompt
        return self._post("/config", body)

    def connect(self) -> dict:
        return self._post("/connect")

    def logout(self) -> dict:
        return self._post("/logout")


def qr_to_ascii(data: str) -> str:
    """Render a pairing code as terminal block characters."""
    qr = qrcode.QRCode(border=1)
    qr.add_data(data)
    qr.make(fit=True)
    out = io.StringIO()
    qr.print_ascii(out=out, invert=True)
    return out.getvalue()


def render_status(snapshot: dict):
    """Build a rich renderable for a /status snapshot."""
    status = snapshot.get("connectionStatus", "disconnected")
    stats = snapshot.get("stats") or {}

    table = Table(show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Connection", f"[{_STATUS_STYLES.get(status, 'white')}]{status}[/]")
    table.add_row("Messages", str(stats.get("messagesToday", 0)))
    table.add_row("AI responses", str(stats.get("aiResponses", 0)))

    parts = [table]
    qr = snapshot.get("qr")
    if qr:
        parts.append(Panel(
            Text(qr_to_ascii(qr), no_wrap=True),
            title="Scan with WhatsApp → Linked devices",
            expand=False,
        ))
    return Panel(Group(*parts), title="nexusbot", expand=False)
