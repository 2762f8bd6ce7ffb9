"""Messaging socket interface.

The WhatsApp protocol itself (handshake, encryption, signal keys) lives
behind ``WASocket``. A socket delivers *event batches*: dicts keyed by
event name, in the order the transport produced them.

    {"connection.update": {"connection": "close",
                           "lastDisconnect": {"error": {"statusCode": 401}}},
     "creds.update": {...},
     "messages.upsert": {"type": "notify", "messages": [...]}}
"""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

import httpx

from .messages import WAMessage

logger = logging.getLogger("nexusbot.whatsapp.socket")

CONNECTION_UPDATE = "connection.update"
CREDS_UPDATE = "creds.update"
MESSAGES_UPSERT = "messages.upsert"

EventBatch = dict
EventHandler = Callable[[EventBatch], Awaitable[None]]

# Used when the version endpoint cannot be reached
DEFAULT_VERSION = (2, 3000, 1023223821)


class DisconnectReason:
    """Close codes reported in ``lastDisconnect``."""
    connection_closed = 428
    connection_lost = 408
    connection_replaced = 440
    timed_out = 408
    logged_out = 401
    bad_session = 500
    restart_required = 515
    multidevice_mismatch = 411
    forbidden = 403
    unavailable_service = 503


def status_code_of(last_disconnect: Optional[dict]) -> Optional[int]:
    """Extract the close code from a ``lastDisconnect`` payload.

    Accepts both ``{"error": {"statusCode": n}}`` and the Boom shape
    ``{"error": {"output": {"statusCode": n}}}``.
    """
    if not last_disconnect:
        return None
    error = last_disconnect.get("error") or {}
    if not isinstance(error, dict):
        return None
    code = error.get("statusCode")
    if code is None:
        code = (error.get("output") or {}).get("statusCode")
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


class WASocket(ABC):
    """A single live session with the messaging network."""

    @abstractmethod
    async def start(self, handler: EventHandler) -> None:
        """Open the session; ``handler`` is awaited once per event batch, in order."""
        ...

    @abstractmethod
    async def send_message(self, jid: str, content: dict) -> None:
        """Send ``{"text": ...}`` or ``{"image": {...}, "caption": ...}`` to a chat."""
        ...

    @abstractmethod
    async def download_media(self, message: WAMessage) -> bytes:
        """Download the media attached to ``message``. Raises on failure."""
        ...

    @abstractmethod
    async def logout(self) -> None:
        """Unlink this device from the account."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Tear the session down. Safe to call more than once."""
        ...


async def fetch_latest_version(url: str, timeout: float = 10) -> tuple[tuple[int, ...], bool]:
    """Fetch the current WhatsApp Web version.

    Returns:
        (version, is_latest) — the bundled default with is_latest=False
        when the endpoint is unreachable or malformed.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            version = tuple(int(p) for p in resp.json()["version"])
            if len(version) != 3:
                raise ValueError(f"unexpected version shape: {version}")
            return version, True
    except Exception as e:
        logger.warning(f"Version check failed, using bundled v{'.'.join(map(str, DEFAULT_VERSION))}: {e}")
        return DEFAULT_VERSION, False
