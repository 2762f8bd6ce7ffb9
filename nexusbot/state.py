"""Process-wide runtime state shared by the session manager and the HTTP API.

One ``RuntimeState`` exists per running service. It is created at startup
and injected into every component that needs it; all reads and writes go
through the accessor methods below so call sites never poke at fields
directly.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

logger = logging.getLogger("nexusbot.state")


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class BotConfig:
    ai_active: bool = True
    system_prompt: str = ""


@dataclass
class Stats:
    """Running totals since process start (no daily reset)."""
    messages_today: int = 0
    ai_responses: int = 0


@dataclass
class RuntimeState:
    """Connection status, QR payload, assistant config and counters."""

    _status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    _qr: Optional[str] = None
    _config: BotConfig = field(default_factory=BotConfig)
    _stats: Stats = field(default_factory=Stats)

    @classmethod
    def from_settings(cls, settings) -> "RuntimeState":
        return cls(_config=BotConfig(
            ai_active=settings.ai_active,
            system_prompt=settings.system_prompt,
        ))

    # ── Connection ──────────────────────────────────────────

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def qr(self) -> Optional[str]:
        return self._qr

    def set_status(self, status: ConnectionStatus, qr: Optional[str] = None):
        """Set the connection status; the QR payload is replaced (cleared by default)."""
        if status != self._status:
            logger.info(f"Connection status: {self._status.value} → {status.value}")
        self._status = status
        self._qr = qr

    def show_qr(self, qr: str):
        """A fresh pairing code supersedes any previous one."""
        self.set_status(ConnectionStatus.DISCONNECTED, qr)

    # ── Config ──────────────────────────────────────────────

    @property
    def config(self) -> BotConfig:
        # Frozen, so callers always see a consistent pair of values
        return self._config

    def patch_config(self, **fields) -> BotConfig:
        """Shallow-merge the given fields into the config.

        Raises:
            TypeError: on a field BotConfig does not have (nothing is applied)
        """
        self._config = replace(self._config, **fields)
        return self._config

    # ── Stats ───────────────────────────────────────────────

    @property
    def stats(self) -> Stats:
        return self._stats

    def record_message(self):
        self._stats.messages_today += 1

    def record_ai_response(self):
        self._stats.ai_responses += 1

    # ── Snapshots (wire format of the HTTP API) ─────────────

    def snapshot(self) -> dict:
        return {
            "qr": self._qr,
            "connectionStatus": self._status.value,
            "stats": {
                "messagesToday": self._stats.messages_today,
                "aiResponses": self._stats.ai_responses,
            },
        }

    def config_snapshot(self) -> dict:
        return {
            "isAiActive": self._config.ai_active,
            "systemPrompt": self._config.system_prompt,
        }
