"""Directory-backed session credentials.

Credentials live in ``<auth_dir>/creds.json`` and are rewritten on every
``creds.update`` event. Writes go through a temp file + fsync + rename so
an update is durable once ``save_creds`` returns.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger("nexusbot.whatsapp.auth")

CREDS_FILE = "creds.json"


class MultiFileAuthState:
    """Session credentials persisted under a fixed directory."""

    def __init__(self, directory: str):
        self.directory = Path(directory).expanduser()
        self.creds: dict = {}

    @property
    def creds_path(self) -> Path:
        return self.directory / CREDS_FILE

    @property
    def is_registered(self) -> bool:
        """True once the device has been paired (a QR was scanned)."""
        return bool(self.creds.get("registered"))

    def load(self) -> dict:
        """Read persisted credentials, creating the directory on first use."""
        self.directory.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.creds_path, encoding="utf-8") as f:
                data = json.load(f)
            self.creds = data if isinstance(data, dict) else {}
        except FileNotFoundError:
            self.creds = {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable credentials in {self.creds_path}, starting fresh: {e}")
            self.creds = {}
        return self.creds

    def _write(self, creds: dict):
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=".creds-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(creds, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.creds_path)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
        os.chmod(self.creds_path, 0o600)

    async def save_creds(self, update: Optional[dict] = None):
        """Merge ``update`` into the credentials and persist them."""
        if update:
            self.creds.update(update)
        await asyncio.to_thread(self._write, dict(self.creds))
        logger.debug(f"Credentials saved ({len(self.creds)} field(s))")

    def clear(self):
        """Forget the paired device — the next connection asks for a new QR."""
        self.creds = {}
        if not self.directory.is_dir():
            return
        for path in self.directory.iterdir():
            if path.is_file():
                path.unlink()
        logger.info(f"Cleared credentials in {self.directory}")
