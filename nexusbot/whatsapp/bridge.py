"""Bridge socket — talks to a protocol sidecar over JSON lines.

The sidecar (``NEXUS_BRIDGE_COMMAND``, e.g. a small Baileys script) owns
the WhatsApp protocol. This side owns credentials, so the sidecar is fed
the persisted creds on start and reports changes back as ``creds.update``.

Frames written to the sidecar's stdin:

    {"op": "init", "creds": {...}, "version": [2, 3000, 1023223821]}
    {"id": 7, "op": "send", "jid": "...", "content": {...}}
    {"id": 8, "op": "download", "message": {...}}
    {"id": 9, "op": "logout"}

Frames read from its stdout:

    {"events": {"connection.update": {...}, "messages.upsert": {...}}}
    {"id": 7, "ok": true, "result": null}
    {"id": 8, "ok": false, "error": "media expired"}
"""

import asyncio
import base64
import itertools
import json
import logging
import shlex
from typing import Optional

from .auth import MultiFileAuthState
from .messages import WAMessage
from .socket import CONNECTION_UPDATE, DisconnectReason, EventHandler, WASocket

logger = logging.getLogger("nexusbot.whatsapp.bridge")

# Media replies are base64 on a single line
_LINE_LIMIT = 64 * 1024 * 1024

_SEND_TIMEOUT = 60
_DOWNLOAD_TIMEOUT = 60
_LOGOUT_TIMEOUT = 15


class BridgeError(RuntimeError):
    """The sidecar rejected a request or went away before answering."""


class BridgeSocket(WASocket):
    """WASocket backed by a sidecar subprocess."""

    def __init__(self, command: str, auth_state: MultiFileAuthState, version: tuple[int, ...]):
        self.command = command
        self.auth_state = auth_state
        self.version = version
        self._process: Optional[asyncio.subprocess.Process] = None
        self._handler: Optional[EventHandler] = None
        self._events: asyncio.Queue = asyncio.Queue()
        self._pending: dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._write_lock = asyncio.Lock()
        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._dispatch_task: Optional[asyncio.Task] = None
        self._closing = False

    # ── Lifecycle ───────────────────────────────────────────

    async def start(self, handler: EventHandler) -> None:
        self._handler = handler
        argv = shlex.split(self.command)
        try:
            self._process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=_LINE_LIMIT,
            )
        except OSError as e:
            raise BridgeError(f"Failed to start bridge {argv[0]!r}: {e}") from e

        logger.info(f"Bridge started (pid={self._process.pid}, v{'.'.join(map(str, self.version))})")

        self._dispatch_task = asyncio.create_task(self._dispatch_loop())
        self._reader_task = asyncio.create_task(self._read_loop())
        self._stderr_task = asyncio.create_task(self._stderr_loop())

        await self._write({
            "op": "init",
            "creds": self.auth_state.creds,
            "version": list(self.version),
        })

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True

        current = asyncio.current_task()
        for task in (self._reader_task, self._stderr_task):
            if task and not task.done() and task is not current:
                task.cancel()

        if self._process and self._process.returncode is None:
            try:
                self._process.terminate()
                await asyncio.wait_for(self._process.wait(), timeout=5)
            except (asyncio.TimeoutError, ProcessLookupError):
                try:
                    self._process.kill()
                except ProcessLookupError:
                    pass

        self._fail_pending(BridgeError("bridge closed"))

        # Let the dispatcher finish the batch it is on (it may be the caller)
        self._events.put_nowait(None)
        if self._dispatch_task and self._dispatch_task is not current and not self._dispatch_task.done():
            self._dispatch_task.cancel()
        logger.info("Bridge stopped.")

    # ── Requests ────────────────────────────────────────────

    async def send_message(self, jid: str, content: dict) -> None:
        await self._request({"op": "send", "jid": jid, "content": content}, _SEND_TIMEOUT)

    async def download_media(self, message: WAMessage) -> bytes:
        result = await self._request({"op": "download", "message": message.raw}, _DOWNLOAD_TIMEOUT)
        if not isinstance(result, str):
            raise BridgeError("download returned no data")
        return base64.b64decode(result)

    async def logout(self) -> None:
        await self._request({"op": "logout"}, _LOGOUT_TIMEOUT)

    async def _request(self, frame: dict, timeout: float):
        if self._closing or not self._process:
            raise BridgeError("bridge is not running")

        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._write({"id": request_id, **frame})
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise BridgeError(f"{frame['op']} timed out after {timeout}s")
        finally:
            self._pending.pop(request_id, None)

    async def _write(self, frame: dict):
        line = json.dumps(frame, separators=(",", ":")) + "\n"
        async with self._write_lock:
            try:
                self._process.stdin.write(line.encode("utf-8"))
                await self._process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as e:
                raise BridgeError(f"bridge stdin closed: {e}") from e

    def _fail_pending(self, error: Exception):
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()

    # ── Reader / dispatcher ─────────────────────────────────

    def _handle_line(self, line: bytes):
        """Route one stdout frame: replies resolve futures, batches are queued."""
        try:
            frame = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Bridge: ignoring non-JSON line: {line[:120]!r}")
            return
        if not isinstance(frame, dict):
            return

        if "events" in frame:
            if isinstance(frame["events"], dict):
                self._events.put_nowait(frame["events"])
            return

        future = self._pending.get(frame.get("id"))
        if future is None or future.done():
            return
        if frame.get("ok"):
            future.set_result(frame.get("result"))
        else:
            future.set_exception(BridgeError(frame.get("error") or "request failed"))

    async def _read_loop(self):
        """Read sidecar stdout until EOF."""
        try:
            while True:
                line = await self._process.stdout.readline()
                if not line:
                    break
                self._handle_line(line)
        except asyncio.CancelledError:
            return
        except Exception as e:
            logger.error(f"Bridge reader failed: {e}", exc_info=True)

        if not self._closing:
            code = self._process.returncode
            logger.warning(f"Bridge process ended unexpectedly (rc={code})")
            self._fail_pending(BridgeError("bridge process exited"))
            self._events.put_nowait({
                CONNECTION_UPDATE: {
                    "connection": "close",
                    "lastDisconnect": {"error": {
                        "message": "bridge process exited",
                        "statusCode": DisconnectReason.connection_lost,
                    }},
                },
            })

    async def _stderr_loop(self):
        try:
            while True:
                line = await self._process.stderr.readline()
                if not line:
                    break
                logger.debug(f"[bridge] {line.decode('utf-8', errors='replace').rstrip()}")
        except asyncio.CancelledError:
            pass

    async def _dispatch_loop(self):
        """Hand batches to the handler one at a time, in arrival order."""
        while True:
            batch = await self._events.get()
            if batch is None:
                break
            try:
                await self._handler(batch)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error handling bridge events: {e}", exc_info=True)
