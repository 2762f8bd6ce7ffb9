"""WhatsApp session manager — connection lifecycle and inbound message handling.

Owns the single messaging socket. Connection events drive the shared
``RuntimeState`` (status + QR); live inbound messages are counted, turned
into AI replies by the ``ChatResponder`` and answered on the same chat.
"""

import asyncio
import base64
import functools
import logging
from typing import Awaitable, Callable, Optional

from ..responder import ChatResponder, ImageReply
from ..state import ConnectionStatus, RuntimeState
from .auth import MultiFileAuthState
from .bridge import BridgeSocket
from .messages import WAMessage, image_content, text_content
from .socket import (
    CONNECTION_UPDATE, CREDS_UPDATE, MESSAGES_UPSERT,
    DisconnectReason, WASocket, fetch_latest_version, status_code_of,
)

logger = logging.getLogger("nexusbot.session")

# Sent to the model when the user sends an image without a caption
FALLBACK_PROMPT = "Analyze this image"

SocketFactory = Callable[[MultiFileAuthState, tuple], WASocket]
VersionFetcher = Callable[[], Awaitable[tuple[tuple, bool]]]


class SessionManager:
    """Single WhatsApp session with bounded, backed-off reconnects."""

    def __init__(
        self,
        state: RuntimeState,
        responder: ChatResponder,
        settings,
        socket_factory: Optional[SocketFactory] = None,
        version_fetcher: Optional[VersionFetcher] = None,
        auth_state: Optional[MultiFileAuthState] = None,
    ):
        self.state = state
        self.responder = responder
        self.settings = settings
        self.auth = auth_state or MultiFileAuthState(settings.auth_dir)
        self._socket_factory = socket_factory or self._bridge_socket
        self._version_fetcher = version_fetcher or functools.partial(
            fetch_latest_version, settings.version_url,
        )
        self._socket: Optional[WASocket] = None
        self._start_lock = asyncio.Lock()
        self._reconnect_task: Optional[asyncio.Task] = None
        self._retries = 0
        self._stopped = False

    @property
    def socket(self) -> Optional[WASocket]:
        return self._socket

    @property
    def retries(self) -> int:
        return self._retries

    def _bridge_socket(self, auth: MultiFileAuthState, version: tuple) -> WASocket:
        return BridgeSocket(self.settings.bridge_command, auth, version)

    # ── Lifecycle ───────────────────────────────────────────

    async def ensure_started(self) -> WASocket:
        """Start the session unless one is already pending or open.

        Idempotent: concurrent callers get the same handle, never a second socket.
        """
        async with self._start_lock:
            if self._socket is not None:
                return self._socket

            self._stopped = False
            # In-memory creds are current once loaded; every update is persisted as it arrives
            if not self.auth.creds:
                self.auth.load()
            version, is_latest = await self._version_fetcher()
            logger.info(f"using WA v{'.'.join(map(str, version))}, isLatest: {is_latest}")

            sock = self._socket_factory(self.auth, version)
            self._socket = sock
            self.state.set_status(ConnectionStatus.CONNECTING)
            try:
                await sock.start(functools.partial(self._handle_events, sock))
            except Exception:
                self._socket = None
                self.state.set_status(ConnectionStatus.DISCONNECTED)
                await sock.close()
                raise
            return sock

    async def connect(self) -> WASocket:
        """Explicit (re)connect request, e.g. after a logout or exhausted retries."""
        self._cancel_reconnect()
        self._retries = 0
        return await self.ensure_started()

    async def logout(self):
        """Unlink the device, drop the session and forget its credentials."""
        self._cancel_reconnect()
        sock, self._socket = self._socket, None
        if sock is not None:
            try:
                await sock.logout()
            except Exception as e:
                logger.warning(f"Logout request failed: {e}")
            await sock.close()
        self.auth.clear()
        self.state.set_status(ConnectionStatus.DISCONNECTED)
        logger.info("Logged out.")

    async def stop(self):
        """Shut down without logging out (credentials are kept)."""
        self._stopped = True
        self._cancel_reconnect()
        sock, self._socket = self._socket, None
        if sock is not None:
            await sock.close()
        self.state.set_status(ConnectionStatus.DISCONNECTED)

    # ── Reconnect policy ────────────────────────────────────

    def _cancel_reconnect(self):
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None

    def _next_delay(self) -> float:
        """Exponential backoff: base * 2^retries, capped."""
        return min(
            self.settings.reconnect_base_delay * (2 ** self._retries),
            self.settings.reconnect_max_delay,
        )

    def _schedule_reconnect(self, count: bool = True):
        """Schedule one reconnect attempt.

        Uncounted attempts (an unpaired device whose QR code expired) use the
        base delay and never exhaust the retry budget.
        """
        if self._stopped:
            return
        if self._reconnect_task and not self._reconnect_task.done():
            return
        if self._retries >= self.settings.reconnect_max_attempts:
            logger.error(
                f"Giving up after {self._retries} reconnect attempt(s). "
                "Use POST /connect (or `nexusbot connect`) to try again."
            )
            return

        if count:
            delay = self._next_delay()
            self._retries += 1
            logger.info(f"Reconnecting in {delay:.1f}s (attempt {self._retries}/{self.settings.reconnect_max_attempts})")
        else:
            delay = self.settings.reconnect_base_delay
            logger.info(f"Device not paired yet, requesting a new QR code in {delay:.1f}s")
        self._reconnect_task = asyncio.create_task(self._reconnect(delay))

    async def _reconnect(self, delay: float):
        await asyncio.sleep(delay)
        try:
            await self.ensure_started()
        except Exception as e:
            logger.error(f"Reconnect failed: {type(e).__name__}: {e}")
            self._reconnect_task = None
            self._schedule_reconnect()

    # ── Events ──────────────────────────────────────────────

    async def _handle_events(self, sock: WASocket, batch: dict):
        logged_out = False
        if CONNECTION_UPDATE in batch:
            logged_out = await self._on_connection_update(sock, batch[CONNECTION_UPDATE] or {})

        # A logout wiped the creds; do not write them back
        if CREDS_UPDATE in batch and not logged_out:
            try:
                await self.auth.save_creds(batch[CREDS_UPDATE])
            except Exception as e:
                logger.error(f"Failed to save credentials: {e}", exc_info=True)

        if MESSAGES_UPSERT in batch:
            await self._on_messages_upsert(sock, batch[MESSAGES_UPSERT] or {})

    async def _on_connection_update(self, sock: WASocket, update: dict) -> bool:
        """Apply a connection update. Returns True when the session was logged out."""
        if sock is not self._socket:
            logger.debug("Ignoring connection update from a replaced socket")
            return False

        qr = update.get("qr")
        if qr:
            self.state.show_qr(qr)

        connection = update.get("connection")
        if connection == "close":
            code = status_code_of(update.get("lastDisconnect"))
            should_reconnect = code != DisconnectReason.logged_out
            logger.info(f"Connection closed (code={code}), reconnecting: {should_reconnect}")

            self.state.set_status(ConnectionStatus.DISCONNECTED)
            self._socket = None
            await sock.close()

            if should_reconnect:
                self._schedule_reconnect(count=self.auth.is_registered)
            else:
                self.auth.clear()
                logger.warning("Session logged out, scan a new QR code to reconnect.")
                return True
        elif connection == "open":
            logger.info("Opened connection")
            self._retries = 0
            self.state.set_status(ConnectionStatus.CONNECTED)
        return False

    async def _on_messages_upsert(self, sock: WASocket, upsert: dict):
        # Only live messages; history sync arrives as "append"
        if upsert.get("type") != "notify":
            return

        for raw in upsert.get("messages") or []:
            msg = WAMessage.from_dict(raw)
            try:
                await self._handle_message(sock, msg)
            except Exception as e:
                logger.error(f"Error handling message {msg.message_id}: {e}", exc_info=True)

    async def _handle_message(self, sock: WASocket, msg: WAMessage):
        ai_active = self.state.config.ai_active
        logger.info(f"Msg received. FromMe: {msg.from_me}, AI active: {ai_active}")

        # Every live message counts, including our own echoes
        self.state.record_message()

        if msg.from_me or not ai_active:
            return

        text = msg.text
        image_base64 = None
        if msg.has_image:
            try:
                data = await sock.download_media(msg)
                image_base64 = base64.b64encode(data).decode("ascii")
            except Exception as e:
                logger.error(f"Failed to download media: {e}")

        if not text and not image_base64:
            return

        chat_id = msg.chat_id
        if not chat_id:
            logger.warning(f"Message {msg.message_id} has no chat id, not replying")
            return

        logger.info(f"Processing message: {text!r}")
        reply = await self.responder.generate(
            text or FALLBACK_PROMPT,
            self.state.config.system_prompt,
            image_base64,
        )
        if reply is None:
            return

        self.state.record_ai_response()

        if isinstance(reply, ImageReply):
            content = image_content(reply.location, reply.caption)
        else:
            content = text_content(reply.content)
        try:
            await sock.send_message(chat_id, content)
        except Exception as e:
            logger.error(f"Failed to send reply to {chat_id}: {e}")
