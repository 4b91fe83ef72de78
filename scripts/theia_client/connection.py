"""
WebSocket session management.

The ConnectionManager owns the single socket to the host application. It
opens the session, reads frames one at a time and hands them to the router,
and when the session drops it reconnects with exponential backoff
(2, 4, 8 ... time units) until the retry budget runs out, at which point it
shuts the client down gracefully.

A successful open resets the retry budget. Malformed frames and failing
commands are contained by the decoder and the router; only transport
failures drive reconnection.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from theia_client.auth import basic_auth_headers, insecure_ssl_context
from theia_client.colors import paint
from theia_client.constants import BACKOFF_BASE, LIVENESS_INTERVAL, MAX_RECONNECT_ATTEMPTS
from theia_client.decoder import decode
from theia_client.lifecycle import ShutdownReason, ShutdownToken, run_in_daemon_thread
from theia_client.logs import echo, log, log_debug, log_exception
from theia_client.router import CommandRouter
from theia_client.settings import Settings


class SessionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"
    RECONNECTING = "reconnecting"
    CLOSING = "closing"
    TERMINATED = "terminated"


def close_details(error: ConnectionClosed) -> tuple:
    """(code, reason) of the close frame received from the peer, 1006 if none."""
    rcvd = getattr(error, 'rcvd', None)
    if rcvd is not None:
        return rcvd.code, rcvd.reason
    return 1006, ""


class ConnectionManager:
    """Keeps one WebSocket session to the host alive until shutdown."""

    def __init__(self, settings: Settings, router: CommandRouter, token: ShutdownToken = None,
                 connect: Callable = websockets.connect,
                 max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
                 backoff_unit: float = 1.0, liveness_interval: float = LIVENESS_INTERVAL):
        self.settings = settings
        self.router = router
        self.token = token or ShutdownToken()
        self._connect = connect

        self.max_reconnect_attempts = max_reconnect_attempts
        self.backoff_unit = backoff_unit
        self.liveness_interval = liveness_interval

        self.state = SessionState.IDLE
        self.running = True
        self.shutting_down = False
        self.reconnect_attempts = 0
        self.websocket = None
        self._shutdown_task: Optional[asyncio.Task] = None

    @property
    def health(self):
        return self.router.health

    # ------------------------------------------------------------------
    # Session loop
    # ------------------------------------------------------------------

    async def run(self):
        """Connect, serve, and reconnect until the client shuts down."""
        while not self.shutting_down:
            await self.start()
            if self.shutting_down:
                break
            if not await self.reconnect():
                break

    def connect_options(self) -> dict:
        username, password = self.settings.credentials
        options = {
            'additional_headers': basic_auth_headers(username, password),
            'ping_interval': 30,
            'ping_timeout': 10,
            'close_timeout': 10,
        }
        if self.settings.websocket_url.startswith('wss://'):
            options['ssl'] = insecure_ssl_context()
        return options

    async def start(self):
        """Open the session and serve it until it closes or fails."""
        if self.shutting_down:
            return

        self.state = SessionState.CONNECTING
        url = self.settings.websocket_url
        log("Starting WebSocket connection...")
        log_debug(f"URL: {url}")

        try:
            websocket = await self._connect(url, **self.connect_options())
        except Exception as e:
            self.on_error(e)
            return

        if self.shutting_down:
            # Shutdown arrived while the handshake was in flight
            await self._close(websocket)
            return

        self.websocket = websocket
        try:
            self.on_open()
            await self.maintain()
        except ConnectionClosed as e:
            self.on_close(*close_details(e))
        except Exception as e:
            self.on_error(e)
        finally:
            # shutdown() takes the handle and closes it itself
            if self.websocket is websocket:
                self.websocket = None
                await self._close(websocket)

    async def maintain(self):
        """Read frames in arrival order, checking for shutdown every tick."""
        websocket = self.websocket
        while self.running:
            try:
                raw = await asyncio.wait_for(websocket.recv(), timeout=self.liveness_interval)
            except asyncio.TimeoutError:
                continue
            await self.on_message(raw)

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    def on_open(self):
        self.state = SessionState.OPEN
        self.reconnect_attempts = 0
        echo(paint("WebSocket connection established!", "green"))

    async def on_message(self, raw):
        event = decode(raw)
        if event is None:
            self.health.record_decode_error()
            return

        printer_message = event.get('printerMessage')
        if printer_message and str(printer_message).strip():
            echo(printer_message)

        # Routing blocks on HTTP delivery; run it off the loop but finish it
        # before the next frame is read, unless shutdown comes first.
        routed = run_in_daemon_thread(self.router.route, event, name="theia-route")
        stopped = asyncio.ensure_future(self.token.wait())
        try:
            await asyncio.wait({routed, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()
        if not routed.done():
            log_debug("Shutdown while a command was being routed; abandoning it")
        elif routed.exception() is not None:
            self.health.record_handler_error()
            log_exception("Routing failed", routed.exception())

    def on_close(self, code, reason):
        log(f"Connection closed (code {code}): {reason}")
        if not self.shutting_down:
            self.state = SessionState.CLOSED

    def on_error(self, error: BaseException):
        if self.shutting_down:
            log_debug(f"WebSocket error during shutdown: {error}")
            return
        self.state = SessionState.ERRORED
        log_exception("WebSocket error", error)

    # ------------------------------------------------------------------
    # Reconnection and shutdown
    # ------------------------------------------------------------------

    def backoff_delay(self, attempt: int) -> int:
        """Delay in time units before reconnection `attempt` (1-based)."""
        return BACKOFF_BASE ** attempt

    async def reconnect(self) -> bool:
        """Wait out the backoff for the next attempt. False once the client must stop."""
        if self.shutting_down:
            return False

        self.reconnect_attempts += 1
        if self.reconnect_attempts > self.max_reconnect_attempts:
            log("Maximum reconnection attempts reached", "FATAL")
            await self.shutdown(ShutdownReason.GRACEFUL, "reconnection attempts exhausted")
            return False

        self.state = SessionState.RECONNECTING
        delay = self.backoff_delay(self.reconnect_attempts)
        log(f"Attempt {self.reconnect_attempts}/{self.max_reconnect_attempts} in {delay}s...")
        interrupted = await self._wait(delay)
        return not interrupted and not self.shutting_down

    async def _wait(self, units: float) -> bool:
        """Sleep `units` time units. True if shutdown interrupted the wait."""
        return await self.token.sleep(units * self.backoff_unit)

    def request_shutdown(self, reason: ShutdownReason, detail: str = ""):
        """Schedule a shutdown from synchronous code such as a signal handler."""
        if self.shutting_down or self._shutdown_task is not None:
            return
        self._shutdown_task = asyncio.get_running_loop().create_task(self.shutdown(reason, detail))

    async def shutdown(self, reason: ShutdownReason, detail: str = ""):
        """Stop the session for good. Calling it again has no effect."""
        if self.shutting_down:
            return
        self.shutting_down = True
        self.running = False
        self.state = SessionState.CLOSING

        websocket, self.websocket = self.websocket, None
        if websocket is not None:
            await self._close(websocket)

        if reason is ShutdownReason.EMERGENCY:
            echo("\nEmergency shutdown initiated...")
        else:
            log(f"Graceful shutdown initiated ({detail or 'requested'})...")

        self.state = SessionState.TERMINATED
        self.token.fire(reason, detail)

    @staticmethod
    async def _close(websocket):
        try:
            await websocket.close()
        except Exception as e:
            log_debug(f"Error while closing WebSocket: {e}")
