"""
Process supervisor.

Wires settings, relay, router and connection manager together, maps process
signals to shutdown reasons, and runs the WebSocket session next to the
update checker until shutdown.
"""

import asyncio
import signal
from typing import Callable, Optional

from theia_client.connection import ConnectionManager
from theia_client.lifecycle import ShutdownReason, ShutdownToken
from theia_client.logs import log, log_debug
from theia_client.relay import MessageRelay
from theia_client.router import CommandRouter, SessionHealth
from theia_client.settings import ConfigError, Settings
from theia_client.updates import VersionChecker


class TheiaClient:
    """The running client: one session plus the update checker."""

    def __init__(self, settings: Settings, update_check: bool = True, connect: Optional[Callable] = None):
        self.settings = settings
        self.token = ShutdownToken()
        self.health = SessionHealth()
        self.relay = MessageRelay(settings)
        self.router = CommandRouter(settings, self.relay, health=self.health)

        manager_options = {'connect': connect} if connect is not None else {}
        self.manager = ConnectionManager(settings, self.router, self.token, **manager_options)
        self.version_checker = VersionChecker(settings) if update_check else None

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop):
        """SIGINT -> emergency shutdown, SIGTERM -> graceful, SIGHUP -> reload."""
        handlers = [
            (signal.SIGINT, self.manager.request_shutdown, (ShutdownReason.EMERGENCY, "interrupted")),
            (signal.SIGTERM, self.manager.request_shutdown, (ShutdownReason.GRACEFUL, "terminated")),
        ]
        if hasattr(signal, 'SIGHUP'):
            handlers.append((signal.SIGHUP, self.reload_settings, ()))

        for signum, callback, args in handlers:
            try:
                loop.add_signal_handler(signum, callback, *args)
            except (NotImplementedError, RuntimeError):
                # Event loops without signal support (Windows)
                signal.signal(signum, lambda *_, cb=callback, a=args: loop.call_soon_threadsafe(cb, *a))

    def reload_settings(self):
        try:
            self.settings.reload()
        except ConfigError as e:
            log(f"Configuration reload failed, keeping previous values: {e}", "ERROR")
            return
        log("Configuration reloaded")

    async def run(self) -> Optional[ShutdownReason]:
        """Run until shutdown; returns the reason the client stopped."""
        self.install_signal_handlers(asyncio.get_running_loop())

        connection_task = asyncio.create_task(self.manager.run())
        background = []
        if self.version_checker is not None:
            background.append(asyncio.create_task(self.version_checker.run(self.token)))

        try:
            await connection_task
        finally:
            if not self.token.is_set():
                await self.manager.shutdown(ShutdownReason.GRACEFUL, "connection loop ended")
            for task in background:
                task.cancel()
            await asyncio.gather(*background, return_exceptions=True)

        log_debug(f"Session health: {self.health}")
        return self.token.reason
