"""
Cooperative shutdown signalling.

Signal handlers and the reconnection policy never interrupt running code;
they fire a ShutdownToken that every loop waits on alongside its own work.
"""

import asyncio
import threading
from enum import Enum
from typing import Optional


class ShutdownReason(Enum):
    EMERGENCY = "emergency"  # SIGINT: close the socket and leave
    GRACEFUL = "graceful"    # SIGTERM or exhausted reconnect budget


class ShutdownToken:
    """One-shot cancellation token. The first reason recorded wins."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[ShutdownReason] = None
        self.detail = ""

    def fire(self, reason: ShutdownReason, detail: str = "") -> bool:
        """Record `reason` and wake every waiter. Returns False if already fired."""
        if self._event.is_set():
            return False
        self.reason = reason
        self.detail = detail
        self._event.set()
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for `delay` seconds. Returns True if shutdown cut the sleep short."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
            return True
        except asyncio.TimeoutError:
            return False


def run_in_daemon_thread(func, *args, name: Optional[str] = None) -> asyncio.Future:
    """
    Run blocking ``func(*args)`` on a daemon thread and return a future for
    its result.

    Unlike ``asyncio.to_thread`` the worker is not owned by the loop's default
    executor, so neither ``asyncio.run`` nor interpreter exit waits for it.
    A shutdown can therefore leave a slow HTTP call behind.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def settle(result, error):
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def target():
        result = error = None
        try:
            result = func(*args)
        except Exception as e:
            error = e
        try:
            loop.call_soon_threadsafe(settle, result, error)
        except RuntimeError:
            pass  # loop already closed

    threading.Thread(target=target, name=name, daemon=True).start()
    return future
