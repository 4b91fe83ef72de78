import asyncio
import json

import pytest
from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close

from theia_client.router import SessionHealth
from theia_client.settings import Settings


def write_config(path, data):
    path.write_text(json.dumps(data), encoding='utf-8')
    return path


@pytest.fixture
def config_data():
    return {
        "Auth": {"value": {"username": "theia", "password": "secret"}},
        "WebSocket": {"value": "ws://host.test/ws"},
        "PostRequest": {"value": "http://host.test/send"},
        "Cases": {"value": True},
    }


@pytest.fixture
def config_file(tmp_path, config_data):
    return write_config(tmp_path / "config.json", config_data)


@pytest.fixture
def settings(config_file):
    return Settings(config_file)


class RecordingRelay:
    """Stands in for MessageRelay and keeps every call."""

    def __init__(self, result=None):
        self.sent = []
        self.result = result or {"status": "success"}

    def send(self, chat_id, message, quoted=None, code=None):
        self.sent.append({"method": "send", "chat_id": chat_id, "message": message, "quoted": quoted})
        return self.result

    def send_raw(self, chat_id, message, quoted=None, code=None):
        self.sent.append({"method": "send_raw", "chat_id": chat_id, "message": message, "quoted": quoted})
        return self.result


class RecordingRouter:
    def __init__(self):
        self.events = []
        self.health = SessionHealth()

    def route(self, event):
        self.events.append(event)


class FakeWebSocket:
    """Serves queued frames, then closes (or stays open until closed)."""

    def __init__(self, frames=(), hold_open=False):
        self.frames = list(frames)
        self.hold_open = hold_open
        self.close_calls = 0
        self._closed = asyncio.Event()

    async def recv(self):
        if self.frames:
            return self.frames.pop(0)
        if self.hold_open:
            await self._closed.wait()
        raise ConnectionClosedOK(Close(1000, "bye"), Close(1000, "bye"))

    async def close(self):
        self.close_calls += 1
        self._closed.set()


class FakeConnector:
    """Replacement for websockets.connect returning queued outcomes."""

    def __init__(self, outcomes=()):
        self.outcomes = list(outcomes)
        self.calls = []

    async def __call__(self, url, **options):
        self.calls.append((url, options))
        outcome = self.outcomes.pop(0) if self.outcomes else OSError("connection refused")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def relay():
    return RecordingRelay()
