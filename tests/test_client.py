import signal
import threading
import time

import pytest

from conftest import FakeConnector, write_config
from theia_client import cli
from theia_client.client import TheiaClient
from theia_client.lifecycle import ShutdownReason, run_in_daemon_thread


class FakeLoop:
    def __init__(self):
        self.handlers = {}

    def add_signal_handler(self, signum, callback, *args):
        self.handlers[signum] = (callback, args)


@pytest.mark.asyncio
async def test_unreachable_host_ends_with_graceful_shutdown(monkeypatch, settings):
    connector = FakeConnector()
    client = TheiaClient(settings, update_check=False, connect=connector)
    client.manager.backoff_unit = 0
    monkeypatch.setattr(client, "install_signal_handlers", lambda loop: None)

    reason = await client.run()

    assert reason is ShutdownReason.GRACEFUL
    assert len(connector.calls) == 4


@pytest.mark.asyncio
async def test_update_checker_stops_with_the_session(monkeypatch, settings):
    client = TheiaClient(settings, connect=FakeConnector())
    client.manager.backoff_unit = 0.02
    checks = []
    monkeypatch.setattr(client.version_checker, "check", lambda: checks.append(1))
    monkeypatch.setattr(client, "install_signal_handlers", lambda loop: None)

    assert await client.run() is ShutdownReason.GRACEFUL
    assert checks == [1]


def test_signals_map_to_shutdown_reasons(settings):
    client = TheiaClient(settings, update_check=False)
    loop = FakeLoop()

    client.install_signal_handlers(loop)

    assert loop.handlers[signal.SIGINT] == (client.manager.request_shutdown, (ShutdownReason.EMERGENCY, "interrupted"))
    assert loop.handlers[signal.SIGTERM] == (client.manager.request_shutdown, (ShutdownReason.GRACEFUL, "terminated"))
    assert loop.handlers[signal.SIGHUP] == (client.reload_settings, ())


def test_reload_settings_swaps_or_keeps_configuration(settings, config_file, config_data):
    client = TheiaClient(settings, update_check=False)
    settings.load()

    config_data["WebSocket"] = {"value": "ws://reloaded.test/ws"}
    write_config(config_file, config_data)
    client.reload_settings()
    assert settings.websocket_url == "ws://reloaded.test/ws"

    config_file.write_text("{broken", encoding='utf-8')
    client.reload_settings()
    assert settings.websocket_url == "ws://reloaded.test/ws"


def test_options_from_arguments(monkeypatch, tmp_path):
    monkeypatch.setenv("THEIA_DEBUG", "1")
    options = cli.ClientOptions()

    options.parse_args(["--config", str(tmp_path / "c.json"), "--no-update-check"])

    assert options.config_path == tmp_path / "c.json"
    assert options.update_check is False
    assert options.debug is True


def test_configuration_error_exits_before_connecting(monkeypatch, tmp_path):
    started = []
    monkeypatch.setattr(cli, "TheiaClient", lambda *a, **kw: started.append(1))

    with pytest.raises(SystemExit) as exc:
        cli.main(["--config", str(tmp_path / "absent.json")])

    assert exc.value.code == 1
    assert started == []


def test_main_exits_cleanly_after_shutdown(monkeypatch, config_file):
    class StubClient:
        def __init__(self, settings, update_check=True):
            self.settings = settings

        async def run(self):
            return ShutdownReason.GRACEFUL

    monkeypatch.setattr(cli, "TheiaClient", StubClient)

    with pytest.raises(SystemExit) as exc:
        cli.main(["--config", str(config_file), "--no-update-check"])

    assert exc.value.code == 0


def test_main_does_not_wait_for_abandoned_command(monkeypatch, config_file):
    release = threading.Event()

    class InterruptedClient:
        def __init__(self, settings, update_check=True):
            self.settings = settings

        async def run(self):
            run_in_daemon_thread(release.wait, 3)
            return ShutdownReason.EMERGENCY

    monkeypatch.setattr(cli, "TheiaClient", InterruptedClient)

    began = time.monotonic()
    try:
        with pytest.raises(SystemExit) as exc:
            cli.main(["--config", str(config_file), "--no-update-check"])
    finally:
        release.set()

    assert exc.value.code == 0
    assert time.monotonic() - began < 1.5
