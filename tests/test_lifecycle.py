import asyncio
import threading

import pytest

from theia_client.lifecycle import ShutdownReason, ShutdownToken, run_in_daemon_thread


@pytest.mark.asyncio
async def test_first_reason_wins():
    token = ShutdownToken()

    assert token.fire(ShutdownReason.EMERGENCY, "interrupted") is True
    assert token.fire(ShutdownReason.GRACEFUL, "terminated") is False

    assert token.is_set()
    assert token.reason is ShutdownReason.EMERGENCY
    assert token.detail == "interrupted"


@pytest.mark.asyncio
async def test_sleep_runs_to_completion_without_shutdown():
    token = ShutdownToken()

    assert await token.sleep(0.01) is False


@pytest.mark.asyncio
async def test_sleep_is_cut_short_by_shutdown():
    token = ShutdownToken()
    loop = asyncio.get_running_loop()
    loop.call_later(0.01, token.fire, ShutdownReason.GRACEFUL)

    assert await asyncio.wait_for(token.sleep(30), timeout=2) is True


@pytest.mark.asyncio
async def test_daemon_thread_result_and_error_reach_the_loop():
    def who():
        thread = threading.current_thread()
        return thread.name, thread.daemon

    def fail():
        raise ValueError("bad")

    assert await run_in_daemon_thread(who, name="worker") == ("worker", True)
    with pytest.raises(ValueError):
        await run_in_daemon_thread(fail)


@pytest.mark.asyncio
async def test_abandoned_daemon_thread_does_not_block_the_caller():
    release = threading.Event()
    future = run_in_daemon_thread(release.wait, 3)
    try:
        done, _ = await asyncio.wait({future}, timeout=0.05)
        assert done == set()
    finally:
        release.set()
    assert await asyncio.wait_for(future, timeout=2) is True
