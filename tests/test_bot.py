"""Tests for `sso_role_bot.bot.loop_submitter` against a loop running on a helper thread."""

import asyncio
import concurrent.futures
import threading
from types import SimpleNamespace

import pytest

from sso_role_bot.bot import loop_submitter


@pytest.fixture
def bot():
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield SimpleNamespace(loop=loop)
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()


def test_returns_coroutine_result_from_bot_loop(bot):
    async def where_am_i():
        return asyncio.get_running_loop()

    assert loop_submitter(bot)(where_am_i()) is bot.loop


def test_propagates_coroutine_errors(bot):
    async def fail():
        raise LookupError('no such guild')

    with pytest.raises(LookupError):
        loop_submitter(bot)(fail())


def test_timeout_cancels_the_coroutine(bot):
    cancelled = threading.Event()

    async def never_finishes():
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise

    with pytest.raises(concurrent.futures.TimeoutError):
        loop_submitter(bot, timeout=0.05)(never_finishes())

    assert cancelled.wait(timeout=5)
