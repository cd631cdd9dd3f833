"""
Tests for SignalWatcher.
"""
import asyncio
import os
import signal

import pytest

from clusterplay.core.signals import SignalWatcher, TERMINATION_SIGNALS


def test_watches_the_four_termination_signals():
    assert set(TERMINATION_SIGNALS) == {
        signal.SIGHUP, signal.SIGINT, signal.SIGTERM, signal.SIGQUIT
    }


@pytest.mark.asyncio
async def test_callback_runs_once_with_first_signal():
    received = []

    async def callback(signum):
        received.append(signum)

    watcher = SignalWatcher(callback)
    watcher.install()
    try:
        watcher.notify(signal.SIGTERM)
        watcher.notify(signal.SIGINT)
        await watcher.wait_handled()
    finally:
        watcher.uninstall()

    assert received == [signal.SIGTERM]
    assert watcher.triggered


@pytest.mark.asyncio
async def test_real_signal_is_delivered():
    handled = asyncio.Event()

    async def callback(signum):
        assert signum == signal.SIGHUP
        handled.set()

    watcher = SignalWatcher(callback, signals=[signal.SIGHUP])
    watcher.install()
    try:
        os.kill(os.getpid(), signal.SIGHUP)
        await asyncio.wait_for(handled.wait(), timeout=5)
    finally:
        watcher.uninstall()


@pytest.mark.asyncio
async def test_uninstall_without_signal_cancels_listener():
    async def callback(signum):
        raise AssertionError("should not run")

    watcher = SignalWatcher(callback)
    watcher.install()
    watcher.uninstall()
    await asyncio.sleep(0)

    assert not watcher.triggered
    await watcher.wait_handled()
