"""
Termination signal handling.

The watcher resolves a single-shot future when one of the termination
signals arrives and hands the signal number to a callback. It knows nothing
about the orchestrator beyond that callback.
"""
import asyncio
import signal
from typing import Awaitable, Callable, Optional, Sequence

from ..utils.logging import get_logger

TERMINATION_SIGNALS = (
    signal.SIGHUP,
    signal.SIGINT,
    signal.SIGTERM,
    signal.SIGQUIT,
)

# Sent to the orchestrator alone (kill <pid>), so the nodes never see it
FORWARDED_SIGNALS = (signal.SIGTERM,)


class SignalWatcher:
    """Awaits the first termination signal and runs a shutdown callback."""

    def __init__(
        self,
        callback: Callable[[int], Awaitable[None]],
        signals: Sequence[int] = TERMINATION_SIGNALS
    ):
        self.callback = callback
        self.signals = tuple(signals)
        self.logger = get_logger(__name__)
        self._received: Optional[asyncio.Future] = None
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def install(self):
        """Register handlers on the running loop and start listening."""
        self._loop = asyncio.get_running_loop()
        self._received = self._loop.create_future()
        for signum in self.signals:
            self._loop.add_signal_handler(signum, self.notify, signum)
        self._task = self._loop.create_task(self._listen())
        self.logger.debug("Registered termination signal handlers")

    def notify(self, signum: int):
        """Hand a signal to the listener; later signals are ignored."""
        if self._received is not None and not self._received.done():
            self._received.set_result(signum)

    async def _listen(self):
        signum = await self._received
        self.logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
        await self.callback(signum)

    @property
    def triggered(self) -> bool:
        return self._received is not None and self._received.done()

    async def wait_handled(self):
        """Wait for the callback of a received signal to finish."""
        if self._task is not None and self.triggered:
            await self._task

    def uninstall(self):
        if self._loop is None:
            return
        for signum in self.signals:
            self._loop.remove_signal_handler(signum)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._loop = None
