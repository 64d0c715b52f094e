"""Signal-driven graceful shutdown around :class:`McpServer`.

The first SIGTERM/SIGINT calls ``server.stop()``; later ones are absorbed and
logged.  The in-flight request still completes (bounded by the per-call
timeout) and the transport is closed only after the receive loop exits.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolwire.server.server import McpServer

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGINT)


class LifecycleController:
    """Runs a server with termination signals wired to ``stop()``.

    Usage::

        controller = LifecycleController(server)
        await controller.run()
    """

    def __init__(
        self,
        server: McpServer,
        signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS,
    ) -> None:
        self.server = server
        self._signals = signals
        self._installed: list[signal.Signals] = []
        self.signals_received = 0

    def handle_signal(self, signum: signal.Signals) -> None:
        """Stop the server on the first signal; absorb the rest."""
        self.signals_received += 1
        if self.signals_received > 1:
            logger.warning("Received %s again; shutdown already in progress", signum.name)
            return
        logger.warning("Received %s, initiating graceful shutdown", signum.name)
        self.server.stop()

    def install(self) -> None:
        """Register the signal handlers on the running loop."""
        loop = asyncio.get_running_loop()
        for signum in self._signals:
            try:
                loop.add_signal_handler(signum, self.handle_signal, signum)
            except (NotImplementedError, RuntimeError, ValueError) as exc:
                logger.warning("Cannot install handler for %s: %s", signum.name, exc)
                continue
            self._installed.append(signum)
        logger.debug("Signal handlers installed: %s", [s.name for s in self._installed])

    def uninstall(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in self._installed:
            loop.remove_signal_handler(signum)
        self._installed.clear()

    async def run(self) -> None:
        """Install handlers, serve until stopped, then remove the handlers."""
        self.install()
        try:
            await self.server.start()
        finally:
            self.uninstall()


async def serve_stdio(server: McpServer) -> None:
    """Serve *server* on stdio with graceful signal handling."""
    await LifecycleController(server).run()
