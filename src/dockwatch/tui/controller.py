"""
DashboardController: runs one dashboard until quit.

This module wires the core to the terminal:
- Registers SIGINT/SIGTERM handlers before entering Live, so Ctrl+C works
  during startup
- Runs the registry poll loop, the keyboard reader, the event consumer and
  the update loop in one TaskGroup
- Background tasks publish events on a bounded queue; only the event
  consumer and key handler (both on this loop) mutate App
- On quit, stops the poll loop and tears down every log worker before
  leaving Live, which restores the terminal
"""

import asyncio
import functools
import logging
import signal

from rich.console import Console
from rich.live import Live

from dockwatch.app import App
from dockwatch.events import Event
from dockwatch.tui.bindings import dispatch_key
from dockwatch.tui.keyboard import KeyboardTask
from dockwatch.tui.layout import create_layout, viewport_height
from dockwatch.tui.render import render_frame

logger = logging.getLogger(__name__)


class DashboardController:
    """
    Controls dashboard lifecycle.

    Example:
        queue = asyncio.Queue(maxsize=settings.event_queue_size)
        app = App(registry, dispatcher, multiplexer, mode=ViewMode.LOGS)
        controller = DashboardController(app, queue)
        await controller.run()  # Runs until q or Ctrl+C
    """

    def __init__(
        self,
        app: App,
        events: asyncio.Queue[Event],
        console: Console | None = None,
        refresh_per_second: int = 8,
    ) -> None:
        """
        Initialize controller.

        Args:
            app: Application state
            events: Queue the background tasks publish to
            console: Rich Console to use (creates default if None)
            refresh_per_second: Frame rate of the update loop
        """
        self.app = app
        self.events = events
        self.console = console if console is not None else Console()
        self._interval = 1.0 / max(refresh_per_second, 1)
        self._shutdown = asyncio.Event()
        self._layout = create_layout()
        self._keyboard = KeyboardTask(on_key=self._handle_key)

    async def run(self) -> None:
        """Run the dashboard until quit or a shutdown signal."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, functools.partial(self._handle_signal, sig))

        self.app.start()
        self._render()
        try:
            with Live(
                self._layout,
                console=self.console,
                refresh_per_second=max(int(1 / self._interval), 1),
                screen=True,
                auto_refresh=False,
            ) as live:
                try:
                    async with asyncio.TaskGroup() as tg:
                        tg.create_task(self.app.registry.run(self.events.put))
                        tg.create_task(self._keyboard.run())
                        tg.create_task(self._consume_events())
                        tg.create_task(self._update_loop(live))
                finally:
                    await self.app.close()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
        logger.info("Dashboard stopped")

    async def _consume_events(self) -> None:
        while not self._shutdown.is_set():
            try:
                event = await asyncio.wait_for(self.events.get(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue
            try:
                await self.app.handle_event(event)
            except Exception:
                logger.exception("Failed to apply %r", event)
            self._check_quit()
        # Unblock publishers waiting on a full queue so their tasks can exit
        while not self.events.empty():
            self.events.get_nowait()

    async def _update_loop(self, live: Live) -> None:
        while not self._shutdown.is_set():
            self._render()
            live.refresh()
            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass  # Normal refresh interval

    def _render(self) -> None:
        height = viewport_height(self.console.size.height)
        render_frame(self._layout, self.app.frame(height))

    def _handle_key(self, key: str) -> None:
        try:
            dispatch_key(self.app, key)
        except Exception as e:
            logger.exception("Key handler failed for %r", key)
            self.app.notices.post(f"Error: {e}")
        self._check_quit()

    def _check_quit(self) -> None:
        if not self.app.running:
            self.shutdown()

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down", sig.name)
        self.app.quit()
        self.shutdown()

    def shutdown(self) -> None:
        """Stop every task of the dashboard."""
        self._shutdown.set()
        self._keyboard.stop()
        self.app.registry.stop()
