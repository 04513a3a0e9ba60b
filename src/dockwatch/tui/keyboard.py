"""
KeyboardTask: non-blocking keyboard input for the dashboard.

Keys are read in the default executor so the event loop never blocks:
- The terminal is put in cbreak mode once, restored on exit
- select() with a short timeout lets the reader thread return quickly,
  so stop() takes effect within one poll interval
- Escape sequences (arrow keys, PgUp/PgDn, Home/End) are read as one key
"""

import asyncio
import select
import sys
import termios
import tty
from collections.abc import Callable

POLL_INTERVAL = 0.2


def _read_available(timeout: float) -> str:
    if select.select([sys.stdin], [], [], timeout)[0]:
        return sys.stdin.read(1)
    return ""


def _readkey_with_timeout(timeout: float) -> str | None:
    """
    Read a keypress with timeout.

    Does not change terminal modes; the caller must set cbreak mode.

    Args:
        timeout: Maximum seconds to wait for input

    Returns:
        Key pressed (single character or escape sequence), or None
    """
    char = _read_available(timeout)
    if not char:
        return None
    if char != "\x1b":
        return char
    # Escape sequences: "\x1b[A", "\x1b[5~", "\x1bOH", ...
    char += _read_available(0.05)
    if char in ("\x1b[", "\x1bO"):
        while True:
            nxt = _read_available(0.05)
            if not nxt:
                break
            char += nxt
            if nxt.isalpha() or nxt == "~":
                break
    return char


class KeyboardTask:
    """
    Async keyboard reader run inside the controller's TaskGroup.

    Example:
        keyboard = KeyboardTask(on_key=handle_key)
        tg.create_task(keyboard.run())
        # Later:
        keyboard.stop()
    """

    def __init__(self, on_key: Callable[[str], None]) -> None:
        """
        Initialize keyboard task.

        Args:
            on_key: Callback invoked on the event loop with each key
        """
        self._on_key = on_key
        self._shutdown = asyncio.Event()

    async def run(self) -> None:
        """Read keys until stop(); a non-tty stdin disables input."""
        if not sys.stdin.isatty():
            await self._shutdown.wait()
            return

        loop = asyncio.get_running_loop()
        fd = sys.stdin.fileno()
        old_settings = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            while not self._shutdown.is_set():
                key = await loop.run_in_executor(
                    None, _readkey_with_timeout, POLL_INTERVAL
                )
                if key is not None:
                    self._on_key(key)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

    def stop(self) -> None:
        """Signal task to stop."""
        self._shutdown.set()
