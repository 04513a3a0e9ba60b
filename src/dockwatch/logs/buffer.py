"""
Ring buffers for container log output.

This module implements:
- RingBuffer: fixed-capacity FIFO built on deque(maxlen=N) that counts
  the items it evicts
- LogBuffer: the per-container buffer of LogLines with sequence
  numbering, stall state and a scroll cursor for the log view

Each LogBuffer has exactly one writer (its watch worker) and the render
loop as its only reader. Both run on the same event loop, so an append
never interleaves with a window read.
"""

import time
from collections import deque
from collections.abc import Iterator
from itertools import islice
from typing import Generic, TypeVar

from dockwatch.logs.levels import classify
from dockwatch.types import LogLine

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """
    Fixed-capacity ring that discards the oldest item when full.

    Example:
        ring = RingBuffer(capacity=2)
        ring.append("a")
        ring.append("b")
        ring.append("c")  # evicts "a"
        list(ring)         # ["b", "c"]
        ring.dropped_count # 1
    """

    def __init__(self, capacity: int) -> None:
        """
        Initialize ring with a maximum item count.

        Args:
            capacity: Maximum number of items retained (must be positive)
        """
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._items: deque[T] = deque(maxlen=capacity)
        self._dropped = 0

    @property
    def capacity(self) -> int:
        return self._items.maxlen

    @property
    def dropped_count(self) -> int:
        """Number of items evicted since creation or the last clear()."""
        return self._dropped

    def append(self, item: T) -> T | None:
        """
        Add an item, evicting the oldest one if the ring is full.

        Returns:
            The evicted item, or None if nothing was evicted
        """
        evicted = None
        if len(self._items) == self._items.maxlen:
            evicted = self._items[0]
            self._dropped += 1
        self._items.append(item)
        return evicted

    def slice(self, start: int, stop: int) -> list[T]:
        """Return items in [start, stop) oldest first, clamped to the ring."""
        start = max(0, start)
        stop = min(len(self._items), stop)
        if start >= stop:
            return []
        return list(islice(self._items, start, stop))

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def clear(self) -> None:
        """Remove all items and reset the drop counter."""
        self._items.clear()
        self._dropped = 0


class LogBuffer:
    """
    Log lines of one watched container.

    Wraps a RingBuffer of LogLine and adds:
    - gapless sequence numbers starting at 0
    - the stalled flag set when the follow stream ends
    - a scroll cursor with follow mode for the log view

    While following, the view sticks to the newest lines. Scrolling up
    leaves follow mode; reaching the bottom again re-enters it. When lines
    are evicted while not following, the cursor moves with the content so
    the same lines stay in view.
    """

    def __init__(self, container_id: str, capacity: int = 1000) -> None:
        """
        Initialize an empty buffer.

        Args:
            container_id: Container this buffer belongs to
            capacity: Maximum number of lines retained
        """
        self.container_id = container_id
        self._ring: RingBuffer[LogLine] = RingBuffer(capacity)
        self._next_sequence = 0
        self._cursor = 0
        self._follow = True
        self.stalled = False
        self.stall_reason: str | None = None

    @property
    def capacity(self) -> int:
        return self._ring.capacity

    @property
    def dropped_count(self) -> int:
        """Lines evicted since the watch started."""
        return self._ring.dropped_count

    @property
    def next_sequence(self) -> int:
        """Sequence number the next appended line will receive."""
        return self._next_sequence

    @property
    def cursor(self) -> int:
        """Index of the first line shown when not following."""
        return self._cursor

    @property
    def following(self) -> bool:
        return self._follow

    def __len__(self) -> int:
        return len(self._ring)

    def __iter__(self) -> Iterator[LogLine]:
        return iter(self._ring)

    def append_text(self, text: str, ingest_time: float | None = None) -> LogLine:
        """
        Classify raw text, number it and append it.

        Args:
            text: Raw line; a trailing newline is stripped
            ingest_time: Monotonic read time (defaults to now)

        Returns:
            The appended LogLine
        """
        text = text.rstrip("\r\n")
        line = LogLine(
            container_id=self.container_id,
            sequence=self._next_sequence,
            level=classify(text),
            text=text,
            ingest_time=time.monotonic() if ingest_time is None else ingest_time,
        )
        self.append(line)
        return line

    def append(self, line: LogLine) -> None:
        """
        Append a line, evicting the oldest if full.

        Raises:
            ValueError: If the line's sequence is not the next one
        """
        if line.sequence != self._next_sequence:
            raise ValueError(
                f"expected sequence {self._next_sequence}, got {line.sequence}"
            )
        self._next_sequence += 1
        evicted = self._ring.append(line)
        if evicted is not None and not self._follow and self._cursor > 0:
            self._cursor -= 1

    def window(self, start: int, height: int) -> list[LogLine]:
        """Return up to `height` lines starting at `start`, oldest first."""
        if height <= 0:
            return []
        return self._ring.slice(start, start + height)

    def max_start(self, viewport_height: int) -> int:
        """Largest valid cursor for a viewport of the given height."""
        return max(0, len(self._ring) - max(viewport_height, 0))

    def view_start(self, viewport_height: int) -> int:
        """First visible index for a viewport of the given height."""
        if self._follow:
            return self.max_start(viewport_height)
        return min(self._cursor, self.max_start(viewport_height))

    def visible(self, viewport_height: int) -> list[LogLine]:
        """Lines currently in view for a viewport of the given height."""
        return self.window(self.view_start(viewport_height), viewport_height)

    def scroll_to(self, index: int, viewport_height: int) -> int:
        """
        Move the cursor, clamped to [0, len - viewport_height].

        Returns:
            The clamped cursor
        """
        limit = self.max_start(viewport_height)
        self._cursor = min(max(index, 0), limit)
        self._follow = self._cursor == limit
        return self._cursor

    def scroll(self, delta: int, viewport_height: int) -> int:
        """Move the cursor relative to the current view start."""
        return self.scroll_to(self.view_start(viewport_height) + delta, viewport_height)

    def scroll_to_top(self, viewport_height: int) -> int:
        return self.scroll_to(0, viewport_height)

    def scroll_to_bottom(self, viewport_height: int) -> int:
        """Jump to the newest lines and re-enter follow mode."""
        self._follow = True
        self._cursor = self.max_start(viewport_height)
        return self._cursor

    def mark_stalled(self, reason: str) -> None:
        self.stalled = True
        self.stall_reason = reason

    def clear_stall(self) -> None:
        self.stalled = False
        self.stall_reason = None
