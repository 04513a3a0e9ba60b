"""
Log stream multiplexing.

- RingBuffer: fixed-capacity FIFO with eviction counting
- LogBuffer: per-container ring of LogLine with stall and scroll state
- classify: keyword-based log level detection
- LogMultiplexer, WatchHandle: one background worker per watched container
"""

from dockwatch.logs.buffer import LogBuffer, RingBuffer
from dockwatch.logs.levels import classify
from dockwatch.logs.multiplexer import LogMultiplexer, WatchHandle

__all__ = ["LogBuffer", "LogMultiplexer", "RingBuffer", "WatchHandle", "classify"]
