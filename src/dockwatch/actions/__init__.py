"""
User-initiated container actions.

- ActionDispatcher: stop with single-flight per container
- PendingGuard: standalone per-key single-flight primitive
"""

from dockwatch.actions.dispatcher import ActionDispatcher
from dockwatch.actions.singleflight import PendingGuard

__all__ = ["ActionDispatcher", "PendingGuard"]
