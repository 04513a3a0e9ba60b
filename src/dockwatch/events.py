"""
Events delivered to the render loop.

Background tasks never touch application state directly. They put one of
these events on the bounded queue owned by the render loop, which applies
them in arrival order. Across containers there is no ordering guarantee
beyond that arrival order.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from dockwatch.exceptions import DaemonUnavailable, DockwatchError
from dockwatch.types import RegistrySnapshot


@dataclass(frozen=True)
class RegistryRefreshed:
    """A reconciliation succeeded and published a new snapshot."""

    snapshot: RegistrySnapshot


@dataclass(frozen=True)
class RefreshFailed:
    """A reconciliation failed; the previous snapshot stays published."""

    error: DaemonUnavailable


@dataclass(frozen=True)
class StreamStalled:
    """A log worker's stream ended or errored."""

    container_id: str
    reason: str


@dataclass(frozen=True)
class StopSucceeded:
    """The daemon accepted a stop request."""

    container_id: str


@dataclass(frozen=True)
class StopRejected:
    """A stop request failed or was refused locally."""

    container_id: str
    error: DockwatchError


Event = RegistryRefreshed | RefreshFailed | StreamStalled | StopSucceeded | StopRejected

Publish = Callable[[Event], Awaitable[None]]
"""Coroutine function used by background tasks to emit events."""
