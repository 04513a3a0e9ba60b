"""
ContainerRegistry: authoritative, periodically reconciled container list.

This module implements the registry that:
- Lists containers through a DaemonGateway and reconciles them into an
  immutable RegistrySnapshot
- Shares one in-flight refresh between concurrent callers (single-flight)
- Bounds every refresh with a timeout, reported as DaemonUnavailable
- Runs a poll loop with exponential backoff after failures
- Accepts forced refresh requests that bypass interval and backoff

The poll loop publishes RegistryRefreshed or RefreshFailed events; it never
hands state to the render loop any other way.
"""

import asyncio
import logging

from dockwatch.events import Publish, RefreshFailed, RegistryRefreshed
from dockwatch.exceptions import DaemonUnavailable
from dockwatch.protocols import DaemonGateway
from dockwatch.registry.reconcile import reconcile
from dockwatch.types import ContainerFilter, RegistrySnapshot

logger = logging.getLogger(__name__)


class ContainerRegistry:
    """
    Reconciles daemon state into RegistrySnapshots.

    refresh() is not reentrant: while one refresh is in flight, further
    callers await the same result instead of issuing another list().

    Example:
        registry = ContainerRegistry(gateway, refresh_interval=2.0)
        snapshot = await registry.refresh()
        async with asyncio.TaskGroup() as tg:
            tg.create_task(registry.run(queue.put))
            # ... later ...
            registry.stop()
    """

    def __init__(
        self,
        gateway: DaemonGateway,
        refresh_interval: float = 2.0,
        refresh_timeout: float = 5.0,
        max_backoff: float = 30.0,
        scope: ContainerFilter = ContainerFilter.RUNNING,
    ) -> None:
        """
        Initialize registry.

        Args:
            gateway: Daemon gateway used for listing
            refresh_interval: Seconds between scheduled refreshes
            refresh_timeout: Seconds before a refresh counts as failed
            max_backoff: Upper bound for the delay after repeated failures
            scope: Which containers to list
        """
        self._gateway = gateway
        self._interval = refresh_interval
        self._timeout = refresh_timeout
        self._max_backoff = max_backoff
        self._scope = scope
        self._snapshot = RegistrySnapshot()
        self._inflight: asyncio.Task[RegistrySnapshot] | None = None
        self._wake = asyncio.Event()
        self._shutdown = asyncio.Event()
        self._failures = 0
        self._forced = False

    @property
    def snapshot(self) -> RegistrySnapshot:
        """Latest published snapshot (generation 0 before first success)."""
        return self._snapshot

    @property
    def scope(self) -> ContainerFilter:
        return self._scope

    @scope.setter
    def scope(self, value: ContainerFilter) -> None:
        self._scope = value

    @property
    def failures(self) -> int:
        """Consecutive failed refreshes in the poll loop."""
        return self._failures

    @property
    def refresh_forced(self) -> bool:
        """True if a mandatory refresh is pending."""
        return self._forced

    @property
    def refreshing(self) -> bool:
        """True while a refresh is in flight."""
        return self._inflight is not None

    async def refresh(self) -> RegistrySnapshot:
        """
        Reconcile daemon state into a new snapshot.

        If a refresh is already running, wait for its result instead.

        Returns:
            The newly published snapshot

        Raises:
            DaemonUnavailable: If listing failed or exceeded the timeout
        """
        if self._inflight is None:
            task = asyncio.create_task(self._reconcile())
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        # Shield so a cancelled waiter does not cancel the shared refresh
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Mark the exception retrieved; every waiter re-raises it anyway
            task.exception()

    async def _reconcile(self) -> RegistrySnapshot:
        try:
            descriptors = await asyncio.wait_for(
                self._gateway.list(self._scope), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            raise DaemonUnavailable(f"listing timed out after {self._timeout:g}s") from e
        except DaemonUnavailable:
            raise
        except Exception as e:
            raise DaemonUnavailable(str(e) or type(e).__name__) from e

        snapshot = reconcile(self._snapshot, descriptors)
        self._snapshot = snapshot
        diff = snapshot.diff
        if not diff.is_empty:
            logger.info(
                "Generation %d: %d added, %d removed, %d updated",
                snapshot.generation,
                len(diff.added),
                len(diff.removed),
                len(diff.updated),
            )
        return snapshot

    def request_refresh(self, join: bool = False) -> None:
        """
        Make the next reconciliation mandatory and run it immediately.

        Args:
            join: If a refresh is already in flight, let its result answer
                the request instead of scheduling another one
        """
        if join and self._inflight is not None:
            logger.debug("Refresh already in flight, joining it")
            return
        self._forced = True
        self._wake.set()

    def next_delay(self) -> float:
        """
        Delay before the next scheduled refresh.

        Formula: min(max_backoff, interval * 2^failures)
        """
        if self._failures == 0:
            return self._interval
        return min(self._max_backoff, self._interval * (2**self._failures))

    async def run(self, publish: Publish) -> None:
        """
        Poll loop that runs until stop().

        Each cycle refreshes, publishes the outcome, then waits for the
        next interval, a forced refresh request, or shutdown.

        Args:
            publish: Coroutine function receiving each event
        """
        while not self._shutdown.is_set():
            # Cleared before refreshing so requests made meanwhile are kept
            self._wake.clear()
            self._forced = False
            try:
                snapshot = await self.refresh()
            except DaemonUnavailable as e:
                self._failures += 1
                logger.warning("Refresh failed (%d in a row): %s", self._failures, e.reason)
                await publish(RefreshFailed(e))
            else:
                self._failures = 0
                await publish(RegistryRefreshed(snapshot))

            if self._shutdown.is_set():
                break
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.next_delay())
            except asyncio.TimeoutError:
                pass  # Normal interval

    def stop(self) -> None:
        """Signal the poll loop to stop."""
        self._shutdown.set()
        self._wake.set()
