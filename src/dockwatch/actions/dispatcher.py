"""
ActionDispatcher: user-initiated lifecycle actions.

Only stop is supported. The dispatcher:
- Refuses ids that are not in the current snapshot (NotFound)
- Refuses a stop while one for the same id is outstanding (ActionInProgress)
- Bounds the daemon call by stop_timeout + action_grace
- Never retries; a failed stop is reported once as ActionFailed
- Forces the registry's next reconciliation after a successful stop

The registry is never mutated here. The container disappears (or changes
status) only when the forced refresh observes it.

submit() does the checks synchronously and runs the call as a task so the
key handler never awaits daemon I/O. Outcomes are published as
StopSucceeded / StopRejected events.
"""

import asyncio
import logging

from dockwatch.actions.singleflight import PendingGuard
from dockwatch.events import Publish, StopRejected, StopSucceeded
from dockwatch.exceptions import ActionFailed, DockwatchError, NotFound
from dockwatch.protocols import DaemonGateway
from dockwatch.registry import ContainerRegistry

logger = logging.getLogger(__name__)


class ActionDispatcher:
    """
    Dispatches stop requests with single-flight per container.

    Example:
        dispatcher = ActionDispatcher(gateway, registry, publish=queue.put)
        dispatcher.submit(cid)        # returns immediately
        await dispatcher.stop(cid)    # or wait for the outcome
    """

    def __init__(
        self,
        gateway: DaemonGateway,
        registry: ContainerRegistry,
        publish: Publish | None = None,
        stop_timeout: int = 10,
        action_grace: float = 5.0,
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            gateway: Daemon gateway used for stop
            registry: Registry that is refreshed after a successful stop
            publish: Coroutine function receiving outcome events
            stop_timeout: Seconds the daemon waits before killing
            action_grace: Extra seconds before a stop counts as timed out
        """
        self._gateway = gateway
        self._registry = registry
        self._publish = publish
        self._stop_timeout = stop_timeout
        self._grace = action_grace
        self._guard = PendingGuard()

    def in_flight(self, container_id: str) -> bool:
        """True while a stop for the container is outstanding."""
        return container_id in self._guard

    def submit(self, container_id: str) -> asyncio.Task[None]:
        """
        Start a stop request in the background.

        Returns:
            Task that completes when the stop finished, failed or timed out

        Raises:
            NotFound: If the id is not in the current snapshot
            ActionInProgress: If a stop for the id is still outstanding
        """
        if container_id not in self._registry.snapshot:
            raise NotFound(container_id)
        self._guard.claim(container_id)
        task = asyncio.create_task(self._run_stop(container_id))
        task.add_done_callback(_retrieve)
        return task

    async def stop(self, container_id: str) -> None:
        """
        Stop a container and wait for the outcome.

        Raises:
            NotFound: Unknown id, locally or at the daemon
            ActionInProgress: Stop already outstanding
            ActionFailed: Daemon refused, failed or timed out
        """
        await self.submit(container_id)

    async def _run_stop(self, container_id: str) -> None:
        try:
            await self._call_gateway(container_id)
        except DockwatchError as e:
            logger.warning("Stop of %s failed: %s", container_id, e)
            await self._emit(StopRejected(container_id, e))
            raise
        finally:
            self._guard.release(container_id)

        logger.info("Stopped %s", container_id)
        self._registry.request_refresh()
        await self._emit(StopSucceeded(container_id))

    async def _call_gateway(self, container_id: str) -> None:
        call = asyncio.ensure_future(
            self._gateway.stop(container_id, timeout=self._stop_timeout)
        )
        call.add_done_callback(_retrieve)
        try:
            # Shielded: on timeout the daemon call keeps running, only
            # local tracking is released
            await asyncio.wait_for(
                asyncio.shield(call), timeout=self._stop_timeout + self._grace
            )
        except asyncio.TimeoutError as e:
            raise ActionFailed(container_id, "timed out") from e
        except DockwatchError:
            raise
        except Exception as e:
            raise ActionFailed(container_id, str(e) or type(e).__name__) from e

    async def _emit(self, event) -> None:
        if self._publish is not None:
            await self._publish(event)


def _retrieve(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()
