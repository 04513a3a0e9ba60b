"""
LogMultiplexer: one background log worker per watched container.

This module provides:
- WatchHandle: exclusive owner of one container's worker task, its
  cancellation token and its LogBuffer
- LogMultiplexer: starts, stops and reconnects workers so that the set of
  handles mirrors the watched containers of the latest snapshot

Worker behaviour:
- Opens gateway.follow() and reads with a short timeout, checking its
  cancellation token between reads
- Appends every line to its own LogBuffer (the buffer's only writer)
- On end of stream or error, marks the buffer stalled, publishes
  StreamStalled and exits; the container record is left alone
- Any failure stays inside the worker, nothing propagates to other
  workers or to the render loop

Teardown waits at most one read timeout for the worker to notice its
token, then cancels the task outright. The follow stream is always closed
by the worker's finally block.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field

from dockwatch.events import Publish, StreamStalled
from dockwatch.exceptions import StreamInterrupted, WatcherAlreadyRunning
from dockwatch.logs.buffer import LogBuffer
from dockwatch.protocols import DaemonGateway
from dockwatch.types import ContainerRecord, ContainerStatus, RegistrySnapshot

logger = logging.getLogger(__name__)


@dataclass
class WatchHandle:
    """
    Owner of one container's log worker.

    Attributes:
        container_id: Watched container
        buffer: Buffer written by the worker
        cancel: Cancellation token observed by the worker between reads
        task: The worker task (None until started)
        reconnects: Number of times the worker was restarted after a stall
    """

    container_id: str
    buffer: LogBuffer
    cancel: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task | None = None
    reconnects: int = 0

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()

    @property
    def stalled(self) -> bool:
        return self.buffer.stalled


class LogMultiplexer:
    """
    Manages the log workers of all watched containers.

    Example:
        mux = LogMultiplexer(gateway, publish=queue.put, capacity=1000)
        await mux.sync(snapshot)      # start/stop workers to match
        lines = mux.buffer(cid).visible(20)
        await mux.stop_all()          # on quit
    """

    def __init__(
        self,
        gateway: DaemonGateway,
        publish: Publish | None = None,
        capacity: int = 1000,
        tail_lines: int = 100,
        read_timeout: float = 0.25,
        reconnect: bool = True,
        watch_all: bool = False,
    ) -> None:
        """
        Initialize multiplexer.

        Args:
            gateway: Daemon gateway used for following
            publish: Coroutine function receiving StreamStalled events
            capacity: Lines retained per container
            tail_lines: Existing lines replayed when a watch starts
            read_timeout: Seconds a worker waits per read before checking
                its cancellation token
            reconnect: Restart stalled workers whose container is running
            watch_all: Watch every listed container, not only running ones
        """
        self._gateway = gateway
        self._publish = publish
        self._capacity = capacity
        self._tail_lines = tail_lines
        self._read_timeout = read_timeout
        self._reconnect = reconnect
        self._watch_all = watch_all
        self._handles: dict[str, WatchHandle] = {}

    def should_watch(self, record: ContainerRecord) -> bool:
        """Watch policy: running containers, or everything with watch_all."""
        return self._watch_all or record.status == ContainerStatus.RUNNING

    def watched_ids(self, snapshot: RegistrySnapshot) -> list[str]:
        """Ids of the snapshot that are watched, in snapshot order."""
        return [r.id for r in snapshot.records if r.id in self._handles]

    def handle(self, container_id: str) -> WatchHandle | None:
        return self._handles.get(container_id)

    def buffer(self, container_id: str) -> LogBuffer | None:
        """Return the buffer of a watched container, None if not watched."""
        handle = self._handles.get(container_id)
        return handle.buffer if handle is not None else None

    def __contains__(self, container_id: object) -> bool:
        return container_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def start(self, container_id: str) -> WatchHandle:
        """
        Create a handle with a fresh buffer and start its worker.

        Raises:
            WatcherAlreadyRunning: If the container already has a handle
        """
        if container_id in self._handles:
            raise WatcherAlreadyRunning(container_id)
        handle = WatchHandle(
            container_id=container_id,
            buffer=LogBuffer(container_id, capacity=self._capacity),
        )
        handle.task = asyncio.create_task(
            self._worker(handle, self._tail_lines), name=f"watch-{container_id[:12]}"
        )
        self._handles[container_id] = handle
        logger.debug("Started watcher for %s", container_id)
        return handle

    def reconnect(self, container_id: str) -> bool:
        """
        Restart the worker of a stalled handle, keeping its buffer.

        The stream reopens with tail=0 so no line is appended twice and
        sequence numbers continue where they stopped.

        Returns:
            True if a worker was restarted
        """
        handle = self._handles.get(container_id)
        if handle is None or handle.running or not handle.stalled:
            return False
        handle.buffer.clear_stall()
        handle.cancel = asyncio.Event()
        handle.reconnects += 1
        handle.task = asyncio.create_task(
            self._worker(handle, 0), name=f"watch-{container_id[:12]}"
        )
        logger.info("Reconnecting watcher for %s (attempt %d)", container_id, handle.reconnects)
        return True

    async def stop(self, container_id: str) -> bool:
        """
        Tear down a container's watcher and discard its buffer.

        Returns:
            True if a watcher existed
        """
        handle = self._handles.pop(container_id, None)
        if handle is None:
            return False
        handle.cancel.set()
        task = handle.task
        if task is not None and not task.done():
            done, _ = await asyncio.wait({task}, timeout=self._read_timeout)
            if not done:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        logger.debug("Stopped watcher for %s", container_id)
        return True

    async def stop_all(self) -> None:
        """Tear down every watcher concurrently."""
        await asyncio.gather(*(self.stop(cid) for cid in list(self._handles)))

    async def sync(self, snapshot: RegistrySnapshot) -> None:
        """
        Make the set of watchers match a snapshot.

        - Stops watchers whose container vanished or is no longer watched
        - Starts watchers for newly watched containers
        - Reconnects stalled watchers of running containers (if enabled)
        """
        wanted = {r.id: r for r in snapshot.records if self.should_watch(r)}

        stale = [cid for cid in self._handles if cid not in wanted]
        if stale:
            await asyncio.gather(*(self.stop(cid) for cid in stale))

        for cid, record in wanted.items():
            if cid not in self._handles:
                self.start(cid)
            elif self._reconnect and record.status == ContainerStatus.RUNNING:
                self.reconnect(cid)

    async def _worker(self, handle: WatchHandle, tail: int) -> None:
        cid = handle.container_id
        try:
            stream = await self._gateway.follow(cid, tail=tail)
        except StreamInterrupted as e:
            await self._stall(handle, e.reason)
            return
        except Exception as e:
            logger.exception("Could not open log stream for %s", cid)
            await self._stall(handle, str(e) or type(e).__name__)
            return

        try:
            while not handle.cancel.is_set():
                text = await stream.readline(self._read_timeout)
                if text is None:
                    continue
                handle.buffer.append_text(text)
        except StreamInterrupted as e:
            if not handle.cancel.is_set():
                await self._stall(handle, e.reason)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Log worker for %s failed", cid)
            await self._stall(handle, str(e) or type(e).__name__)
        finally:
            await stream.close()

    async def _stall(self, handle: WatchHandle, reason: str) -> None:
        handle.buffer.mark_stalled(reason)
        logger.info("Log stream for %s stalled: %s", handle.container_id, reason)
        if self._publish is not None:
            await self._publish(StreamStalled(handle.container_id, reason))
