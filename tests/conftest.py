"""Shared fixtures: an in-memory daemon gateway and builders."""

import asyncio
from collections.abc import Callable

import pytest

from dockwatch.exceptions import StreamInterrupted
from dockwatch.types import ContainerDescriptor, ContainerFilter, PortMapping

EOF = object()


def descriptor(
    cid: str,
    name: str | None = None,
    state: str = "running",
    image: str = "nginx:latest",
    addresses: tuple[str, ...] = ("172.17.0.2",),
    ports: tuple[PortMapping, ...] = (),
) -> ContainerDescriptor:
    return ContainerDescriptor(
        id=cid,
        name=name or f"name-{cid}",
        image=image,
        state=state,
        addresses=addresses,
        ports=ports,
    )


class FakeStream:
    """Follow stream fed by the test through push() and end()."""

    def __init__(self, container_id: str, tail: int, hang: bool = False) -> None:
        self.container_id = container_id
        self.tail = tail
        self.hang = hang
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue()

    def push(self, *lines: str) -> None:
        for line in lines:
            self._queue.put_nowait(line)

    def end(self) -> None:
        self._queue.put_nowait(EOF)

    async def readline(self, timeout: float) -> str | None:
        if self.hang:
            # Ignores the timeout, like a pipe read that never returns
            await asyncio.Event().wait()
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        if item is EOF:
            raise StreamInterrupted(self.container_id, "stream ended (exit 0)")
        return item

    async def close(self) -> None:
        self.closed = True


class FakeGateway:
    """
    In-memory DaemonGateway.

    Attributes:
        descriptors: What list() returns
        list_calls: Number of list() calls that reached the gateway
        list_gate: When set to an Event, list() waits for it
        list_error: Raised by list() when not None
        streams: Every stream opened, per container id
        stop_calls: Container ids passed to stop()
        stop_gate: When set to an Event, stop() waits for it
        stop_error: Raised by stop() when not None
        hang_reads: New streams block in readline() past their timeout
    """

    def __init__(self, descriptors: list[ContainerDescriptor] | None = None) -> None:
        self.descriptors = list(descriptors or [])
        self.list_calls = 0
        self.list_scopes: list[ContainerFilter] = []
        self.list_gate: asyncio.Event | None = None
        self.list_error: Exception | None = None
        self.follow_error: Exception | None = None
        self.hang_reads = False
        self.streams: dict[str, list[FakeStream]] = {}
        self.stop_calls: list[str] = []
        self.stop_gate: asyncio.Event | None = None
        self.stop_error: Exception | None = None

    async def list(self, scope: ContainerFilter = ContainerFilter.RUNNING):
        self.list_calls += 1
        self.list_scopes.append(scope)
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return list(self.descriptors)

    async def follow(self, container_id: str, tail: int = 100) -> FakeStream:
        if self.follow_error is not None:
            raise self.follow_error
        stream = FakeStream(container_id, tail, hang=self.hang_reads)
        self.streams.setdefault(container_id, []).append(stream)
        return stream

    def stream(self, container_id: str) -> FakeStream:
        """Most recently opened stream for a container."""
        return self.streams[container_id][-1]

    async def stop(self, container_id: str, timeout: int = 10) -> None:
        self.stop_calls.append(container_id)
        if self.stop_gate is not None:
            await self.stop_gate.wait()
        if self.stop_error is not None:
            raise self.stop_error


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until predicate() holds, failing after timeout."""

    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
