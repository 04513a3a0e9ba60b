"""
Gateway protocol definitions.

The DaemonGateway protocol is the only view the core has of the container
runtime. Implementations include the Docker CLI backed gateway in
dockwatch.docker.gateway and in-memory fakes used by the tests.

Failure modes a gateway must report:
- list(): DaemonUnavailable
- follow(): StreamInterrupted (from follow() itself or from readline())
- stop(): NotFound or ActionFailed
"""

from typing import Protocol, runtime_checkable

from dockwatch.types import ContainerDescriptor, ContainerFilter


@runtime_checkable
class FollowStream(Protocol):
    """
    A cancellable, potentially infinite stream of log lines.

    readline() waits at most `timeout` seconds so that a caller can observe
    its own cancellation token between reads.
    """

    async def readline(self, timeout: float) -> str | None:
        """
        Read the next line.

        Args:
            timeout: Maximum seconds to wait

        Returns:
            The line without trailing newline, or None if nothing arrived
            within the timeout

        Raises:
            StreamInterrupted: If the stream ended or failed
        """
        ...

    async def close(self) -> None:
        """Release the underlying handle. Safe to call more than once."""
        ...


@runtime_checkable
class DaemonGateway(Protocol):
    """
    Protocol for container runtimes.

    Provides exactly the three primitives the core needs: list, follow and
    stop. The core never assumes a particular transport.
    """

    async def list(
        self, scope: ContainerFilter = ContainerFilter.RUNNING
    ) -> list[ContainerDescriptor]:
        """
        List containers.

        Args:
            scope: Which containers to include

        Raises:
            DaemonUnavailable: If the runtime cannot be reached
        """
        ...

    async def follow(self, container_id: str, tail: int = 100) -> FollowStream:
        """
        Open a follow stream for a container's output.

        Args:
            container_id: Container to follow
            tail: Number of existing lines to replay before following

        Raises:
            StreamInterrupted: If the stream cannot be opened
        """
        ...

    async def stop(self, container_id: str, timeout: int = 10) -> None:
        """
        Stop a container.

        Args:
            container_id: Container to stop
            timeout: Seconds of grace before the runtime kills it

        Raises:
            NotFound: If the container does not exist
            ActionFailed: If the runtime refused or failed
        """
        ...
