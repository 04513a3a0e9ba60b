"""Docker gateway for container listing, log following and stopping.

Listing and stopping wrap python-on-whales and run in the default executor
so the event loop never blocks on the daemon. Following spawns
`docker logs --follow` as an asyncio subprocess, which gives a readline
that can be awaited with a timeout and a handle that can be terminated
at any moment.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from python_on_whales import DockerClient
from python_on_whales.exceptions import DockerException, NoSuchContainer

from dockwatch.exceptions import ActionFailed, DaemonUnavailable, NotFound, StreamInterrupted
from dockwatch.types import ContainerDescriptor, ContainerFilter, PortMapping

logger = logging.getLogger(__name__)

# Number of exited containers shown by the "recent" filter
RECENT_LIMIT = 10

# Largest single log line accepted from the follow subprocess
LINE_LIMIT = 1024 * 1024


def _parse_ports(ports: dict[str, Any] | None) -> tuple[PortMapping, ...]:
    """
    Convert a network_settings.ports mapping into PortMapping values.

    Keys look like "80/tcp"; values are None for exposed-only ports or a
    list of bindings with host_ip/host_port.
    """
    mappings: list[PortMapping] = []
    for key, bindings in (ports or {}).items():
        port_str, _, protocol = key.partition("/")
        try:
            container_port = int(port_str)
        except ValueError:
            continue
        protocol = protocol or "tcp"
        if not bindings:
            mappings.append(PortMapping(container_port, protocol))
            continue
        for binding in bindings:
            host_port = getattr(binding, "host_port", None)
            try:
                host_port = int(host_port) if host_port else None
            except ValueError:
                host_port = None
            mappings.append(
                PortMapping(
                    container_port,
                    protocol,
                    host_ip=getattr(binding, "host_ip", None) or None,
                    host_port=host_port,
                )
            )
    return tuple(sorted(mappings))


def _addresses(container: Any) -> tuple[str, ...]:
    """Collect non-empty IP addresses from every attached network."""
    networks = container.network_settings.networks or {}
    return tuple(
        net.ip_address for net in networks.values() if getattr(net, "ip_address", None)
    )


def to_descriptor(container: Any) -> ContainerDescriptor:
    """Convert a python-on-whales Container into a ContainerDescriptor."""
    return ContainerDescriptor(
        id=container.id,
        name=container.name,
        image=container.config.image,
        state=container.state.status,
        addresses=_addresses(container),
        ports=_parse_ports(container.network_settings.ports),
    )


def select_recent(containers: Iterable[Any], limit: int = RECENT_LIMIT) -> list[Any]:
    """
    Keep the most recently finished exited containers.

    Same set as `docker ps -a --filter status=exited --last N`.

    Args:
        containers: Containers from an all=True listing
        limit: Maximum number of containers to keep

    Returns:
        Up to `limit` exited containers, newest first
    """
    exited = [c for c in containers if c.state.status == "exited"]
    exited.sort(
        key=lambda c: c.state.finished_at.timestamp() if c.state.finished_at else 0.0,
        reverse=True,
    )
    return exited[:limit]


class SubprocessFollowStream:
    """
    FollowStream backed by a `docker logs --follow` subprocess.

    stdout and stderr are merged so that error output keeps its place
    relative to regular output.
    """

    def __init__(self, container_id: str, process: asyncio.subprocess.Process) -> None:
        self.container_id = container_id
        self._process = process
        self._closed = False

    async def readline(self, timeout: float) -> str | None:
        """Read one line, None on timeout, StreamInterrupted at end of stream."""
        if self._closed:
            raise StreamInterrupted(self.container_id, "stream closed")
        try:
            raw = await asyncio.wait_for(self._process.stdout.readline(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        except ValueError:
            # Line longer than LINE_LIMIT; the reader already discarded it
            logger.warning("Dropped oversized log line from %s", self.container_id)
            return None
        except OSError as e:
            raise StreamInterrupted(self.container_id, str(e)) from e

        if not raw:
            returncode = await self._process.wait()
            raise StreamInterrupted(self.container_id, f"stream ended (exit {returncode})")
        return raw.decode("utf-8", errors="replace").rstrip("\r\n")

    async def close(self, timeout: float = 1.0) -> None:
        """Terminate the subprocess, escalating to SIGKILL after timeout."""
        if self._closed:
            return
        self._closed = True
        proc = self._process
        if proc.returncode is not None:
            return
        try:
            proc.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()


class DockerGateway:
    """Gateway to a local Docker daemon.

    Implements the DaemonGateway protocol. Blocking python-on-whales calls
    run via run_in_executor; log following uses an asyncio subprocess.
    """

    def __init__(self, docker_binary: str = "docker", client: DockerClient | None = None):
        """Initialize gateway.

        Args:
            docker_binary: Docker CLI used for following logs
            client: python-on-whales client (a default DockerClient if None)
        """
        self._binary = docker_binary
        self._docker = client if client is not None else DockerClient()

    async def list(
        self, scope: ContainerFilter = ContainerFilter.RUNNING
    ) -> list[ContainerDescriptor]:
        """List containers matching the scope.

        Raises:
            DaemonUnavailable: If the docker CLI fails or cannot be run
        """
        loop = asyncio.get_running_loop()

        def _blocking_list():
            containers = self._docker.container.list(all=scope != ContainerFilter.RUNNING)
            if scope == ContainerFilter.RECENT:
                containers = select_recent(containers)
            return [to_descriptor(c) for c in containers]

        try:
            return await loop.run_in_executor(None, _blocking_list)
        except (DockerException, OSError) as e:
            raise DaemonUnavailable(str(e).strip() or type(e).__name__) from e

    async def follow(self, container_id: str, tail: int = 100) -> SubprocessFollowStream:
        """Spawn `docker logs --follow` for a container.

        Raises:
            StreamInterrupted: If the docker CLI cannot be started
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self._binary,
                "logs",
                "--follow",
                "--tail",
                str(tail),
                container_id,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=True,
                limit=LINE_LIMIT,
            )
        except OSError as e:
            raise StreamInterrupted(container_id, str(e)) from e
        logger.debug("Following %s (pid %s, tail %d)", container_id, process.pid, tail)
        return SubprocessFollowStream(container_id, process)

    async def stop(self, container_id: str, timeout: int = 10) -> None:
        """Stop a container with graceful shutdown.

        Raises:
            NotFound: If the container does not exist
            ActionFailed: If docker reports any other failure
        """
        loop = asyncio.get_running_loop()

        def _blocking_stop():
            self._docker.container.stop(container_id, time=timeout)

        try:
            await loop.run_in_executor(None, _blocking_stop)
        except NoSuchContainer as e:
            raise NotFound(container_id) from e
        except (DockerException, OSError) as e:
            raise ActionFailed(container_id, str(e).strip() or type(e).__name__) from e
