"""Tests for DockerGateway against a mocked python-on-whales client."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from python_on_whales.exceptions import DockerException, NoSuchContainer

from dockwatch.docker import DockerGateway, SubprocessFollowStream
from dockwatch.docker.gateway import select_recent, to_descriptor
from dockwatch.exceptions import ActionFailed, DaemonUnavailable, NotFound, StreamInterrupted
from dockwatch.types import ContainerFilter, PortMapping


def mock_container(cid, name, status="running", finished_at=None, ports=None, networks=None):
    container = MagicMock()
    container.id = cid
    container.name = name
    container.config.image = "nginx:latest"
    container.state.status = status
    container.state.running = status == "running"
    container.state.finished_at = finished_at
    container.network_settings.ports = ports or {}
    container.network_settings.networks = networks or {}
    return container


def network(ip):
    net = MagicMock()
    net.ip_address = ip
    return net


def binding(host_ip, host_port):
    b = MagicMock()
    b.host_ip = host_ip
    b.host_port = host_port
    return b


def docker_error(*command):
    return DockerException(["docker", *command], 1)


class TestToDescriptor:
    """Tests for converting python-on-whales containers."""

    def test_fields_ports_and_addresses(self):
        container = mock_container(
            "abc123",
            "web",
            ports={
                "443/tcp": None,
                "80/tcp": [binding("0.0.0.0", "8080")],
            },
            networks={"bridge": network("172.17.0.2"), "none": network("")},
        )

        descriptor = to_descriptor(container)

        assert descriptor.id == "abc123"
        assert descriptor.name == "web"
        assert descriptor.image == "nginx:latest"
        assert descriptor.state == "running"
        assert descriptor.addresses == ("172.17.0.2",)
        assert descriptor.ports == (
            PortMapping(80, "tcp", "0.0.0.0", 8080),
            PortMapping(443, "tcp"),
        )

    def test_select_recent_keeps_newest_exited(self):
        """Recent means the newest exited containers only."""
        running = mock_container("r", "running")
        created = mock_container("c", "created", status="created")
        exited = [
            mock_container(
                f"e{n}",
                f"exited-{n}",
                status="exited",
                finished_at=datetime(2024, 1, 1, n, tzinfo=timezone.utc),
            )
            for n in range(12)
        ]

        kept = select_recent([running, created, *exited], limit=10)

        assert running not in kept
        assert created not in kept
        assert [c.id for c in kept] == [f"e{n}" for n in range(11, 1, -1)]


@pytest.mark.asyncio
async def test_list_running_only():
    """RUNNING scope lists without all=True."""
    client = MagicMock()
    client.container.list.return_value = [mock_container("abc", "web")]
    gateway = DockerGateway(client=client)

    descriptors = await gateway.list()

    assert [d.id for d in descriptors] == ["abc"]
    client.container.list.assert_called_once_with(all=False)


@pytest.mark.asyncio
async def test_list_all():
    client = MagicMock()
    client.container.list.return_value = [
        mock_container("a", "web"),
        mock_container("b", "old", status="exited"),
    ]
    gateway = DockerGateway(client=client)

    descriptors = await gateway.list(ContainerFilter.ALL)

    assert [d.state for d in descriptors] == ["running", "exited"]
    client.container.list.assert_called_once_with(all=True)


@pytest.mark.asyncio
async def test_list_daemon_error():
    """Docker CLI failures surface as DaemonUnavailable."""
    client = MagicMock()
    client.container.list.side_effect = docker_error("container", "list")
    gateway = DockerGateway(client=client)

    with pytest.raises(DaemonUnavailable):
        await gateway.list()


@pytest.mark.asyncio
async def test_stop_success():
    client = MagicMock()
    gateway = DockerGateway(client=client)

    await gateway.stop("abc123", timeout=5)

    client.container.stop.assert_called_once_with("abc123", time=5)


@pytest.mark.asyncio
async def test_stop_not_found():
    client = MagicMock()
    client.container.stop.side_effect = NoSuchContainer(["docker", "container", "stop"], 1)
    gateway = DockerGateway(client=client)

    with pytest.raises(NotFound):
        await gateway.stop("missing")


@pytest.mark.asyncio
async def test_stop_failure():
    client = MagicMock()
    client.container.stop.side_effect = docker_error("container", "stop")
    gateway = DockerGateway(client=client)

    with pytest.raises(ActionFailed):
        await gateway.stop("abc123")


@pytest.mark.asyncio
async def test_follow_spawns_docker_logs():
    """follow() runs `docker logs --follow --tail N <id>`."""
    process = MagicMock()
    process.pid = 42
    with patch(
        "dockwatch.docker.gateway.asyncio.create_subprocess_exec",
        new=AsyncMock(return_value=process),
    ) as mock_exec:
        gateway = DockerGateway(docker_binary="podman", client=MagicMock())
        stream = await gateway.follow("abc123", tail=50)

    assert isinstance(stream, SubprocessFollowStream)
    args = mock_exec.call_args.args
    assert args == ("podman", "logs", "--follow", "--tail", "50", "abc123")


@pytest.mark.asyncio
async def test_follow_missing_binary():
    with patch(
        "dockwatch.docker.gateway.asyncio.create_subprocess_exec",
        new=AsyncMock(side_effect=FileNotFoundError("docker")),
    ):
        gateway = DockerGateway(client=MagicMock())
        with pytest.raises(StreamInterrupted):
            await gateway.follow("abc123")


class TestSubprocessFollowStream:
    """Tests for reading and closing the follow subprocess."""

    def make_process(self, lines):
        process = MagicMock()
        process.stdout.readline = AsyncMock(side_effect=lines)
        process.wait = AsyncMock(return_value=0)
        process.returncode = None
        return process

    @pytest.mark.asyncio
    async def test_readline_and_end_of_stream(self):
        process = self.make_process([b"hello\n", b"caf\xc3\xa9\r\n", b""])
        stream = SubprocessFollowStream("abc", process)

        assert await stream.readline(1.0) == "hello"
        assert await stream.readline(1.0) == "café"
        with pytest.raises(StreamInterrupted, match="exit 0"):
            await stream.readline(1.0)

    @pytest.mark.asyncio
    async def test_readline_timeout_returns_none(self):
        process = MagicMock()

        async def never():
            await asyncio.sleep(10)

        process.stdout.readline = never
        stream = SubprocessFollowStream("abc", process)

        assert await stream.readline(0.01) is None

    @pytest.mark.asyncio
    async def test_close_terminates_once(self):
        process = self.make_process([])
        stream = SubprocessFollowStream("abc", process)

        await stream.close()
        await stream.close()

        process.terminate.assert_called_once()
        process.kill.assert_not_called()
        with pytest.raises(StreamInterrupted):
            await stream.readline(0.01)

    @pytest.mark.asyncio
    async def test_close_kills_after_timeout(self):
        process = self.make_process([])
        process.wait = AsyncMock(side_effect=[asyncio.TimeoutError(), 0])
        stream = SubprocessFollowStream("abc", process)

        await stream.close(timeout=0.01)

        process.kill.assert_called_once()
