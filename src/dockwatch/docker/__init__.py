"""Docker-backed implementation of the daemon gateway."""

from dockwatch.docker.gateway import DockerGateway, SubprocessFollowStream

__all__ = ["DockerGateway", "SubprocessFollowStream"]
