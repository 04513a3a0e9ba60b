"""Environment-based configuration for dockwatch."""

from pydantic_settings import BaseSettings

from dockwatch.types import ContainerFilter


class Settings(BaseSettings):
    """dockwatch configuration.

    All settings can be overridden via environment variables with the
    DOCKWATCH_ prefix. For example:
        DOCKWATCH_BUFFER_CAPACITY=5000
        DOCKWATCH_CONTAINER_FILTER=all
    """

    # Daemon access
    docker_binary: str = "docker"

    # Registry polling
    refresh_interval: float = 2.0
    refresh_timeout: float = 5.0
    max_backoff: float = 30.0
    container_filter: ContainerFilter = ContainerFilter.RUNNING

    # Log tailing
    buffer_capacity: int = 1000
    tail_lines: int = 100
    read_timeout: float = 0.25
    reconnect: bool = True
    watch_all: bool = False

    # Actions
    stop_timeout: int = 10
    action_grace: float = 5.0

    # Presentation
    tab_wrap: bool = True
    event_queue_size: int = 1024
    refresh_per_second: int = 8
    notice_seconds: float = 3.0

    # Logging
    log_file: str | None = None

    model_config = {"env_prefix": "DOCKWATCH_"}
