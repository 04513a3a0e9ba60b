"""dockwatch CLI - terminal dashboards for Docker containers.

Commands:
- ps: live container list with stop and inspect
- logs: concurrent log tails of the watched containers, one tab each

Options fall back to DOCKWATCH_* environment variables through Settings;
values given on the command line win.
"""

import asyncio
import logging
from pathlib import Path

import typer

from dockwatch.actions import ActionDispatcher
from dockwatch.app import App, NoticeBoard, ViewMode
from dockwatch.config import Settings
from dockwatch.docker import DockerGateway
from dockwatch.events import Event
from dockwatch.logs import LogMultiplexer
from dockwatch.registry import ContainerRegistry
from dockwatch.tabs import TabOrder
from dockwatch.tui import DashboardController
from dockwatch.types import ContainerFilter

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="dockwatch",
    help="Terminal dashboards for Docker containers",
    no_args_is_help=True,
)


def configure_logging(log_file: str | None, verbose: bool) -> None:
    """
    Route log records to a file, or discard them.

    The terminal belongs to the dashboard, so nothing is written to
    stderr while it runs.
    """
    root = logging.getLogger("dockwatch")
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    else:
        handler = logging.NullHandler()
    root.addHandler(handler)


def build_settings(**overrides) -> Settings:
    """Environment settings with command line values applied on top."""
    settings = Settings()
    values = {k: v for k, v in overrides.items() if v is not None}
    return settings.model_copy(update=values)


def build_app(settings: Settings, mode: ViewMode, events: asyncio.Queue[Event]) -> App:
    """Wire gateway, registry, multiplexer and dispatcher into an App."""
    gateway = DockerGateway(docker_binary=settings.docker_binary)
    registry = ContainerRegistry(
        gateway,
        refresh_interval=settings.refresh_interval,
        refresh_timeout=settings.refresh_timeout,
        max_backoff=settings.max_backoff,
        scope=settings.container_filter,
    )
    multiplexer = None
    if mode is ViewMode.LOGS:
        multiplexer = LogMultiplexer(
            gateway,
            publish=events.put,
            capacity=settings.buffer_capacity,
            tail_lines=settings.tail_lines,
            read_timeout=settings.read_timeout,
            reconnect=settings.reconnect,
            watch_all=settings.watch_all,
        )
    dispatcher = ActionDispatcher(
        gateway,
        registry,
        publish=events.put,
        stop_timeout=settings.stop_timeout,
        action_grace=settings.action_grace,
    )
    return App(
        registry,
        dispatcher,
        multiplexer=multiplexer,
        tabs=TabOrder(wrap=settings.tab_wrap),
        notices=NoticeBoard(duration=settings.notice_seconds),
        mode=mode,
    )


async def run_dashboard(settings: Settings, mode: ViewMode) -> None:
    events: asyncio.Queue[Event] = asyncio.Queue(maxsize=settings.event_queue_size)
    controller = DashboardController(
        build_app(settings, mode, events),
        events,
        refresh_per_second=settings.refresh_per_second,
    )
    await controller.run()


def _launch(settings: Settings, mode: ViewMode, verbose: bool) -> None:
    configure_logging(settings.log_file, verbose)
    logger.info("Starting %s dashboard", mode.value)
    try:
        asyncio.run(run_dashboard(settings, mode))
    except KeyboardInterrupt:
        pass  # Already handled by signal handlers


@app.command("ps")
def ps(
    container_filter: ContainerFilter = typer.Option(
        None, "--filter", "-f", help="Which containers to list (running, recent, all)"
    ),
    interval: float = typer.Option(
        None, "--interval", "-i", help="Refresh interval in seconds"
    ),
    docker_binary: str = typer.Option(None, "--docker", help="Docker CLI binary"),
    log_file: str = typer.Option(
        None, "--log-file", envvar="DOCKWATCH_LOG_FILE", help="Write logs to this file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    Show a live container list.

    Keys: arrows select, / search, s stop, i inspect, f cycle filter,
    r refresh, q quit.
    """
    settings = build_settings(
        container_filter=container_filter,
        refresh_interval=interval,
        docker_binary=docker_binary,
        log_file=log_file,
    )
    _launch(settings, ViewMode.PS, verbose)


@app.command("logs")
def logs(
    all_containers: bool = typer.Option(
        False, "--all", "-a", help="Watch every listed container, not only running ones"
    ),
    container_filter: ContainerFilter = typer.Option(
        None, "--filter", "-f", help="Which containers to list (running, recent, all)"
    ),
    tail: int = typer.Option(
        None, "--tail", "-n", help="Existing lines to show per container"
    ),
    buffer_capacity: int = typer.Option(
        None, "--buffer", "-b", help="Lines kept per container"
    ),
    interval: float = typer.Option(
        None, "--interval", "-i", help="Refresh interval in seconds"
    ),
    docker_binary: str = typer.Option(None, "--docker", help="Docker CLI binary"),
    log_file: str = typer.Option(
        None, "--log-file", envvar="DOCKWATCH_LOG_FILE", help="Write logs to this file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    Tail the logs of all watched containers, one tab per container.

    Keys: tab/arrows switch tabs, up/down scroll, PgUp/PgDn page,
    g/G top/bottom, s stop, i inspect, q quit.
    """
    settings = build_settings(
        watch_all=all_containers or None,
        container_filter=container_filter,
        tail_lines=tail,
        buffer_capacity=buffer_capacity,
        refresh_interval=interval,
        docker_binary=docker_binary,
        log_file=log_file,
    )
    _launch(settings, ViewMode.LOGS, verbose)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
