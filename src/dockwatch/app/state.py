"""
Application state for the dockwatch dashboards.

App is the single owner of everything the screen shows. It changes in
exactly two ways, both on the render loop:
- handle_event(): applies an event published by a background task
- the action methods (refresh, stop_selected, scroll, ...): applied in
  response to a keypress

Phases:
    IDLE -> REFRESHING -> READY
    READY --(tab/scroll/select)--> READY
    READY --(stop, refresh)--> REFRESHING --(next snapshot)--> READY
    any --(DaemonUnavailable)--> ERROR --(any action)--> REFRESHING
    any --(quit)--> QUIT (terminal)

The presentation layer only reads Frames produced by frame(); it never
touches the registry, buffers or dispatcher.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from dockwatch.actions import ActionDispatcher
from dockwatch.app.notices import Notice, NoticeBoard, NoticeLevel
from dockwatch.events import (
    Event,
    RefreshFailed,
    RegistryRefreshed,
    StopRejected,
    StopSucceeded,
    StreamStalled,
)
from dockwatch.exceptions import ActionInProgress, NotFound
from dockwatch.logs import LogBuffer, LogMultiplexer
from dockwatch.registry import ContainerRegistry
from dockwatch.tabs import TabOrder
from dockwatch.types import ContainerFilter, ContainerRecord, LogLine, RegistrySnapshot

logger = logging.getLogger(__name__)


class AppPhase(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
    READY = "ready"
    ERROR = "error"
    QUIT = "quit"


class ViewMode(Enum):
    PS = "ps"
    LOGS = "logs"


@dataclass(frozen=True)
class Frame:
    """
    Read-only picture of the application for one render.

    Attributes:
        mode: Which dashboard is shown
        phase: Current AppPhase
        snapshot: Registry snapshot the frame was built from
        records: Records shown in the ps table (name filter applied)
        selected_id: Selected row in the ps view
        tabs: Watched ids in tab order (logs view)
        active_id: Id whose logs are shown
        lines: Visible log lines of the active buffer
        dropped_count: Lines evicted from the active buffer
        stalled: Whether the active buffer's stream ended
        stall_reason: Why it ended
        following: Whether the log view sticks to the newest lines
        status: Persistent status message (e.g. daemon unavailable)
        notice: Transient notice, if any
        container_filter: Current listing scope
        filter_text: Name filter for the ps view
        filter_editing: Whether the name filter is being typed
        inspect: Record shown in the inspect panel, if open
        highlighted: Ids added by the latest reconciliation
        stopping: Ids with a stop in flight
    """

    mode: ViewMode
    phase: AppPhase
    snapshot: RegistrySnapshot
    records: tuple[ContainerRecord, ...] = ()
    selected_id: str | None = None
    tabs: tuple[str, ...] = ()
    active_id: str | None = None
    lines: tuple[LogLine, ...] = ()
    dropped_count: int = 0
    stalled: bool = False
    stall_reason: str | None = None
    following: bool = True
    status: str | None = None
    notice: Notice | None = None
    container_filter: ContainerFilter = ContainerFilter.RUNNING
    filter_text: str = ""
    filter_editing: bool = False
    inspect: ContainerRecord | None = None
    highlighted: frozenset[str] = field(default_factory=frozenset)
    stopping: frozenset[str] = field(default_factory=frozenset)

    def name_of(self, container_id: str) -> str:
        record = self.snapshot.get(container_id)
        return record.name if record is not None else container_id[:12]


def matches_filter(record: ContainerRecord, text: str) -> bool:
    """Case-insensitive substring match on name, image and status."""
    if not text:
        return True
    needle = text.lower()
    return (
        needle in record.name.lower()
        or needle in record.image.lower()
        or needle in record.status.value
    )


class App:
    """
    Explicit application state mutated only by the render loop.

    Example:
        app = App(registry, dispatcher, multiplexer, mode=ViewMode.LOGS)
        app.start()
        await app.handle_event(event)     # from the event queue
        app.scroll(-1)                    # from a keypress
        frame = app.frame(viewport_height=30)
    """

    def __init__(
        self,
        registry: ContainerRegistry,
        dispatcher: ActionDispatcher,
        multiplexer: LogMultiplexer | None = None,
        tabs: TabOrder | None = None,
        notices: NoticeBoard | None = None,
        mode: ViewMode = ViewMode.PS,
    ) -> None:
        """
        Initialize application state.

        Args:
            registry: Source of snapshots; refreshed on request
            dispatcher: Executes stop requests
            multiplexer: Log workers (required for the logs view)
            tabs: Tab order for the logs view
            notices: Notice board for transient messages
            mode: Dashboard to show
        """
        if mode is ViewMode.LOGS and multiplexer is None:
            raise ValueError("logs view requires a multiplexer")
        self.registry = registry
        self.dispatcher = dispatcher
        self.multiplexer = multiplexer
        self.tabs = tabs if tabs is not None else TabOrder()
        self.notices = notices if notices is not None else NoticeBoard()
        self.mode = mode
        self.phase = AppPhase.IDLE
        self.status: str | None = None
        self.filter_text = ""
        self.filter_editing = False
        self.inspecting = False
        self.viewport_height = 20
        self._snapshot = RegistrySnapshot()
        self._visible: list[ContainerRecord] = []
        self._selected: str | None = None

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    @property
    def selected_id(self) -> str | None:
        return self._selected

    @property
    def running(self) -> bool:
        return self.phase is not AppPhase.QUIT

    def start(self) -> None:
        """Enter REFRESHING; the registry poll loop delivers the first snapshot."""
        if self.phase is AppPhase.IDLE:
            self.phase = AppPhase.REFRESHING

    async def close(self) -> None:
        """Stop the poll loop and tear down every log worker."""
        self.registry.stop()
        if self.multiplexer is not None:
            await self.multiplexer.stop_all()

    # Events

    async def handle_event(self, event: Event) -> None:
        """Apply one event from the queue."""
        if self.phase is AppPhase.QUIT:
            return
        match event:
            case RegistryRefreshed(snapshot=snapshot):
                await self._apply_snapshot(snapshot)
            case RefreshFailed(error=error):
                self.phase = AppPhase.ERROR
                self.status = str(error)
            case StreamStalled(container_id=cid, reason=reason):
                if self.mode is ViewMode.LOGS and cid == self.tabs.active_id:
                    self.notices.post(f"Log stream ended: {reason}", NoticeLevel.WARNING)
            case StopSucceeded(container_id=cid):
                self.notices.post(f"Stopped {self._name(cid)}", NoticeLevel.SUCCESS)
            case StopRejected(error=error):
                self.notices.post(str(error), NoticeLevel.ERROR)
                if self.phase is AppPhase.REFRESHING and not self.registry.refreshing:
                    self.phase = AppPhase.READY
            case _:
                logger.warning("Ignoring unknown event %r", event)

    async def _apply_snapshot(self, snapshot: RegistrySnapshot) -> None:
        self._snapshot = snapshot
        self.phase = AppPhase.READY
        self.status = None
        if self.multiplexer is not None:
            await self.multiplexer.sync(snapshot)
            self.tabs.sync(self.multiplexer.watched_ids(snapshot))
        self._update_visible()

    def _update_visible(self) -> None:
        previous = [r.id for r in self._visible]
        self._visible = [
            r for r in self._snapshot.records if matches_filter(r, self.filter_text)
        ]
        ids = [r.id for r in self._visible]
        if not ids:
            self._selected = None
        elif self._selected is None:
            self._selected = ids[0]
        elif self._selected not in ids:
            ordinal = previous.index(self._selected) if self._selected in previous else 0
            self._selected = ids[min(ordinal, len(ids) - 1)]

    # Actions

    def _begin_action(self) -> None:
        if self.phase is AppPhase.ERROR:
            self.registry.request_refresh()
            self.phase = AppPhase.REFRESHING

    def refresh(self) -> None:
        """Force an immediate reconciliation, joining one already in flight."""
        if not self.running:
            return
        self.registry.request_refresh(join=True)
        self.phase = AppPhase.REFRESHING

    def stop_selected(self) -> None:
        """Request a stop of the selected (ps) or active (logs) container."""
        if not self.running:
            return
        self._begin_action()
        target = self._target_id()
        if target is None:
            self.notices.post("No container selected", NoticeLevel.WARNING)
            return
        try:
            self.dispatcher.submit(target)
        except (NotFound, ActionInProgress) as e:
            self.notices.post(str(e), NoticeLevel.WARNING)
            return
        self.notices.post(f"Stopping {self._name(target)}...")
        self.phase = AppPhase.REFRESHING

    def select_next(self) -> None:
        self._move_selection(1)

    def select_previous(self) -> None:
        self._move_selection(-1)

    def _move_selection(self, delta: int) -> None:
        if not self.running:
            return
        self._begin_action()
        if not self._visible:
            return
        ids = [r.id for r in self._visible]
        index = ids.index(self._selected) if self._selected in ids else 0
        index = min(max(index + delta, 0), len(ids) - 1)
        self._selected = ids[index]

    def switch_tab(self, direction: int) -> None:
        """Activate the next (direction > 0) or previous tab."""
        if not self.running:
            return
        self._begin_action()
        if direction >= 0:
            self.tabs.next()
        else:
            self.tabs.previous()

    def scroll(self, delta: int) -> None:
        """Scroll the active log buffer; negative is towards older lines."""
        if not self.running:
            return
        self._begin_action()
        buffer = self._active_buffer()
        if buffer is not None:
            buffer.scroll(delta, self.viewport_height)

    def page(self, direction: int) -> None:
        self.scroll(direction * max(self.viewport_height - 1, 1))

    def scroll_top(self) -> None:
        if not self.running:
            return
        self._begin_action()
        buffer = self._active_buffer()
        if buffer is not None:
            buffer.scroll_to_top(self.viewport_height)

    def scroll_bottom(self) -> None:
        """Jump to the newest lines and resume following."""
        if not self.running:
            return
        self._begin_action()
        buffer = self._active_buffer()
        if buffer is not None:
            buffer.scroll_to_bottom(self.viewport_height)

    def toggle_inspect(self) -> None:
        if not self.running:
            return
        self._begin_action()
        self.inspecting = not self.inspecting

    def cycle_filter(self) -> None:
        """Rotate the listing scope (running, recent, all) and refresh."""
        if not self.running:
            return
        self.registry.scope = self.registry.scope.next()
        self.notices.post(f"Showing {self.registry.scope.value} containers")
        self.refresh()

    def begin_filter(self) -> None:
        if not self.running:
            return
        self._begin_action()
        self.filter_editing = True

    def end_filter(self) -> None:
        self.filter_editing = False

    def set_filter_text(self, text: str) -> None:
        if not self.running:
            return
        self.filter_text = text
        self._update_visible()

    def clear_filter(self) -> None:
        self.filter_editing = False
        self.set_filter_text("")

    def dismiss(self) -> None:
        """Hide the current notice and error status."""
        self.notices.dismiss()
        if self.phase is AppPhase.ERROR:
            self.status = None
            self._begin_action()

    def quit(self) -> None:
        self.phase = AppPhase.QUIT

    # Frames

    def frame(self, viewport_height: int) -> Frame:
        """
        Build the read-only frame for the given log viewport height.

        The height is remembered so that scroll actions use the same page
        size the adapter last rendered.
        """
        self.viewport_height = max(viewport_height, 1)
        buffer = self._active_buffer()
        lines: tuple[LogLine, ...] = ()
        if buffer is not None:
            # The stall marker takes the last row of the viewport
            rows = self.viewport_height - 1 if buffer.stalled else self.viewport_height
            lines = tuple(buffer.visible(rows))
        inspect = None
        if self.inspecting:
            target = self._target_id()
            inspect = self._snapshot.get(target) if target is not None else None
        return Frame(
            mode=self.mode,
            phase=self.phase,
            snapshot=self._snapshot,
            records=tuple(self._visible),
            selected_id=self._selected,
            tabs=tuple(self.tabs.ids),
            active_id=self.tabs.active_id,
            lines=lines,
            dropped_count=buffer.dropped_count if buffer is not None else 0,
            stalled=buffer.stalled if buffer is not None else False,
            stall_reason=buffer.stall_reason if buffer is not None else None,
            following=buffer.following if buffer is not None else True,
            status=self.status,
            notice=self.notices.current(),
            container_filter=self.registry.scope,
            filter_text=self.filter_text,
            filter_editing=self.filter_editing,
            inspect=inspect,
            highlighted=frozenset(self._snapshot.diff.added),
            stopping=frozenset(
                r.id for r in self._snapshot.records if self.dispatcher.in_flight(r.id)
            ),
        )

    def _active_buffer(self) -> LogBuffer | None:
        if self.multiplexer is None or self.tabs.active_id is None:
            return None
        return self.multiplexer.buffer(self.tabs.active_id)

    def _target_id(self) -> str | None:
        if self.mode is ViewMode.LOGS:
            return self.tabs.active_id
        return self._selected

    def _name(self, container_id: str) -> str:
        record = self._snapshot.get(container_id)
        return record.name if record is not None else container_id[:12]
