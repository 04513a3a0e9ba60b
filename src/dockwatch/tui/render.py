"""
Frame rendering with rich.

Every function here is pure: it takes a Frame (or part of one) and returns
a renderable. Log text is wrapped in rich Text, never parsed as markup,
since container output may contain square brackets.
"""

from rich.console import Group
from rich.layout import Layout
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from dockwatch.app import AppPhase, Frame, NoticeLevel, ViewMode
from dockwatch.tui.bindings import help_text
from dockwatch.tui.layout import make_panel
from dockwatch.types import ContainerRecord, ContainerStatus, LogLevel, PortMapping

MAX_ADDRESSES = 3

LEVEL_STYLES = {
    LogLevel.ERROR: "red",
    LogLevel.WARN: "yellow",
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "default",
    LogLevel.UNKNOWN: "default",
}

STATUS_STYLES = {
    ContainerStatus.RUNNING: "green",
    ContainerStatus.EXITED: "red",
    ContainerStatus.RESTARTING: "yellow",
    ContainerStatus.UNKNOWN: "dim",
}

NOTICE_STYLES = {
    NoticeLevel.INFO: "cyan",
    NoticeLevel.SUCCESS: "green",
    NoticeLevel.WARNING: "yellow",
    NoticeLevel.ERROR: "bold red",
}


def format_addresses(addresses: tuple[str, ...] | list[str], limit: int = MAX_ADDRESSES) -> str:
    """
    Join addresses for display, truncating long lists.

    Example:
        format_addresses(["a", "b", "c", "d", "e"])  # "a, b, c, ... (+2)"
    """
    if not addresses:
        return "-"
    shown = ", ".join(addresses[:limit])
    if len(addresses) > limit:
        return f"{shown}, ... (+{len(addresses) - limit})"
    return shown


def format_ports(ports: tuple[PortMapping, ...]) -> str:
    if not ports:
        return "-"
    return ", ".join(str(p) for p in ports)


def render_table(frame: Frame) -> Table:
    """Container table for the ps view."""
    table = Table(expand=True, box=None, header_style="bold")
    table.add_column("NAME", ratio=2, no_wrap=True)
    table.add_column("IMAGE", ratio=2, no_wrap=True)
    table.add_column("STATUS", width=11)
    table.add_column("ADDRESS", ratio=2, no_wrap=True)
    table.add_column("PORTS", ratio=3, no_wrap=True)

    for record in frame.records:
        status = record.status.value
        if record.id in frame.stopping:
            status = "stopping"
        style = ""
        if record.id == frame.selected_id:
            style = "reverse"
        elif record.id in frame.highlighted:
            style = "bold cyan"
        table.add_row(
            Text(record.name),
            Text(record.image),
            Text(status, style=STATUS_STYLES[record.status]),
            Text(format_addresses(record.addresses)),
            Text(format_ports(record.ports)),
            style=style,
        )
    return table


def render_tabs(frame: Frame) -> Text:
    """Tab strip for the logs view, active tab highlighted."""
    if not frame.tabs:
        return Text("no containers watched", style="dim")
    text = Text()
    for index, cid in enumerate(frame.tabs):
        if index:
            text.append(" │ ", style="dim")
        style = "bold reverse" if cid == frame.active_id else ""
        text.append(f" {frame.name_of(cid)} ", style=style)
    return text


def render_lines(frame: Frame) -> Group | Text:
    """Visible log lines, colored by level."""
    if frame.active_id is None:
        return Text("Waiting for containers...", style="dim")
    rows = [Text(line.text, style=LEVEL_STYLES[line.level], no_wrap=True) for line in frame.lines]
    if frame.stalled:
        rows.append(Text(f"-- stream ended: {frame.stall_reason} --", style="bold yellow"))
    if not rows:
        return Text("No output yet", style="dim")
    return Group(*rows)


def render_inspect(record: ContainerRecord | None) -> Table | Text:
    """Detail view of one record."""
    if record is None:
        return Text("Nothing selected", style="dim")
    grid = Table.grid(padding=(0, 1))
    grid.add_column(style="bold")
    grid.add_column()
    grid.add_row("Name", Text(record.name))
    grid.add_row("ID", Text(record.id[:12]))
    grid.add_row("Image", Text(record.image))
    grid.add_row("Status", Text(record.status.value, style=STATUS_STYLES[record.status]))
    grid.add_row("Address", Text(record.address or "-"))
    if len(record.addresses) > 1:
        grid.add_row("Networks", Text("\n".join(record.addresses)))
    grid.add_row("Ports", Text("\n".join(str(p) for p in record.ports) or "-"))
    grid.add_row("Seen", Text(f"generation {record.last_seen}"))
    return grid


def render_header(frame: Frame) -> Text:
    if frame.mode is ViewMode.LOGS:
        return render_tabs(frame)
    text = Text(f"{len(frame.records)} of {len(frame.snapshot)} containers")
    text.append(f"  [{frame.container_filter.value}]", style="cyan")
    if frame.filter_editing or frame.filter_text:
        text.append("  filter: ", style="bold")
        text.append(frame.filter_text)
        if frame.filter_editing:
            text.append("█", style="blink")
    return text


def render_footer(frame: Frame) -> Text:
    text = Text()
    if frame.notice is not None:
        text.append(frame.notice.text, style=NOTICE_STYLES[frame.notice.level])
    elif frame.status is not None:
        text.append(frame.status, style="bold red")
    elif frame.phase is AppPhase.REFRESHING:
        text.append("Refreshing...", style="dim")
    text.append("\n")
    text.append(help_text(frame.mode), style="dim")
    return text


def _main_title(frame: Frame) -> str:
    if frame.mode is ViewMode.PS:
        return "Containers"
    if frame.active_id is None:
        return "Logs"
    title = escape(frame.name_of(frame.active_id))
    if frame.dropped_count:
        title += f" ({frame.dropped_count} dropped)"
    if not frame.following:
        title += " (paused)"
    return title


def render_frame(layout: Layout, frame: Frame) -> None:
    """Update every layout region from a frame."""
    error = frame.phase is AppPhase.ERROR
    layout["header"].update(make_panel(render_header(frame), "dockwatch", "cyan"))

    if frame.mode is ViewMode.PS:
        main = render_table(frame)
    else:
        main = render_lines(frame)
    style = "red" if error else ("yellow" if frame.stalled else "blue")
    layout["body"]["main"].update(make_panel(main, _main_title(frame), style))

    inspect = layout["body"]["inspect"]
    inspect.visible = frame.inspect is not None
    if frame.inspect is not None:
        inspect.update(make_panel(render_inspect(frame.inspect), "Inspect", "magenta"))

    layout["footer"].update(make_panel(render_footer(frame), "Status", "red" if error else "green"))
