"""
Layout factory for the dashboards.

Layout structure:
+-----------------------------------------------+
|  Header (3 rows fixed): tabs or filter line   |
+-------------------------------+---------------+
|  Main (ratio=1, flex)         |  Inspect      |
|  container table / log lines  |  (40 cols,    |
|                               |  when open)   |
+-------------------------------+---------------+
|  Footer (3 rows fixed): status, notice, keys  |
+-----------------------------------------------+
"""

from rich.layout import Layout
from rich.panel import Panel

HEADER_ROWS = 3
FOOTER_ROWS = 3
INSPECT_COLUMNS = 40
# Panel borders above and below the main content
MAIN_CHROME_ROWS = 2


def create_layout() -> Layout:
    """
    Create the dashboard layout.

    Access regions via:
    - layout["header"]
    - layout["body"]["main"]
    - layout["body"]["inspect"] (hidden until opened)
    - layout["footer"]
    """
    layout = Layout(name="root")
    layout.split_column(
        Layout(name="header", size=HEADER_ROWS),
        Layout(name="body"),
        Layout(name="footer", size=FOOTER_ROWS),
    )
    layout["body"].split_row(
        Layout(name="main"),
        Layout(name="inspect", size=INSPECT_COLUMNS, visible=False),
    )
    return layout


def viewport_height(terminal_height: int) -> int:
    """Log lines that fit in the main panel for a terminal height."""
    return max(1, terminal_height - HEADER_ROWS - FOOTER_ROWS - MAIN_CHROME_ROWS)


def make_panel(content, title: str, style: str = "blue") -> Panel:
    """
    Create a styled panel with content.

    Args:
        content: Renderable or markup string
        title: Panel title (will be bolded)
        style: Border style color (default "blue")
    """
    return Panel(
        content,
        title=f"[bold]{title}[/bold]",
        border_style=style,
        padding=(0, 1),
    )
