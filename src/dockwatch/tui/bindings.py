"""
Key bindings for the dashboards.

Maps raw keys (characters or escape sequences) to App actions. The table
is split by view so the same key can mean "select" in ps and "scroll" in
logs.
"""

from dockwatch.app import App, ViewMode

UP = "\x1b[A"
DOWN = "\x1b[B"
RIGHT = "\x1b[C"
LEFT = "\x1b[D"
PAGE_UP = "\x1b[5~"
PAGE_DOWN = "\x1b[6~"
HOME = ("\x1b[H", "\x1b[1~", "\x1bOH")
END = ("\x1b[F", "\x1b[4~", "\x1bOF")
ESCAPE = "\x1b"
ENTER = ("\r", "\n")
BACKSPACE = ("\x7f", "\x08")
TAB = "\t"
SHIFT_TAB = "\x1b[Z"

# Method name on App followed by its arguments
Action = tuple

COMMON: dict[str, Action] = {
    "q": ("quit",),
    "Q": ("quit",),
    "r": ("refresh",),
    "s": ("stop_selected",),
    "i": ("toggle_inspect",),
    "f": ("cycle_filter",),
    ESCAPE: ("dismiss",),
}

PS_KEYS: dict[str, Action] = {
    UP: ("select_previous",),
    "k": ("select_previous",),
    DOWN: ("select_next",),
    "j": ("select_next",),
    "/": ("begin_filter",),
    "c": ("clear_filter",),
}

LOGS_KEYS: dict[str, Action] = {
    TAB: ("switch_tab", 1),
    RIGHT: ("switch_tab", 1),
    "l": ("switch_tab", 1),
    SHIFT_TAB: ("switch_tab", -1),
    LEFT: ("switch_tab", -1),
    "h": ("switch_tab", -1),
    UP: ("scroll", -1),
    "k": ("scroll", -1),
    DOWN: ("scroll", 1),
    "j": ("scroll", 1),
    PAGE_UP: ("page", -1),
    PAGE_DOWN: ("page", 1),
    "g": ("scroll_top",),
    "G": ("scroll_bottom",),
    **{key: ("scroll_top",) for key in HOME},
    **{key: ("scroll_bottom",) for key in END},
}


def handle_filter_key(app: App, key: str) -> None:
    """Edit the name filter while it is being typed."""
    if key in ENTER:
        app.end_filter()
    elif key == ESCAPE:
        app.clear_filter()
    elif key in BACKSPACE:
        app.set_filter_text(app.filter_text[:-1])
    elif len(key) == 1 and key.isprintable():
        app.set_filter_text(app.filter_text + key)


def dispatch_key(app: App, key: str) -> bool:
    """
    Apply the action bound to a key.

    Returns:
        True if the key was bound (or consumed by the filter editor)
    """
    if app.filter_editing:
        handle_filter_key(app, key)
        return True
    view_keys = LOGS_KEYS if app.mode is ViewMode.LOGS else PS_KEYS
    action = view_keys.get(key) or COMMON.get(key)
    if action is None:
        return False
    name, *args = action
    getattr(app, name)(*args)
    return True


def help_text(mode: ViewMode) -> str:
    if mode is ViewMode.LOGS:
        return "tab/←→ switch  ↑↓ scroll  PgUp/PgDn page  g/G top/bottom  s stop  i inspect  f filter  r refresh  q quit"
    return "↑↓ select  / search  c clear  s stop  i inspect  f filter  r refresh  q quit"
