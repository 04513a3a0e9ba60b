"""
Application state and transient notices.

- App: explicit state object mutated only by the render loop
- Frame: read-only view handed to the presentation layer
- NoticeBoard: toasts with expiry
"""

from dockwatch.app.notices import Notice, NoticeBoard, NoticeLevel
from dockwatch.app.state import App, AppPhase, Frame, ViewMode, matches_filter

__all__ = [
    "App",
    "AppPhase",
    "Frame",
    "Notice",
    "NoticeBoard",
    "NoticeLevel",
    "ViewMode",
    "matches_filter",
]
