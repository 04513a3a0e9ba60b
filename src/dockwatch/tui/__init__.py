"""
Terminal presentation for dockwatch.

- DashboardController: signal handling, Live rendering and task wiring
- KeyboardTask: executor-backed keyboard reader
- render_frame, create_layout: pure rich rendering of App frames
"""

from dockwatch.tui.controller import DashboardController
from dockwatch.tui.keyboard import KeyboardTask
from dockwatch.tui.layout import create_layout
from dockwatch.tui.render import render_frame

__all__ = ["DashboardController", "KeyboardTask", "create_layout", "render_frame"]
