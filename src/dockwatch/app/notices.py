"""Transient status notices (toasts) with expiry."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class NoticeLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """
    A message shown until it expires.

    Attributes:
        text: Message to display
        level: Severity, used for styling
        expires_at: Clock value after which the notice is hidden
    """

    text: str
    level: NoticeLevel
    expires_at: float


class NoticeBoard:
    """
    Holds the most recent notice.

    A new notice replaces the previous one. Expired notices are dropped
    lazily when read.
    """

    def __init__(
        self, duration: float = 3.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.duration = duration
        self._clock = clock
        self._notice: Notice | None = None

    def post(self, text: str, level: NoticeLevel = NoticeLevel.INFO) -> Notice:
        self._notice = Notice(text, level, self._clock() + self.duration)
        return self._notice

    def current(self) -> Notice | None:
        """Return the active notice, or None if there is none or it expired."""
        if self._notice is not None and self._clock() >= self._notice.expires_at:
            self._notice = None
        return self._notice

    def dismiss(self) -> None:
        self._notice = None
