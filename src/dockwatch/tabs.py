"""
TabOrder: which watched container's log buffer is on screen.

The tab list mirrors the watched ids in snapshot order. The active tab is
tracked by id, so reordering after a refresh never changes which container
is shown. When the active container disappears, the tab at the same
position takes over, or the one before it if the removed tab was last.

Switching tabs only changes the active id. No buffer is touched.
"""

from collections.abc import Iterable


class TabOrder:
    """
    Ordered tab list with an active entry.

    Example:
        tabs = TabOrder()
        tabs.sync(["a", "b", "c"])   # "a" becomes active
        tabs.next()                  # "b"
        tabs.sync(["a", "c"])        # "b" removed, "c" takes ordinal 1
        tabs.active_id               # "c"
    """

    def __init__(self, wrap: bool = True) -> None:
        """
        Initialize an empty tab list.

        Args:
            wrap: next()/previous() wrap around at the ends instead of
                stopping there
        """
        self.wrap = wrap
        self._ids: list[str] = []
        self._active: str | None = None

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    @property
    def active_id(self) -> str | None:
        return self._active

    @property
    def active_index(self) -> int | None:
        if self._active is None:
            return None
        return self._ids.index(self._active)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, container_id: object) -> bool:
        return container_id in self._ids

    def sync(self, ids: Iterable[str]) -> str | None:
        """
        Replace the tab list, keeping the active id where possible.

        Args:
            ids: Watched ids in snapshot order

        Returns:
            The active id after the update
        """
        previous = self._ids
        self._ids = list(dict.fromkeys(ids))

        if not self._ids:
            self._active = None
        elif self._active is None:
            self._active = self._ids[0]
        elif self._active not in self._ids:
            ordinal = previous.index(self._active)
            self._active = self._ids[min(ordinal, len(self._ids) - 1)]
        return self._active

    def select(self, container_id: str) -> bool:
        """Make a tab active. Returns False if the id has no tab."""
        if container_id not in self._ids:
            return False
        self._active = container_id
        return True

    def next(self) -> str | None:
        return self._step(1)

    def previous(self) -> str | None:
        return self._step(-1)

    def _step(self, direction: int) -> str | None:
        if not self._ids:
            return None
        index = self.active_index
        if index is None:
            index = 0
        else:
            index += direction
            if self.wrap:
                index %= len(self._ids)
            else:
                index = min(max(index, 0), len(self._ids) - 1)
        self._active = self._ids[index]
        return self._active
