"""
PendingGuard: at most one outstanding operation per key.

Used by the action dispatcher so that a second stop for a container whose
first stop has not finished is refused instead of reaching the daemon.
The guard only tracks claims; it does not own or cancel the work.
"""

import contextlib
from collections.abc import Iterator

from dockwatch.exceptions import ActionInProgress


class PendingGuard:
    """
    Set of keys with an operation in flight.

    Example:
        guard = PendingGuard()
        with guard.hold(cid):
            await do_work(cid)     # a concurrent hold(cid) raises here
    """

    def __init__(self) -> None:
        self._pending: set[str] = set()

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def claim(self, key: str) -> None:
        """
        Mark a key as in flight.

        Raises:
            ActionInProgress: If the key is already claimed
        """
        if key in self._pending:
            raise ActionInProgress(key)
        self._pending.add(key)

    def release(self, key: str) -> None:
        """Clear a claim. Releasing an unclaimed key is a no-op."""
        self._pending.discard(key)

    @contextlib.contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Claim a key for the duration of a with block."""
        self.claim(key)
        try:
            yield
        finally:
            self.release(key)
