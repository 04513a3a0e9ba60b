"""
Exception classes for the dockwatch core.

Failures are classified by where they are contained:
- DaemonUnavailable: a listing failed or timed out; the registry retries
- StreamInterrupted: one follow stream ended; local to its worker
- ActionFailed: a stop request failed; reported once, never retried
- ActionInProgress: a stop for the same container is still outstanding
- NotFound: an action referenced a container no longer known
- WatcherAlreadyRunning: a second watcher for one container was requested

Each exception stores its context in attributes and builds a readable
message, so callers can show str(exc) directly in the status line.
"""


class DockwatchError(Exception):
    """Base class for all dockwatch errors."""


class DaemonUnavailable(DockwatchError):
    """
    Raised when the container daemon cannot be listed.

    Attributes:
        reason: Why the listing failed (error text or "timed out")
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Docker daemon unavailable: {reason}")


class StreamInterrupted(DockwatchError):
    """
    Raised by a follow stream that ended or failed.

    Attributes:
        container_id: Container whose stream was interrupted
        reason: End-of-stream or I/O error description
    """

    def __init__(self, container_id: str, reason: str) -> None:
        self.container_id = container_id
        self.reason = reason
        super().__init__(f"Log stream for {container_id} interrupted: {reason}")


class ActionFailed(DockwatchError):
    """
    Raised when a lifecycle action was rejected by the daemon.

    Attributes:
        container_id: Target container
        reason: Failure description from the daemon or "timed out"
    """

    def __init__(self, container_id: str, reason: str) -> None:
        self.container_id = container_id
        self.reason = reason
        super().__init__(f"Action on {container_id} failed: {reason}")


class ActionInProgress(DockwatchError):
    """
    Raised when an action is requested while the same one is outstanding.

    Attributes:
        container_id: Container with an outstanding action
    """

    def __init__(self, container_id: str) -> None:
        self.container_id = container_id
        super().__init__(f"Action on {container_id} already in progress")


class NotFound(DockwatchError):
    """
    Raised when a container id is not known to the registry or daemon.

    Attributes:
        container_id: The missing container
    """

    def __init__(self, container_id: str) -> None:
        self.container_id = container_id
        super().__init__(f"Container {container_id} not found")


class WatcherAlreadyRunning(DockwatchError):
    """
    Raised when a watcher is started for a container that already has one.

    This indicates a bug in the caller, not a runtime race.

    Attributes:
        container_id: Container that is already watched
    """

    def __init__(self, container_id: str) -> None:
        self.container_id = container_id
        super().__init__(f"Container {container_id} is already being watched")
