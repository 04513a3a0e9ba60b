"""
Shared data types for the dockwatch core.

This module defines the value types passed between the daemon gateway,
the container registry, the log multiplexer and the presentation layer.
Records and snapshots are frozen dataclasses: once a snapshot is published
it is never mutated, consumers hold a reference to a consistent view.

Descriptors are the raw shape produced by a gateway. The registry turns
them into records during reconciliation.
"""

from dataclasses import dataclass, field
from enum import Enum

ContainerId = str
"""Opaque, stable identifier assigned by the container runtime."""


class ContainerStatus(Enum):
    """Lifecycle status of a container as seen by the registry."""

    RUNNING = "running"
    EXITED = "exited"
    RESTARTING = "restarting"
    UNKNOWN = "unknown"

    @classmethod
    def from_state(cls, state: str | None) -> "ContainerStatus":
        """
        Map a raw runtime state string to a status.

        Args:
            state: State reported by the daemon (e.g. "running", "dead")

        Returns:
            Matching status, UNKNOWN for anything unrecognized
        """
        value = (state or "").strip().lower()
        if value == "running":
            return cls.RUNNING
        if value in ("exited", "dead"):
            return cls.EXITED
        if value == "restarting":
            return cls.RESTARTING
        return cls.UNKNOWN


class ContainerFilter(Enum):
    """Which containers a listing should include."""

    RUNNING = "running"
    RECENT = "recent"
    ALL = "all"

    def next(self) -> "ContainerFilter":
        """Return the filter that follows this one in display order."""
        members = list(ContainerFilter)
        return members[(members.index(self) + 1) % len(members)]


class LogLevel(Enum):
    """Severity derived from log line content."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    DEBUG = "debug"
    UNKNOWN = "unknown"


@dataclass(frozen=True, order=True)
class PortMapping:
    """
    One published or exposed port of a container.

    Ordering is by container port, then protocol, so port lists render in
    a stable order regardless of daemon output order.

    Attributes:
        container_port: Port inside the container (e.g. 80)
        protocol: "tcp" or "udp"
        host_ip: Host interface the port is bound to, if published
        host_port: Host port, if published
    """

    container_port: int
    protocol: str = "tcp"
    host_ip: str | None = None
    host_port: int | None = None

    def __str__(self) -> str:
        if self.host_port is None:
            return f"{self.container_port}/{self.protocol}"
        host = self.host_ip or "0.0.0.0"
        return f"{host}:{self.host_port}->{self.container_port}/{self.protocol}"


@dataclass(frozen=True)
class ContainerDescriptor:
    """
    Raw container description as returned by a gateway listing.

    Attributes:
        id: Container id
        name: Container name without leading slash
        image: Image reference the container was created from
        state: Raw runtime state string
        addresses: IP addresses across attached networks
        ports: Port mappings in any order
    """

    id: ContainerId
    name: str
    image: str
    state: str
    addresses: tuple[str, ...] = ()
    ports: tuple[PortMapping, ...] = ()


@dataclass(frozen=True)
class ContainerRecord:
    """
    A container as tracked by the registry.

    Identity is the id; every other field is refreshed on each
    reconciliation that observes the container.

    Attributes:
        id: Unique, stable container id
        name: Display name
        image: Image reference
        status: Lifecycle status
        address: Primary IP address, if any
        ports: Ordered port mappings
        last_seen: Generation of the reconciliation that last observed it
        addresses: All known IP addresses (address is the first one)
    """

    id: ContainerId
    name: str
    image: str
    status: ContainerStatus
    address: str | None
    ports: tuple[PortMapping, ...]
    last_seen: int
    addresses: tuple[str, ...] = ()

    @classmethod
    def from_descriptor(
        cls, descriptor: ContainerDescriptor, generation: int
    ) -> "ContainerRecord":
        """Build a record from a gateway descriptor at a given generation."""
        addresses = tuple(a for a in descriptor.addresses if a)
        return cls(
            id=descriptor.id,
            name=descriptor.name,
            image=descriptor.image,
            status=ContainerStatus.from_state(descriptor.state),
            address=addresses[0] if addresses else None,
            ports=tuple(sorted(descriptor.ports)),
            last_seen=generation,
            addresses=addresses,
        )

    def same_fields(self, other: "ContainerRecord") -> bool:
        """True if every field except last_seen matches."""
        return (
            self.name == other.name
            and self.image == other.image
            and self.status == other.status
            and self.addresses == other.addresses
            and self.ports == other.ports
        )


@dataclass(frozen=True)
class RegistryDiff:
    """
    Result of one reconciliation against the previous snapshot.

    Attributes:
        added: Ids observed now but not before
        removed: Ids observed before but not now
        updated: Ids observed in both whose fields changed
    """

    added: tuple[ContainerId, ...] = ()
    removed: tuple[ContainerId, ...] = ()
    updated: tuple[ContainerId, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.updated)


@dataclass(frozen=True)
class RegistrySnapshot:
    """
    Immutable, ordered view of all known containers.

    Records are sorted by name with id as tie-break. Generation increases
    by one on every successful reconciliation; generation 0 is the empty
    snapshot that exists before the first refresh.

    Attributes:
        records: Records in display order
        generation: Reconciliation counter
        diff: Changes relative to the previous snapshot
    """

    records: tuple[ContainerRecord, ...] = ()
    generation: int = 0
    diff: RegistryDiff = field(default_factory=RegistryDiff)

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, container_id: object) -> bool:
        return any(r.id == container_id for r in self.records)

    def ids(self) -> list[ContainerId]:
        """Return ids in display order."""
        return [r.id for r in self.records]

    def get(self, container_id: ContainerId) -> ContainerRecord | None:
        """Return the record for an id, or None if absent."""
        for record in self.records:
            if record.id == container_id:
                return record
        return None

    def index_of(self, container_id: ContainerId) -> int | None:
        """Return the display position of an id, or None if absent."""
        for index, record in enumerate(self.records):
            if record.id == container_id:
                return index
        return None


@dataclass(frozen=True)
class LogLine:
    """
    One classified line of container output.

    Attributes:
        container_id: Container that produced the line
        sequence: Position since the watch started (0-based, gapless)
        level: Severity derived from the text
        text: Line content without trailing newline
        ingest_time: Monotonic time when the worker read the line
    """

    container_id: ContainerId
    sequence: int
    level: LogLevel
    text: str
    ingest_time: float
