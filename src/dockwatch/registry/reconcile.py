"""
Set reconciliation of a fresh container listing against a snapshot.

Pure functions with no I/O: given the previous snapshot and the
descriptors from one gateway listing, build the next snapshot and the
diff that explains it. Keyed by container id; record object identity is
irrelevant, only field values are compared.
"""

import logging
from collections.abc import Iterable

from dockwatch.types import (
    ContainerDescriptor,
    ContainerRecord,
    RegistryDiff,
    RegistrySnapshot,
)

logger = logging.getLogger(__name__)


def sort_key(record: ContainerRecord) -> tuple[str, str]:
    """Display order: name ascending, id as a stable tie-break."""
    return (record.name, record.id)


def reconcile(
    previous: RegistrySnapshot,
    descriptors: Iterable[ContainerDescriptor],
) -> RegistrySnapshot:
    """
    Build the next snapshot from a gateway listing.

    Duplicate ids in one listing keep the first descriptor, so the result
    never holds two records with the same id.

    Args:
        previous: Snapshot currently published
        descriptors: Raw containers from the gateway

    Returns:
        New snapshot with generation = previous.generation + 1
    """
    generation = previous.generation + 1

    current: dict[str, ContainerRecord] = {}
    for descriptor in descriptors:
        if descriptor.id in current:
            logger.warning("Duplicate container id %s in listing, keeping first", descriptor.id)
            continue
        current[descriptor.id] = ContainerRecord.from_descriptor(descriptor, generation)

    before = {r.id: r for r in previous.records}

    added = [cid for cid in current if cid not in before]
    removed = [cid for cid in before if cid not in current]
    updated = [
        cid
        for cid, record in current.items()
        if cid in before and not record.same_fields(before[cid])
    ]

    records = tuple(sorted(current.values(), key=sort_key))
    order = {r.id: i for i, r in enumerate(records)}
    previous_order = {r.id: i for i, r in enumerate(previous.records)}

    diff = RegistryDiff(
        added=tuple(sorted(added, key=order.__getitem__)),
        removed=tuple(sorted(removed, key=previous_order.__getitem__)),
        updated=tuple(sorted(updated, key=order.__getitem__)),
    )
    return RegistrySnapshot(records=records, generation=generation, diff=diff)
