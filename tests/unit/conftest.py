"""Shared factories for podplacement unit tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from podplacement.models.records import LifecycleRecord

T0 = datetime(2024, 3, 1, 10, 0, 0, tzinfo=UTC)


def at(seconds: float) -> datetime:
    """Timestamp *seconds* after the fixed test epoch."""
    return T0 + timedelta(seconds=seconds)


def make_record(
    pod_name: str = "web-7f9c-aaaaa",
    created: float = 0,
    deleted: float | None = None,
    node: str = "worker-1",
    namespace: str = "ns",
    owner_kind: str = "ReplicaSet",
    owner_name: str = "rs1",
) -> LifecycleRecord:
    """Create a LifecycleRecord with timestamps given as offsets from T0."""
    return LifecycleRecord(
        namespace=namespace,
        owner_kind=owner_kind,
        owner_name=owner_name,
        pod_name=pod_name,
        node=node,
        creation_timestamp=at(created),
        deletion_timestamp=at(deleted) if deleted is not None else None,
    )
