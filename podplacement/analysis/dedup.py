"""Collapse repeated observations of one pod instance into a canonical record.

A pod is usually observed at least twice: once when it is added (no
deletion timestamp yet) and once when it is deleted. Both observations share
the identity key, and the one carrying the deletion timestamp wins.
"""

from __future__ import annotations

import structlog

from podplacement.models.records import IdentityKey, LifecycleRecord
from podplacement.observability.metrics import inconsistent_observations_total

_log = structlog.get_logger(component="analysis.dedup")


def deduplicate(records: list[LifecycleRecord]) -> list[LifecycleRecord]:
    """Return one canonical record per identity key, in first-seen order."""
    canonical: dict[IdentityKey, LifecycleRecord] = {}
    for record in records:
        key = record.identity_key
        current = canonical.get(key)
        if current is None:
            canonical[key] = record
            continue
        if _conflicts(current, record):
            _report_inconsistency(current, record)
        if current.deletion_timestamp is None and record.deletion_timestamp is not None:
            canonical[key] = record
    return list(canonical.values())


def _conflicts(current: LifecycleRecord, record: LifecycleRecord) -> bool:
    """Two observations disagree in a way the deletion merge cannot explain."""
    if current.deletion_timestamp is not None and record.deletion_timestamp is not None:
        if current.deletion_timestamp != record.deletion_timestamp:
            return True
    # An empty node only means the pod was not scheduled yet when observed.
    return bool(current.node and record.node and current.node != record.node)


def _report_inconsistency(current: LifecycleRecord, record: LifecycleRecord) -> None:
    inconsistent_observations_total.inc()
    _log.warning(
        "inconsistent_observation",
        owner=current.owner_key,
        pod=current.pod_name,
        kept_node=current.node,
        seen_node=record.node,
        kept_deletion=current.deletion_timestamp.isoformat() if current.deletion_timestamp else None,
        seen_deletion=record.deletion_timestamp.isoformat() if record.deletion_timestamp else None,
    )
