"""Temporal matching of deleted pods to the pods that replaced them.

Within one owner group every deleted pod is paired with the earliest pod
created at or after its deletion that no earlier deletion has claimed.
Deletions are visited in deletion-time order and a single cursor walks the
creation-ordered pods; the cursor never moves backwards, so each candidate
is consumed at most once. Once the cursor runs off the end, matching stops
for the whole group: later deletions are left unmatched rather than
re-examining already skipped candidates.

This is a greedy heuristic, not an optimal assignment. Ties resolve by the
stable sort order of the deduplicated input.
"""

from __future__ import annotations

from datetime import datetime

import structlog

from podplacement.models.displacement import DisplacementEdge
from podplacement.models.records import LifecycleRecord
from podplacement.observability.metrics import unmatched_deletions_total

_log = structlog.get_logger(component="analysis.matcher")


def _deletion_sort_key(record: LifecycleRecord) -> tuple[int, datetime]:
    # Records that were never deleted sort first; the matcher skips them.
    if record.deletion_timestamp is None:
        return (0, record.creation_timestamp)
    return (1, record.deletion_timestamp)


def match_displacements(records: list[LifecycleRecord]) -> list[DisplacementEdge]:
    """Pair deleted pods with their replacements.

    Args:
        records: Deduplicated records of a single owner group.

    Returns:
        Edges in the order deletions were matched.
    """
    by_creation = sorted(records, key=lambda r: r.creation_timestamp)
    by_deletion = sorted(records, key=_deletion_sort_key)

    edges: list[DisplacementEdge] = []
    j = 0
    size = len(by_creation)
    for position, deleted in enumerate(by_deletion):
        deleted_at = deleted.deletion_timestamp
        if deleted_at is None:
            continue
        while j < size and (by_creation[j].creation_timestamp < deleted_at or by_creation[j] is deleted):
            j += 1
        if j >= size:
            remaining = sum(1 for r in by_deletion[position:] if r.deletion_timestamp is not None)
            unmatched_deletions_total.inc(remaining)
            _log.debug(
                "creation_candidates_exhausted",
                owner=deleted.owner_key,
                pod=deleted.pod_name,
                unmatched=remaining,
            )
            break
        edges.append(DisplacementEdge(source=deleted, target=by_creation[j]))
        j += 1
    return edges
