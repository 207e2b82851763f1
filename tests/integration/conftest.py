"""Shared fixtures for podplacement integration tests.

Builds realistic pod manifests and snapshot payloads so integration tests
can exercise the watcher -> analyzer -> API pipeline without a cluster.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from podplacement.analysis.analyzer import DisplacementAnalyzer
from podplacement.collector.pod_watcher import PodWatcher

# ---------------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------------

_EPOCH = datetime(2024, 3, 1, 8, 0, 0, tzinfo=UTC)


def ts(minutes: float) -> datetime:
    return _EPOCH + timedelta(minutes=minutes)


def rfc3339(minutes: float) -> str:
    return ts(minutes).strftime("%Y-%m-%dT%H:%M:%SZ")


# ---------------------------------------------------------------------------
# Manifest factory helpers
# ---------------------------------------------------------------------------


def make_pod(
    name: str,
    created: float,
    node: str = "worker-1",
    namespace: str = "default",
    owners: list[tuple[str, str]] | None = None,
    deleted: float | None = None,
) -> dict[str, Any]:
    """Create a pod manifest dict as delivered in a watch event's raw_object."""
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "resourceVersion": str(int(created * 100)),
        "creationTimestamp": rfc3339(created),
        "ownerReferences": [
            {"apiVersion": "apps/v1", "kind": kind, "name": owner, "controller": True}
            for kind, owner in (owners if owners is not None else [("ReplicaSet", "web-7f9c")])
        ],
    }
    if deleted is not None:
        metadata["deletionTimestamp"] = rfc3339(deleted)
    return {"metadata": metadata, "spec": {"nodeName": node}, "status": {"phase": "Running"}}


class Timeline:
    """Replays pod add/delete events through a PodWatcher at controlled times."""

    def __init__(self, analyzer: DisplacementAnalyzer) -> None:
        self.now = ts(0)
        self.watcher = PodWatcher(core_v1=None, sink=analyzer.record, now=lambda: self.now)

    def add(self, pod: dict[str, Any]) -> None:
        self.watcher.handle_event("ADDED", pod)

    def delete(self, pod: dict[str, Any], at_minutes: float) -> None:
        self.now = ts(at_minutes)
        self.watcher.handle_event("DELETED", pod)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def analyzer() -> DisplacementAnalyzer:
    return DisplacementAnalyzer()


@pytest.fixture
def timeline(analyzer: DisplacementAnalyzer) -> Timeline:
    return Timeline(analyzer)
