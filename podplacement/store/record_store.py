"""Append-only, owner-grouped store of lifecycle records.

Records accumulate exactly as observed; duplicates are expected and are
reconciled later by the deduplicator. The store is shared between the pod
watcher (many inserts) and the analyzer (full reads), so every access to the
underlying mapping happens under one lock.
"""

from __future__ import annotations

import threading

import structlog

from podplacement.errors import RecordValidationError
from podplacement.models.records import LifecycleRecord
from podplacement.observability.metrics import records_ingested_total

_log = structlog.get_logger(component="store.record_store")


class RecordStore:
    """Thread-safe mapping of owner key -> records in insertion order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._groups: dict[str, list[LifecycleRecord]] = {}

    def record(self, element: LifecycleRecord, source: str = "direct") -> None:
        """Append *element* under its owner key.

        *source* labels the ingest counter: ``watch`` for the pod watcher,
        ``direct`` for callers appending records themselves.
        """
        if not isinstance(element, LifecycleRecord):
            raise RecordValidationError(f"expected a LifecycleRecord, got {type(element).__name__}")
        key = element.owner_key
        with self._lock:
            self._groups.setdefault(key, []).append(element)
        records_ingested_total.labels(source=source).inc()
        _log.debug(
            "record_ingested",
            owner=key,
            pod=element.pod_name,
            node=element.node,
            deleted=element.deleted,
        )

    def snapshot(self) -> dict[str, list[LifecycleRecord]]:
        """Return a consistent copy of every owner group.

        The lists are copied so later appends never show up in a snapshot;
        records themselves are immutable and shared.
        """
        with self._lock:
            return {key: list(records) for key, records in self._groups.items()}

    def replace(self, groups: dict[str, list[LifecycleRecord]], source: str = "snapshot") -> None:
        """Swap the entire content of the store for *groups*."""
        fresh = {key: list(records) for key, records in groups.items()}
        with self._lock:
            self._groups = fresh
        records_ingested_total.labels(source=source).inc(sum(len(records) for records in fresh.values()))

    def reset(self) -> None:
        with self._lock:
            self._groups = {}

    def owner_keys(self) -> list[str]:
        with self._lock:
            return list(self._groups)

    def get(self, key: str) -> list[LifecycleRecord]:
        with self._lock:
            return list(self._groups.get(key, []))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(records) for records in self._groups.values())
