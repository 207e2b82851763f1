"""Displacement Analyzer: the entry point surrounding components talk to.

Owns the record store and the last computed result. Recomputation is
pull-based: records accumulate through ``record()`` and nothing is derived
until ``recompute()`` runs the full dedup -> match -> chain pipeline over a
consistent snapshot of the store.
"""

from __future__ import annotations

import threading
import time
from datetime import UTC, datetime

import structlog

from podplacement.analysis.chains import assemble_chains
from podplacement.analysis.dedup import deduplicate
from podplacement.analysis.matcher import match_displacements
from podplacement.models.displacement import DisplacementChain, DisplacementResult
from podplacement.models.records import LifecycleRecord
from podplacement.observability.metrics import displacement_chains, recompute_duration_seconds
from podplacement.store.record_store import RecordStore
from podplacement.store.snapshot import decode_snapshot, encode_snapshot

_log = structlog.get_logger(component="analysis.analyzer")


def analyze_owner(records: list[LifecycleRecord]) -> list[DisplacementChain]:
    """Run dedup, matching and chain assembly for one owner group."""
    unique = deduplicate(records)
    if not unique:
        return []
    return assemble_chains(match_displacements(unique))


class DisplacementAnalyzer:
    """Record sink plus on-demand displacement chain computation.

    ``record`` may be called from any thread. ``recompute`` reads a snapshot
    of the store and swaps in a complete new result; readers calling
    ``result`` never observe a half-built one.
    """

    def __init__(self, store: RecordStore | None = None) -> None:
        self._store = store or RecordStore()
        self._result_lock = threading.Lock()
        self._result = DisplacementResult()

    @property
    def store(self) -> RecordStore:
        return self._store

    def record(self, element: LifecycleRecord, source: str = "direct") -> None:
        """Append one lifecycle record. No analysis happens here."""
        self._store.record(element, source=source)

    def recompute(self) -> DisplacementResult:
        """Recompute every owner's chains from the full store and replace the result."""
        t_start = time.monotonic()
        groups = self._store.snapshot()

        chains: dict[str, list[DisplacementChain]] = {}
        records_analyzed = 0
        for key, records in groups.items():
            records_analyzed += len(records)
            owner_chains = analyze_owner(records)
            if owner_chains:
                chains[key] = owner_chains

        result = DisplacementResult(
            chains=chains,
            computed_at=datetime.now(tz=UTC),
            owners_analyzed=len(groups),
            records_analyzed=records_analyzed,
        )
        with self._result_lock:
            self._result = result

        duration = time.monotonic() - t_start
        recompute_duration_seconds.observe(duration)
        displacement_chains.set(result.chain_count)
        _log.info(
            "recompute_finished",
            owners=result.owners_analyzed,
            records=records_analyzed,
            owners_with_chains=len(chains),
            chains=result.chain_count,
            edges=result.edge_count,
            duration_ms=round(duration * 1000.0, 3),
        )
        return result

    def result(self) -> DisplacementResult:
        """Return the last computed result (empty before the first recompute)."""
        with self._result_lock:
            return self._result

    def import_snapshot(self, data: bytes | str) -> None:
        """Replace the record store with the content of a JSON snapshot.

        Raises:
            DecodeError: on malformed input; the store is left unchanged.
        """
        groups = decode_snapshot(data)
        self._store.replace(groups)
        _log.info(
            "snapshot_imported",
            owners=len(groups),
            records=sum(len(records) for records in groups.values()),
        )

    def export_snapshot(self) -> bytes:
        """Serialize the record store to JSON snapshot bytes.

        Raises:
            EncodeError: if the store cannot be serialized.
        """
        groups = self._store.snapshot()
        data = encode_snapshot(groups)
        _log.debug("snapshot_exported", owners=len(groups), size=len(data))
        return data
