"""Record storage for podplacement.

Submodules:
    record_store -- Thread-safe, owner-grouped, append-only record store.
    snapshot     -- JSON snapshot codec (import/export of the store).
"""

from podplacement.store.record_store import RecordStore
from podplacement.store.snapshot import SnapshotRecord, decode_snapshot, encode_snapshot

__all__ = ["RecordStore", "SnapshotRecord", "decode_snapshot", "encode_snapshot"]
