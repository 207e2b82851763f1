"""Lifecycle record data structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from podplacement.errors import RecordValidationError

IdentityKey = tuple[str, str, str, str, datetime]


def owner_key(namespace: str, kind: str, name: str) -> str:
    """Return the ``namespace/kind/name`` key that groups pods of one controller."""
    return f"{namespace}/{kind}/{name}"


@dataclass(frozen=True)
class LifecycleRecord:
    """One observation of a pod, seen through one of its owner references.

    Produced by the pod watcher or the snapshot codec. Immutable: the
    deduplicator reconciles observations by picking one record, never by
    mutating it.
    """

    namespace: str
    owner_kind: str
    owner_name: str
    pod_name: str
    node: str
    creation_timestamp: datetime
    deletion_timestamp: datetime | None = None

    def __post_init__(self) -> None:
        for attr in ("owner_kind", "owner_name", "pod_name"):
            if not getattr(self, attr):
                raise RecordValidationError(f"lifecycle record requires a non-empty {attr}")
        if not isinstance(self.creation_timestamp, datetime):
            raise RecordValidationError(f"pod {self.pod_name!r} has no creation timestamp")
        if self.creation_timestamp.tzinfo is None:
            raise RecordValidationError(f"pod {self.pod_name!r} has a naive creation timestamp")
        if self.deletion_timestamp is not None:
            if not isinstance(self.deletion_timestamp, datetime):
                raise RecordValidationError(f"pod {self.pod_name!r} has an invalid deletion timestamp")
            if self.deletion_timestamp.tzinfo is None:
                raise RecordValidationError(f"pod {self.pod_name!r} has a naive deletion timestamp")
            if self.deletion_timestamp < self.creation_timestamp:
                raise RecordValidationError(
                    f"pod {self.pod_name!r} deleted at {self.deletion_timestamp.isoformat()} "
                    f"before its creation at {self.creation_timestamp.isoformat()}"
                )

    @property
    def owner_key(self) -> str:
        return owner_key(self.namespace, self.owner_kind, self.owner_name)

    @property
    def identity_key(self) -> IdentityKey:
        """Key of the pod instance; creation time tells apart pods reusing a name."""
        return (
            self.namespace,
            self.owner_kind,
            self.owner_name,
            self.pod_name,
            self.creation_timestamp,
        )

    @property
    def unique_key(self) -> str:
        return f"{self.owner_key}/{self.pod_name}"

    @property
    def deleted(self) -> bool:
        return self.deletion_timestamp is not None

    def __str__(self) -> str:
        return (
            f"ns={self.namespace}, kind={self.owner_kind}, kindname={self.owner_name}, "
            f"podname={self.pod_name}, node={self.node}, "
            f"ct={self.creation_timestamp.isoformat()}, "
            f"dt={self.deletion_timestamp.isoformat() if self.deletion_timestamp else None}"
        )
