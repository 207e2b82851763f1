"""JSON snapshot codec for the record store.

Wire format: a JSON object whose keys are owner keys
(``namespace/kind/name``) and whose values are arrays of records::

    {
      "default/ReplicaSet/web-7f9c": [
        {
          "namespace": "default",
          "kind": "ReplicaSet",
          "kindName": "web-7f9c",
          "podName": "web-7f9c-abcde",
          "node": "worker-1",
          "creationTimestamp": "2024-03-01T10:00:00Z",
          "deletionTimestamp": null
        }
      ]
    }

Timestamps are RFC 3339 and must carry a timezone; they are written back in
UTC with a ``Z`` suffix.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import (
    AliasChoices,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
)

from podplacement.errors import DecodeError, EncodeError, RecordValidationError
from podplacement.models.records import LifecycleRecord


class SnapshotRecord(BaseModel):
    """Wire representation of one lifecycle record."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    namespace: str
    kind: str
    kind_name: str = Field(alias="kindName")
    pod_name: str = Field(alias="podName")
    node: str = ""
    # Older dumps spell the timestamp keys with a capital letter.
    creation_timestamp: AwareDatetime = Field(
        alias="creationTimestamp",
        validation_alias=AliasChoices("creationTimestamp", "CreationTimestamp", "creation_timestamp"),
    )
    deletion_timestamp: AwareDatetime | None = Field(
        default=None,
        alias="deletionTimestamp",
        validation_alias=AliasChoices("deletionTimestamp", "DeletionTimestamp", "deletion_timestamp"),
    )

    @field_serializer("creation_timestamp", "deletion_timestamp")
    def _serialize_timestamp(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return _format_timestamp(value)

    @classmethod
    def from_record(cls, record: LifecycleRecord) -> SnapshotRecord:
        return cls(
            namespace=record.namespace,
            kind=record.owner_kind,
            kind_name=record.owner_name,
            pod_name=record.pod_name,
            node=record.node,
            creation_timestamp=record.creation_timestamp,
            deletion_timestamp=record.deletion_timestamp,
        )

    def to_record(self) -> LifecycleRecord:
        return LifecycleRecord(
            namespace=self.namespace,
            owner_kind=self.kind,
            owner_name=self.kind_name,
            pod_name=self.pod_name,
            node=self.node,
            creation_timestamp=self.creation_timestamp,
            deletion_timestamp=self.deletion_timestamp,
        )


_SNAPSHOT_ADAPTER: TypeAdapter[dict[str, list[SnapshotRecord]]] = TypeAdapter(dict[str, list[SnapshotRecord]])


def _format_timestamp(value: datetime) -> str:
    text = value.astimezone(UTC).isoformat()
    return text.removesuffix("+00:00") + "Z"


def decode_snapshot(data: bytes | str) -> dict[str, list[LifecycleRecord]]:
    """Parse snapshot bytes into owner-grouped records.

    Raises:
        DecodeError: if *data* is not valid JSON, violates the schema, or
            files a record under an owner key that is not its own.
    """
    try:
        parsed = _SNAPSHOT_ADAPTER.validate_json(data)
    except ValidationError as exc:
        raise DecodeError(f"malformed snapshot: {exc.error_count()} validation error(s): {exc}") from exc

    groups: dict[str, list[LifecycleRecord]] = {}
    for key, wire_records in parsed.items():
        records: list[LifecycleRecord] = []
        for index, wire in enumerate(wire_records):
            try:
                record = wire.to_record()
            except RecordValidationError as exc:
                raise DecodeError(f"malformed snapshot: {key}[{index}]: {exc}") from exc
            if record.owner_key != key:
                raise DecodeError(
                    f"malformed snapshot: {key}[{index}] belongs to owner {record.owner_key!r}",
                )
            records.append(record)
        groups[key] = records
    return groups


def encode_snapshot(groups: dict[str, list[LifecycleRecord]]) -> bytes:
    """Serialize owner-grouped records to snapshot bytes.

    Raises:
        EncodeError: if any record cannot be represented in the wire schema.
    """
    try:
        wire = {key: [SnapshotRecord.from_record(record) for record in records] for key, records in groups.items()}
        return _SNAPSHOT_ADAPTER.dump_json(wire, by_alias=True)
    except (ValidationError, ValueError, TypeError, AttributeError) as exc:
        raise EncodeError(f"cannot encode snapshot: {exc}") from exc
