"""Tests for LifecycleRecord keys and validation."""

from __future__ import annotations

from datetime import datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from podplacement.analysis.analyzer import DisplacementAnalyzer
from podplacement.errors import PodPlacementError, RecordValidationError
from podplacement.models.records import LifecycleRecord, owner_key

from .conftest import T0, at, make_record


class TestKeys:
    def test_owner_key_format(self) -> None:
        record = make_record(namespace="prod", owner_kind="StatefulSet", owner_name="db")
        assert record.owner_key == "prod/StatefulSet/db"
        assert owner_key("prod", "StatefulSet", "db") == record.owner_key

    def test_unique_key_appends_pod_name(self) -> None:
        record = make_record(pod_name="db-0", namespace="prod", owner_kind="StatefulSet", owner_name="db")
        assert record.unique_key == "prod/StatefulSet/db/db-0"

    def test_identity_key_includes_creation_time(self) -> None:
        """A reused pod name with a new creation time is a different instance."""
        first = make_record(pod_name="db-0", created=0)
        second = make_record(pod_name="db-0", created=100)
        assert first.identity_key != second.identity_key

    def test_identity_key_ignores_node_and_deletion(self) -> None:
        added = make_record(pod_name="p", created=0, node="")
        deleted = make_record(pod_name="p", created=0, deleted=50, node="worker-2")
        assert added.identity_key == deleted.identity_key

    def test_deleted_property(self) -> None:
        assert make_record(deleted=5).deleted is True
        assert make_record().deleted is False


class TestValidation:
    def test_missing_creation_timestamp_rejected(self) -> None:
        with pytest.raises(RecordValidationError):
            LifecycleRecord(
                namespace="ns",
                owner_kind="ReplicaSet",
                owner_name="rs1",
                pod_name="p",
                node="",
                creation_timestamp=None,  # type: ignore[arg-type]
            )

    def test_naive_creation_timestamp_rejected(self) -> None:
        with pytest.raises(RecordValidationError, match="naive"):
            LifecycleRecord(
                namespace="ns",
                owner_kind="ReplicaSet",
                owner_name="rs1",
                pod_name="p",
                node="",
                creation_timestamp=datetime(2024, 1, 1),
            )

    def test_naive_deletion_timestamp_rejected(self) -> None:
        with pytest.raises(RecordValidationError):
            LifecycleRecord(
                namespace="ns",
                owner_kind="ReplicaSet",
                owner_name="rs1",
                pod_name="p",
                node="",
                creation_timestamp=T0,
                deletion_timestamp=datetime(2024, 1, 1),
            )

    @pytest.mark.parametrize("field", ["owner_kind", "owner_name", "pod_name"])
    def test_empty_identity_fields_rejected(self, field: str) -> None:
        kwargs = {
            "namespace": "ns",
            "owner_kind": "ReplicaSet",
            "owner_name": "rs1",
            "pod_name": "p",
            "node": "",
            "creation_timestamp": at(0),
        }
        kwargs[field] = ""
        with pytest.raises(RecordValidationError, match=field):
            LifecycleRecord(**kwargs)  # type: ignore[arg-type]

    def test_validation_error_is_value_error(self) -> None:
        assert issubclass(RecordValidationError, ValueError)
        assert issubclass(RecordValidationError, PodPlacementError)

    def test_empty_node_allowed(self) -> None:
        record = make_record(node="")
        assert record.node == ""

    def test_deletion_before_creation_rejected(self) -> None:
        with pytest.raises(RecordValidationError, match="before its creation"):
            make_record("a", created=5, deleted=1)

    def test_zero_lifetime_allowed(self) -> None:
        record = make_record("a", created=5, deleted=5)
        assert record.deletion_timestamp == record.creation_timestamp

    def test_analyzer_never_sees_backwards_records(self) -> None:
        analyzer = DisplacementAnalyzer()
        with pytest.raises(RecordValidationError):
            analyzer.record(make_record("a", created=5, deleted=1))
        assert len(analyzer.store) == 0


class TestLifetimeProperty:
    @given(
        created=st.integers(min_value=0, max_value=1000),
        deleted=st.integers(min_value=0, max_value=1000),
    )
    @settings(max_examples=200, deadline=None)
    def test_accepted_iff_deleted_not_before_created(self, created: int, deleted: int) -> None:
        if deleted < created:
            with pytest.raises(RecordValidationError):
                make_record("p", created=created, deleted=deleted)
        else:
            assert make_record("p", created=created, deleted=deleted).deleted
