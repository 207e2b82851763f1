"""End-to-end tests: watch events -> analyzer -> snapshot -> REST API.

Each test replays a realistic sequence of pod lifecycle events for a small
cluster and checks the displacement chains visible through every surface.
"""

from __future__ import annotations

import json

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from podplacement.analysis.analyzer import DisplacementAnalyzer
from podplacement.api.app import create_app
from podplacement.report import render_text

from .conftest import Timeline, make_pod

_WEB = "default/ReplicaSet/web-7f9c"
_DB = "default/StatefulSet/db"


def _replay_rollout(timeline: Timeline) -> None:
    """A ReplicaSet losing two pods in turn plus a StatefulSet pod rescheduled under the same name."""
    web_a = make_pod("web-7f9c-a", created=0, node="n1")
    web_b = make_pod("web-7f9c-b", created=0.5, node="n2")
    db_0 = make_pod("db-0", created=0, node="n2", owners=[("StatefulSet", "db")])
    timeline.add(web_a)
    timeline.add(web_b)
    timeline.add(db_0)
    # Pods without a controller never contribute records.
    timeline.add(make_pod("debug-shell", created=1, owners=[]))

    timeline.delete(web_a, at_minutes=10)
    web_c = make_pod("web-7f9c-c", created=11, node="n3")
    timeline.add(web_c)
    timeline.delete(web_c, at_minutes=20)
    timeline.add(make_pod("web-7f9c-d", created=21, node="n1"))

    # Graceful deletion: the manifest timestamp wins over the observation time.
    timeline.delete(make_pod("db-0", created=0, node="n2", owners=[("StatefulSet", "db")], deleted=30), at_minutes=35)
    timeline.add(make_pod("db-0", created=31, node="n3", owners=[("StatefulSet", "db")]))


class TestWatchToAnalysis:
    def test_chains_from_replayed_events(self, analyzer: DisplacementAnalyzer, timeline: Timeline) -> None:
        _replay_rollout(timeline)
        result = analyzer.recompute()

        assert sorted(result.chains) == [_DB, _WEB]
        (web_chain,) = result.chains[_WEB]
        assert [pod.pod_name for pod in web_chain.pods] == ["web-7f9c-a", "web-7f9c-c", "web-7f9c-d"]
        assert web_chain.nodes == ["n1", "n3", "n1"]

        (db_chain,) = result.chains[_DB]
        assert db_chain.length == 1
        assert [pod.pod_name for pod in db_chain.pods] == ["db-0", "db-0"]
        assert db_chain.nodes == ["n2", "n3"]
        assert db_chain.pods[0].deletion_timestamp < db_chain.pods[1].creation_timestamp

    def test_text_report(self, analyzer: DisplacementAnalyzer, timeline: Timeline) -> None:
        _replay_rollout(timeline)
        text = render_text(analyzer.recompute(), min_length=2)
        assert f"{_WEB}/web-7f9c-a -> {_WEB}/web-7f9c-c -> {_WEB}/web-7f9c-d" in text
        assert _DB not in text

    def test_conflicting_observations_are_counted(self, analyzer: DisplacementAnalyzer, timeline: Timeline) -> None:
        before = REGISTRY.get_sample_value("podplacement_inconsistent_observations_total") or 0.0
        timeline.add(make_pod("web-7f9c-x", created=0, node="n1"))
        timeline.add(make_pod("web-7f9c-x", created=0, node="n2"))
        analyzer.recompute()
        after = REGISTRY.get_sample_value("podplacement_inconsistent_observations_total")
        assert after == before + 1


class TestSnapshotAndApi:
    def test_snapshot_carries_analysis_to_another_instance(
        self, analyzer: DisplacementAnalyzer, timeline: Timeline
    ) -> None:
        _replay_rollout(timeline)
        original = analyzer.recompute()

        restored = DisplacementAnalyzer()
        restored.import_snapshot(analyzer.export_snapshot())
        assert restored.recompute().chains == original.chains

    def test_api_serves_replayed_chains(self, analyzer: DisplacementAnalyzer, timeline: Timeline) -> None:
        _replay_rollout(timeline)
        client = TestClient(create_app(analyzer=analyzer), raise_server_exceptions=False)

        summary = client.post("/api/v1/recompute").json()
        assert summary["owners_with_chains"] == 2
        assert summary["edges"] == 3

        body = client.get("/api/v1/displacements/default/ReplicaSet/web-7f9c").json()
        (chain,) = body["chains"]
        assert chain["nodes"] == ["n1", "n3", "n1"]
        assert chain["pods"][0]["deleted"] == "2024-03-01T08:10:00+00:00"

    def test_snapshot_upload_then_query(self, analyzer: DisplacementAnalyzer, timeline: Timeline) -> None:
        _replay_rollout(timeline)
        exported = TestClient(create_app(analyzer=analyzer)).get("/api/v1/snapshot").content

        fresh = DisplacementAnalyzer()
        client = TestClient(create_app(analyzer=fresh), raise_server_exceptions=False)
        assert client.put("/api/v1/snapshot", content=exported).json()["owners"] == 2
        client.post("/api/v1/recompute")
        owners = client.get("/api/v1/displacements", params={"min_length": 2}).json()["owners"]
        assert list(owners) == [_WEB]
        assert json.loads(exported)[_DB][0]["podName"] == "db-0"
