"""Prometheus metrics for the displacement analyzer.

All metrics live in the default registry so ``/metrics`` exposes them
without extra wiring.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

records_ingested_total = Counter(
    "podplacement_records_ingested_total",
    "Lifecycle records appended to the record store.",
    ["source"],
)

inconsistent_observations_total = Counter(
    "podplacement_inconsistent_observations_total",
    "Observations of one pod instance that disagree beyond a missing deletion timestamp.",
)

unmatched_deletions_total = Counter(
    "podplacement_unmatched_deletions_total",
    "Deleted pods left without a replacement once creation candidates ran out.",
)

displacement_chains = Gauge(
    "podplacement_displacement_chains",
    "Displacement chains in the most recent result.",
)

recompute_duration_seconds = Histogram(
    "podplacement_recompute_duration_seconds",
    "Wall time of a full displacement recomputation.",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)
