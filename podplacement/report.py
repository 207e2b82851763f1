"""Human- and machine-readable rendering of displacement results.

The minimum chain length filter is a display concern only; the analyzer
always computes every chain.
"""

from __future__ import annotations

import json
from typing import Any

from podplacement.models.displacement import DisplacementChain, DisplacementResult
from podplacement.models.records import LifecycleRecord


def filter_chains(result: DisplacementResult, min_length: int = 1) -> dict[str, list[DisplacementChain]]:
    """Keep chains with at least *min_length* displacements, dropping empty owners."""
    filtered: dict[str, list[DisplacementChain]] = {}
    for owner in sorted(result.chains):
        kept = [chain for chain in result.chains[owner] if chain.length >= min_length]
        if kept:
            filtered[owner] = kept
    return filtered


def format_chain(chain: DisplacementChain) -> str:
    """``ns/Kind/name/pod-a -> ns/Kind/name/pod-b -> ...``"""
    return " -> ".join(pod.unique_key for pod in chain.pods)


def format_nodes(chain: DisplacementChain) -> str:
    return " -> ".join(node or "<unscheduled>" for node in chain.nodes)


def render_text(result: DisplacementResult, min_length: int = 1) -> str:
    lines: list[str] = []
    for owner, chains in filter_chains(result, min_length).items():
        lines.append(owner)
        for chain in chains:
            lines.append(f"  {format_chain(chain)}")
            lines.append(f"    nodes: {format_nodes(chain)} ({chain.length} displacement(s))")
    if not lines:
        lines.append(f"no displacement chains with length >= {min_length}")
    return "\n".join(lines)


def pod_to_dict(pod: LifecycleRecord) -> dict[str, Any]:
    return {
        "pod": pod.pod_name,
        "node": pod.node,
        "created": pod.creation_timestamp.isoformat(),
        "deleted": pod.deletion_timestamp.isoformat() if pod.deletion_timestamp else None,
    }


def chain_to_dict(chain: DisplacementChain) -> dict[str, Any]:
    return {
        "length": chain.length,
        "pods": [pod_to_dict(pod) for pod in chain.pods],
        "nodes": chain.nodes,
    }


def result_to_dict(result: DisplacementResult, min_length: int = 1) -> dict[str, Any]:
    return {
        "computed_at": result.computed_at.isoformat() if result.computed_at else None,
        "min_length": min_length,
        "owners": {
            owner: [chain_to_dict(chain) for chain in chains]
            for owner, chains in filter_chains(result, min_length).items()
        },
    }


def render_json(result: DisplacementResult, min_length: int = 1) -> str:
    return json.dumps(result_to_dict(result, min_length), indent=2)
