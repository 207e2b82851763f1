"""Displacement edge, chain and result data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from podplacement.models.records import LifecycleRecord


@dataclass(frozen=True)
class DisplacementEdge:
    """``source`` was deleted and is interpreted as replaced by ``target``.

    Edges are derived on every recomputation and only reference records
    owned by the record store.
    """

    source: LifecycleRecord
    target: LifecycleRecord


@dataclass(frozen=True)
class DisplacementChain:
    """A maximal walk of displacement edges within one owner group."""

    edges: tuple[DisplacementEdge, ...]

    @property
    def length(self) -> int:
        """Number of displacements (edges) in the chain."""
        return len(self.edges)

    @property
    def pods(self) -> list[LifecycleRecord]:
        """Pods in displacement order, first displaced pod first."""
        if not self.edges:
            return []
        return [self.edges[0].source] + [edge.target for edge in self.edges]

    @property
    def nodes(self) -> list[str]:
        """Node path the workload slot travelled through."""
        return [pod.node for pod in self.pods]

    @property
    def start(self) -> LifecycleRecord:
        return self.edges[0].source


@dataclass
class DisplacementResult:
    """Chains computed per owner key by one recomputation pass."""

    chains: dict[str, list[DisplacementChain]] = field(default_factory=dict)
    computed_at: datetime | None = None
    owners_analyzed: int = 0
    records_analyzed: int = 0

    @property
    def chain_count(self) -> int:
        return sum(len(chains) for chains in self.chains.values())

    @property
    def edge_count(self) -> int:
        return sum(chain.length for chains in self.chains.values() for chain in chains)
