"""Assemble displacement edges into maximal chains."""

from __future__ import annotations

from podplacement.models.displacement import DisplacementChain, DisplacementEdge
from podplacement.models.records import IdentityKey


def assemble_chains(edges: list[DisplacementEdge]) -> list[DisplacementChain]:
    """Walk *edges* into chains, one per pod that never replaced another.

    Each pod is the source of at most one edge and the target of at most
    one, so following ``next_of`` from every start vertex visits every edge
    exactly once.
    """
    next_of: dict[IdentityKey, DisplacementEdge] = {}
    has_incoming: set[IdentityKey] = set()
    for edge in edges:
        next_of[edge.source.identity_key] = edge
        has_incoming.add(edge.target.identity_key)

    chains: list[DisplacementChain] = []
    for edge in edges:
        start = edge.source.identity_key
        if start in has_incoming:
            continue
        walk: list[DisplacementEdge] = []
        visited: set[IdentityKey] = set()
        vertex = start
        while vertex in next_of and vertex not in visited:
            visited.add(vertex)
            step = next_of[vertex]
            walk.append(step)
            vertex = step.target.identity_key
        chains.append(DisplacementChain(edges=tuple(walk)))
    return chains
