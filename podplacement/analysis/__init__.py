"""Displacement analysis for podplacement.

Submodules:
    dedup    -- Reconciles repeated observations of one pod instance.
    matcher  -- Greedy temporal matching of deletions to later creations.
    chains   -- Assembles matched edges into maximal displacement chains.
    analyzer -- DisplacementAnalyzer: record sink, recompute and snapshots.
"""

from podplacement.analysis.analyzer import DisplacementAnalyzer, analyze_owner
from podplacement.analysis.chains import assemble_chains
from podplacement.analysis.dedup import deduplicate
from podplacement.analysis.matcher import match_displacements

__all__ = [
    "DisplacementAnalyzer",
    "analyze_owner",
    "assemble_chains",
    "deduplicate",
    "match_displacements",
]
