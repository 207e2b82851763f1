"""Core data structures for podplacement."""

from podplacement.models.config import PodPlacementConfig
from podplacement.models.displacement import (
    DisplacementChain,
    DisplacementEdge,
    DisplacementResult,
)
from podplacement.models.records import IdentityKey, LifecycleRecord, owner_key

__all__ = [
    "DisplacementChain",
    "DisplacementEdge",
    "DisplacementResult",
    "IdentityKey",
    "LifecycleRecord",
    "PodPlacementConfig",
    "owner_key",
]
