"""Pydantic request/response schemas for the REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""

    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    records: int
    last_recompute: str | None = None


class PodView(BaseModel):
    pod: str
    node: str
    created: str
    deleted: str | None = None


class ChainView(BaseModel):
    length: int = Field(ge=1)
    pods: list[PodView]
    nodes: list[str]


class DisplacementsResponse(BaseModel):
    """Displacement chains per owner key, filtered by minimum length."""

    computed_at: str | None
    min_length: int
    owners: dict[str, list[ChainView]] = Field(default_factory=dict)


class OwnerDisplacementsResponse(BaseModel):
    owner: str
    computed_at: str | None
    chains: list[ChainView] = Field(default_factory=list)


class RecomputeResponse(BaseModel):
    computed_at: str
    owners_analyzed: int
    records_analyzed: int
    owners_with_chains: int
    chains: int
    edges: int


class SnapshotImportResponse(BaseModel):
    owners: int
    records: int
