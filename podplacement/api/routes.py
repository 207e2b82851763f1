"""REST API route handlers.

All handlers read their collaborators from ``request.app.state``; see
``podplacement.api.app.create_app``.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response

from podplacement.analysis.analyzer import DisplacementAnalyzer
from podplacement.api.schemas import (
    ChainView,
    DisplacementsResponse,
    ErrorResponse,
    HealthResponse,
    OwnerDisplacementsResponse,
    RecomputeResponse,
    SnapshotImportResponse,
)
from podplacement.models.records import owner_key
from podplacement.report import chain_to_dict, filter_chains, result_to_dict

router = APIRouter()


def _analyzer(request: Request) -> DisplacementAnalyzer:
    return request.app.state.analyzer  # type: ignore[no-any-return]


def _threshold(request: Request, min_length: int | None) -> int:
    """Explicit query value, else the configured PODPLACEMENT_MIN_CHAIN_LENGTH."""
    return min_length if min_length is not None else int(request.app.state.min_chain_length)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    from podplacement import __version__

    analyzer = _analyzer(request)
    computed_at = analyzer.result().computed_at
    return HealthResponse(
        version=__version__,
        records=len(analyzer.store),
        last_recompute=computed_at.isoformat() if computed_at else None,
    )


@router.get("/displacements", response_model=DisplacementsResponse)
async def list_displacements(
    request: Request,
    min_length: int | None = Query(default=None, ge=1),
) -> DisplacementsResponse:
    threshold = _threshold(request, min_length)
    return DisplacementsResponse.model_validate(result_to_dict(_analyzer(request).result(), threshold))


@router.get(
    "/displacements/{namespace}/{kind}/{name}",
    response_model=OwnerDisplacementsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def owner_displacements(
    request: Request,
    namespace: str,
    kind: str,
    name: str,
    min_length: int | None = Query(default=None, ge=1),
) -> OwnerDisplacementsResponse | JSONResponse:
    result = _analyzer(request).result()
    key = owner_key(namespace, kind, name)
    chains = filter_chains(result, _threshold(request, min_length)).get(key)
    if chains is None:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(
                error="OWNER_NOT_FOUND",
                detail=f"no displacement chains recorded for {key}",
            ).model_dump(),
        )
    return OwnerDisplacementsResponse(
        owner=key,
        computed_at=result.computed_at.isoformat() if result.computed_at else None,
        chains=[ChainView.model_validate(chain_to_dict(chain)) for chain in chains],
    )


@router.post("/recompute", response_model=RecomputeResponse)
async def recompute(request: Request) -> RecomputeResponse:
    result = _analyzer(request).recompute()
    assert result.computed_at is not None
    return RecomputeResponse(
        computed_at=result.computed_at.isoformat(),
        owners_analyzed=result.owners_analyzed,
        records_analyzed=result.records_analyzed,
        owners_with_chains=len(result.chains),
        chains=result.chain_count,
        edges=result.edge_count,
    )


@router.get("/snapshot", responses={500: {"model": ErrorResponse}})
async def export_snapshot(request: Request) -> Response:
    # EncodeError is mapped to SNAPSHOT_ENCODE_FAILED by the app-level handler.
    return Response(content=_analyzer(request).export_snapshot(), media_type="application/json")


@router.put(
    "/snapshot",
    response_model=SnapshotImportResponse,
    responses={400: {"model": ErrorResponse}},
)
async def import_snapshot(request: Request) -> SnapshotImportResponse:
    analyzer = _analyzer(request)
    analyzer.import_snapshot(await request.body())
    return SnapshotImportResponse(
        owners=len(analyzer.store.owner_keys()),
        records=len(analyzer.store),
    )
