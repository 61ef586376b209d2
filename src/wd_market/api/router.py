"""wd_market REST API: snapshot ingest and read-back."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request

from src.wd_common.datetime_utils import utc_now
from src.wd_common.errors import ValidationError
from src.wd_common.redis_client import get_redis
from src.wd_common.response import ApiResponse, success_response
from src.wd_gateway.auth.dependencies import CurrentUser, get_current_user, require_admin
from src.wd_market.application.schemas import SnapshotUpsertRequest
from src.wd_market.domain.models import MarketSnapshot
from src.wd_market.infrastructure.snapshot_cache import SnapshotCache

router = APIRouter(prefix="/markets", tags=["markets"])

_VALID_BUCKETS = {
    f"{category}:{scope}"
    for category in ("moneyline", "handicap", "overunder")
    for scope in ("full", "half")
}


async def get_snapshot_cache() -> SnapshotCache:
    return SnapshotCache(await get_redis())


@router.put("/{match_id}/snapshot")
async def put_snapshot(
    body: SnapshotUpsertRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    cache: Annotated[SnapshotCache, Depends(get_snapshot_cache)],
    request: Request,
    match_id: str = Path(..., min_length=1, max_length=64),
) -> ApiResponse:
    unknown = sorted(set(body.lines) - _VALID_BUCKETS)
    if unknown:
        raise ValidationError(f"Unknown market buckets: {', '.join(unknown)}")
    snapshot = MarketSnapshot(
        match_id=match_id,
        updated_at=body.updated_at or utc_now(),
        lines=body.lines,
    )
    await cache.put(snapshot)
    resp = success_response(snapshot.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{match_id}/snapshot")
async def get_snapshot(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    cache: Annotated[SnapshotCache, Depends(get_snapshot_cache)],
    request: Request,
    match_id: str = Path(..., min_length=1, max_length=64),
) -> ApiResponse:
    snapshot = await cache.get(match_id)
    resp = success_response(snapshot.model_dump(mode="json") if snapshot else None)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
