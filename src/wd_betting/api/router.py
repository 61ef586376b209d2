"""wd_betting REST API: distribution, bet history, settlement sync. All require JWT."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_betting.application import service as bet_service
from src.wd_betting.application.schemas import DistributeRequest, SyncSettlementsRequest
from src.wd_betting.application.service import DistributionService
from src.wd_common.database import get_db_session
from src.wd_common.response import ApiResponse, error_response, success_response
from src.wd_gateway.auth.dependencies import CurrentUser, get_current_user
from src.wd_settlement.application.service import sync_settlements

router = APIRouter(prefix="/bets", tags=["bets"])

_service = DistributionService()

# Envelope code for a distribution where nothing was placed
NOTHING_PLACED_CODE = 4003


@router.post("/distribute", status_code=201, response_model=None)
async def distribute(
    body: DistributeRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse | JSONResponse:
    result = await _service.distribute(db, current_user, body)
    request_id = getattr(request.state, "request_id", None)
    if not result.succeeded:
        # Per-account detail is returned even when nothing was placed
        message = result.aborted_reason or "No placement succeeded"
        resp = error_response(NOTHING_PLACED_CODE, message, result.model_dump())
        resp.request_id = request_id or resp.request_id
        return JSONResponse(
            status_code=422,
            content=resp.model_dump(),
        )
    resp = success_response(result.model_dump())
    resp.request_id = request_id or resp.request_id
    return resp


@router.get("")
async def list_bets(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    match_id: str | None = Query(None, max_length=64),
    status: str | None = Query(None, description="Filter by BetStatus"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await bet_service.list_bets(db, current_user, match_id, status, cursor, limit)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/tickets")
async def list_tickets(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await bet_service.list_tickets(db, current_user, cursor, limit)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/sync-settlements")
async def sync(
    body: SyncSettlementsRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await sync_settlements(db, current_user, body.account_ids)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
