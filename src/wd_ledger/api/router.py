"""wd_ledger REST API: balance, funding postings and history. All require JWT."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_common.database import get_db_session
from src.wd_common.response import ApiResponse, success_response
from src.wd_gateway.auth.dependencies import CurrentUser, get_current_user, require_admin
from src.wd_ledger.application.schemas import (
    AdjustmentRequest,
    RechargeRequest,
    TransferRequest,
)
from src.wd_ledger.application.service import LedgerApplicationService

router = APIRouter(prefix="/ledger", tags=["ledger"])

_service = LedgerApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    user_id: str | None = Query(None, description="Defaults to the caller"),
) -> ApiResponse:
    data = await _service.get_balance(db, current_user, user_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/recharge")
async def recharge(
    body: RechargeRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.recharge(
        db, current_user, body.target_user_id, body.amount_cents, body.description
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/transfer")
async def transfer(
    body: TransferRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.transfer(
        db, current_user, body.target_user_id, body.amount_cents, body.description
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/adjustments")
async def adjust(
    body: AdjustmentRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.adjust(
        db, admin, body.user_id, body.amount_cents, body.description
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/entries")
async def list_entries(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    user_id: str | None = Query(None, description="Defaults to the caller"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    target_id = await _service.viewable_user_id(db, current_user, user_id)
    data = await _service.list_entries(db, target_id, cursor, limit, entry_type)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/summary")
async def summary(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    user_id: str | None = Query(None, description="Defaults to the caller"),
) -> ApiResponse:
    target_id = await _service.viewable_user_id(db, current_user, user_id)
    data = await _service.summary(db, target_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
