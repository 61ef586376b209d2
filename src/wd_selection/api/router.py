"""wd_selection REST API: account selection preview for a match."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_common.database import get_db_session
from src.wd_common.response import ApiResponse, success_response
from src.wd_gateway.auth.dependencies import CurrentUser, get_current_user
from src.wd_selection.application.schemas import SelectionResponse
from src.wd_selection.application.service import AccountSelectionService

router = APIRouter(prefix="/accounts", tags=["accounts"])

_service = AccountSelectionService()


@router.get("/selection")
async def select_accounts(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    match_id: str = Query(..., min_length=1, max_length=64),
    limit: int | None = Query(None, ge=1, le=500, description="Maximum eligible accounts"),
) -> ApiResponse:
    result = await _service.select_accounts(db, current_user, match_id, limit)
    resp = success_response(SelectionResponse.from_result(result).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
