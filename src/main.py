"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.wd_betting.api.router import router as bets_router
from src.wd_book.infrastructure.http_client import close_book_client
from src.wd_common.database import engine
from src.wd_common.errors import AppError
from src.wd_common.redis_client import close_redis, ping_redis
from src.wd_common.response import error_response
from src.wd_gateway.middleware.request_log import RequestLogMiddleware
from src.wd_ledger.api.router import router as ledger_router
from src.wd_market.api.router import router as market_router
from src.wd_selection.api.router import router as selection_router
from src.wd_settlement.application.service import get_reconciler, run_periodic_sync


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the settlement loop. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await ping_redis()
    sync_task: asyncio.Task[None] | None = None
    if settings.SETTLEMENT_SYNC_INTERVAL_SECONDS > 0:
        sync_task = asyncio.create_task(
            run_periodic_sync(get_reconciler(), settings.SETTLEMENT_SYNC_INTERVAL_SECONDS)
        )
    yield
    # Shutdown
    if sync_task is not None:
        sync_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sync_task
    await close_book_client()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(selection_router, prefix="/api/v1")
app.include_router(bets_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(market_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
