"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.pm_account.api.leaderboard_router import router as leaderboard_router
from src.pm_account.api.positions_router import router as positions_router
from src.pm_account.api.router import router as account_router
from src.pm_common.database import async_session_factory, engine
from src.pm_common.errors import AppError
from src.pm_common.response import error_response
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_ledger.domain.store import LedgerStoreProtocol
from src.pm_ledger.infrastructure.memory_store import InMemoryLedgerStore
from src.pm_ledger.infrastructure.sql_store import SqlLedgerStore
from src.pm_market.infrastructure.gamma_feed import GammaPriceFeed
from src.pm_matching.application.service import build_services, init_services
from src.pm_order.api.router import router as order_router

logger = logging.getLogger(__name__)


async def _build_store() -> LedgerStoreProtocol:
    if settings.LEDGER_BACKEND == "memory":
        logger.warning("LEDGER_BACKEND=memory: balances and orders are not durable")
        return InMemoryLedgerStore()
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return SqlLedgerStore(async_session_factory)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: store, price feed, engine services, fill scheduler. Shutdown: reverse."""
    store = await _build_store()
    feed = GammaPriceFeed(
        settings.PRICE_FEED_URL,
        settings.PRICE_FEED_EVENT_SLUGS,
        timeout_seconds=settings.PRICE_FEED_TIMEOUT_SECONDS,
    )
    services = build_services(
        store,
        feed,
        poll_interval_seconds=settings.FILL_POLL_INTERVAL_SECONDS,
        balance_write_retries=settings.BALANCE_WRITE_MAX_RETRIES,
    )
    init_services(services)
    if settings.FILL_SCHEDULER_ENABLED:
        services.scheduler.start()
    yield
    # Shutdown
    await services.scheduler.stop()
    init_services(None)
    await feed.aclose()
    await engine.dispose()


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


app.include_router(account_router, prefix="/api/v1")
app.include_router(positions_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")
app.include_router(leaderboard_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
