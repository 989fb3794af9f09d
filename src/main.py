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

from config.settings import settings
from src.bj_account.api.goals_router import router as goals_router
from src.bj_account.api.router import router as account_router
from src.bj_account.api.wagers_router import router as wagers_router
from src.bj_bot.api.dependencies import close_bot_clients
from src.bj_bot.api.router import router as telegram_router
from src.bj_common.errors import AppError
from src.bj_common.redis_client import close_redis, get_redis
from src.bj_common.response import error_response
from src.bj_gateway.api.router import router as auth_router
from src.bj_gateway.middleware.request_log import RequestLogMiddleware

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the Redis connection. Shutdown: close Redis and HTTP clients."""
    # Startup
    if settings.KV_BACKEND == "redis":
        redis = await get_redis()
        await redis.ping()
    yield
    # Shutdown
    await close_bot_clients()
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
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(wagers_router, prefix="/api/v1")
app.include_router(goals_router, prefix="/api/v1")
app.include_router(telegram_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
