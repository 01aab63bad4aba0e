"""FastAPI application for the meet room broker."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .core.config import settings
from .core.errors import RoomServiceError
from .db.session import SessionLocal, engine, get_session
from .models.base import Base
from .routers import auth as auth_router
from .routers import rooms as rooms_router
from .routers import rtc as rtc_router
from .services.sweeper import ExpirationSweeper

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Starting meet broker (env=%s)", settings.app_env)
    if settings.database_auto_create:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    sweeper = ExpirationSweeper(SessionLocal, settings.room_sweep_interval_seconds)
    app.state.sweeper = sweeper
    if settings.room_sweeper_enabled:
        sweeper.start()
    try:
        yield
    finally:
        await sweeper.stop()
        await engine.dispose()
        logger.info("Meet broker stopped")


app = FastAPI(title="Meet Broker API", version="0.1.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RoomServiceError)
async def room_service_error_handler(request: Request, exc: RoomServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled database error on %s", request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Storage is unavailable"})


app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
app.include_router(rooms_router.public_router, prefix="/api/public/rooms", tags=["rooms"])
app.include_router(rooms_router.router, prefix="/api/rooms", tags=["rooms"])
app.include_router(rtc_router.router, prefix="/api/rooms", tags=["rtc"])


@app.get("/api/health", tags=["meta"])
async def health(session: AsyncSession = Depends(get_session)) -> JSONResponse:
    """Report liveness together with database reachability."""

    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        return JSONResponse(status_code=503, content={"status": "error", "database": "unhealthy"})
    return JSONResponse(content={"status": "ok", "database": "healthy"})


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)
