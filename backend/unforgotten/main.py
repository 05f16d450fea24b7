"""
Unforgotten core
FastAPI Application Entry Point
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from unforgotten.config import settings
from unforgotten.database import async_engine, local_engine, LocalBase
from unforgotten.logger_config import setup_logger, configure_root_logger
from unforgotten.api import calendar, notes
from unforgotten.api.deps import close_sync_services

logger = setup_logger("unforgotten")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    configure_root_logger()
    async with local_engine.begin() as conn:
        # The local note store is created on first run; the remote store
        # is managed with Alembic migrations
        await conn.run_sync(LocalBase.metadata.create_all)
    logger.info("Unforgotten core started")
    yield
    # Shutdown
    await close_sync_services()
    await local_engine.dispose()
    await async_engine.dispose()
    logger.info("Unforgotten core stopped")


app = FastAPI(
    title="Unforgotten API",
    description="Calendar aggregation and note sync for Unforgotten accounts",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(calendar.router, prefix="/api/calendar", tags=["Calendar"])
app.include_router(notes.router, prefix="/api/notes", tags=["Notes"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Unforgotten API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "timezone": settings.timezone,
        "note_sync_debounce_scope": settings.note_sync_debounce_scope,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "unforgotten.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
