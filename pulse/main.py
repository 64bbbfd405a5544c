"""Pulse API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PulseError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, runtime and geo index initialized on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: cleaner startup/shutdown pairing
    - Geo index warmed from stored active donors before the first request
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import pulse.infrastructure.database as database
from pulse.api.dependencies import init_runtime
from pulse.api.error_handlers import register_error_handlers
from pulse.api.routes import donors, emergency_requests, health, matching
from pulse.config import get_settings
from pulse.infrastructure.observability import setup_logging
from pulse.infrastructure.repositories import SqlDonorRepository
from pulse.services.donor_registry import warm_index

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    runtime = init_runtime(settings)
    async with database.db_manager.session("warm donor index") as db:
        await warm_index(runtime.index, SqlDonorRepository(db))
    logger.info("Pulse API started")
    yield
    await runtime.aclose()
    await database.db_manager.dispose()
    logger.info("Pulse API shutting down")


app = FastAPI(title="Pulse API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(donors.router)
app.include_router(matching.router)
app.include_router(emergency_requests.router)

register_error_handlers(app)

# Locally stored proofs served at their public reference (mounted after API routes)
if settings.proof_store_backend == "local":
    app.mount(
        "/proofs",
        StaticFiles(directory=settings.proof_store_dir, check_dir=False),
        name="proofs",
    )
