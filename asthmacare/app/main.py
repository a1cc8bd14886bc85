"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send

from asthmacare.app.api import air_quality, appointments, auth, chat, functions, reports, websocket
from asthmacare.app.core.config import settings
from asthmacare.app.core.exception_handlers import register_exception_handlers
from asthmacare.app.db.base import engine, Base
# Import all models to register them with SQLAlchemy
from asthmacare.app.models import Appointment, AuthSession, ChatMessage, Report, User  # noqa: F401
from asthmacare.app.services.app_state import get_app_state

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class BrowserCORSMiddleware(CORSMiddleware):
    """
    CORS policy for the browser app.

    Requests under ``excluded_prefix`` bypass it; the remote entry point
    answers its own preflight and sends its own headers to any origin.
    """

    def __init__(self, app: ASGIApp, excluded_prefix: str, **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.excluded_prefix = excluded_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(self.excluded_prefix):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"[STARTUP] Database ready, AQI scale: {settings.aqi_scale}")

    yield

    # Shutdown: Cancel pending analyses and close database connections
    get_app_state().shutdown()
    await engine.dispose()
    logger.info("[SHUTDOWN] Cleaned up resources")


app = FastAPI(
    title="AsthmaCare API",
    description="Asthma self-management: report analysis, air quality, assistant chat and appointments",
    version="1.0.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

app.add_middleware(
    BrowserCORSMiddleware,
    excluded_prefix=functions.router.prefix,
    allow_origins=settings.cors_origins_list,  # Load from .env file
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router, prefix="/api")
app.include_router(reports.router, prefix="/api")
app.include_router(chat.router, prefix="/api")
app.include_router(air_quality.router, prefix="/api")
app.include_router(appointments.router, prefix="/api")
app.include_router(functions.router)
app.include_router(websocket.router)

# Uploaded files, addressed by the public URLs the storage layer hands out
if settings.storage_public_url.startswith("/"):
    app.mount(
        settings.storage_public_url,
        StaticFiles(directory=settings.storage_dir, check_dir=False),
        name="storage",
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "AsthmaCare API",
        "version": "1.0.0",
        "description": "Asthma self-management backend",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
