"""InternConnect - internship marketplace for students and companies."""

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from internconnect import __version__
from internconnect.core.config import settings
from internconnect.core.storage import SqlSessionStorage, init_models
from internconnect.routers import (
    applications_router,
    auth_router,
    internships_router,
    pages_router,
    profile_router,
)
from internconnect.routers.deps import attach_session_cookie
from internconnect.services.user_session import SessionRegistry, UserSession

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def default_session_factory(session_id: str) -> UserSession:
    return UserSession.create(session_id, session_storage=SqlSessionStorage())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Initializing application...")
    await init_models()
    logger.info("Application initialized")

    yield

    logger.info("Shutting down...")
    await app.state.sessions.close_all()
    logger.info("Shutdown complete")


def create_app(
    session_factory: Callable[[str], UserSession] = default_session_factory,
    use_lifespan: bool = True,
) -> FastAPI:
    app = FastAPI(
        title="InternConnect",
        description="Internship marketplace connecting students and companies",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )
    app.state.sessions = SessionRegistry(session_factory, settings.session_idle_minutes)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def session_cookie(request: Request, call_next):
        response = await call_next(request)
        # Re-issued on every response so the cookie expires with the idle timeout.
        session = getattr(request.state, "user_session", None)
        if session is not None:
            attach_session_cookie(response, session)
        return response

    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(internships_router)
    app.include_router(applications_router)
    app.include_router(pages_router)

    @app.get("/api")
    async def api_info():
        """API information endpoint."""
        return {
            "message": "InternConnect API",
            "version": __version__,
            "docs": "/docs",
            "status": "active",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "internconnect",
            "active_sessions": len(app.state.sessions),
        }

    return app


app = create_app()
