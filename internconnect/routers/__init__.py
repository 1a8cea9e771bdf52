"""API and page routers."""

from internconnect.routers.applications import router as applications_router
from internconnect.routers.auth import router as auth_router
from internconnect.routers.internships import router as internships_router
from internconnect.routers.pages import router as pages_router
from internconnect.routers.profile import router as profile_router

__all__ = [
    "applications_router",
    "auth_router",
    "internships_router",
    "pages_router",
    "profile_router",
]
