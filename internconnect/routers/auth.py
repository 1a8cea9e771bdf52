"""Sign-in, sign-out and registration endpoints."""

import logging

from fastapi import APIRouter, Depends, Request, Response

from internconnect.core.config import settings
from internconnect.routers.deps import get_user_session, respond
from internconnect.schemas.auth import AuthStatus, LoginRequest, RegisterRequest
from internconnect.schemas.notification import ActionResult
from internconnect.schemas.profile import PROFILE_VARIANTS
from internconnect.services.user_session import UserSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/status", response_model=AuthStatus)
async def auth_status(session: UserSession = Depends(get_user_session)):
    """Check the current authentication state."""
    user = session.auth.user
    profile = session.profiles.profile
    return AuthStatus(
        authenticated=session.auth.is_authenticated,
        loading=session.auth.is_loading or session.profiles.loading,
        user_id=user.id if user else None,
        email=user.email if user else None,
        role=profile.role if profile else None,
        profile_completed=profile.profile_completed if profile else None,
    )


@router.post("/login", response_model=ActionResult)
async def login(
    request: Request,
    credentials: LoginRequest,
    session: UserSession = Depends(get_user_session),
):
    error = await session.auth.login(credentials.email, credentials.password)
    if error is None:
        # A signed-in session never keeps the id it had while anonymous.
        await request.app.state.sessions.rotate(session)
    profile = session.profiles.profile
    redirect = None
    if error is None and profile is not None:
        redirect = profile.dashboard_path if profile.profile_completed else profile.creation_path
    return respond(
        error,
        success_title="Welcome back!",
        success_description="You have successfully logged in.",
        failure_title="Login failed",
        data={"redirect": redirect},
    )


@router.post("/logout", response_model=ActionResult)
async def logout(
    request: Request,
    response: Response,
    session: UserSession = Depends(get_user_session),
):
    """Sign out and tear the browser session down."""
    error = await session.auth.logout()
    await request.app.state.sessions.discard(session.id)
    request.state.user_session = None
    response.delete_cookie(settings.session_cookie_name)
    result = respond(
        error,
        success_title="Logged out",
        success_description="You have been signed out.",
        failure_title="Logout failed",
    )
    if isinstance(result, Response):
        result.delete_cookie(settings.session_cookie_name)
    return result


async def _register(
    request: Request,
    session: UserSession,
    form: RegisterRequest,
    role: str,
    display_name: str,
):
    result = await session.auth.register(
        form.email, form.password, form.confirm_password, role, display_name
    )
    if result.error is None and session.auth.is_authenticated:
        await request.app.state.sessions.rotate(session)
    if result.needs_confirmation:
        description = "Check your email to confirm your account, then log in."
    else:
        description = "Your account has been created. Let's set up your profile."
    creation_path = PROFILE_VARIANTS[role].creation_path
    return respond(
        result.error,
        success_title="Registration successful",
        success_description=description,
        failure_title="Registration failed",
        data={
            "needs_confirmation": result.needs_confirmation,
            "redirect": "/login" if result.needs_confirmation else creation_path,
        },
    )


@router.post("/register/student", response_model=ActionResult)
async def register_student(
    request: Request,
    form: RegisterRequest,
    session: UserSession = Depends(get_user_session),
):
    full_name = f"{form.first_name or ''} {form.last_name or ''}".strip()
    return await _register(request, session, form, "student", full_name)


@router.post("/register/company", response_model=ActionResult)
async def register_company(
    request: Request,
    form: RegisterRequest,
    session: UserSession = Depends(get_user_session),
):
    return await _register(request, session, form, "company", form.company_name or "")
