"""Shared router dependencies: the caller's session and action responses."""

from typing import Any

from fastapi import Depends, Request, Response
from fastapi.responses import JSONResponse

from internconnect.core.config import settings
from internconnect.core.exceptions import (
    InternConnectError,
    http_exception_for,
    unauthorized_exception,
)
from internconnect.schemas.notification import ActionResult, failure, success
from internconnect.services.user_session import SessionRegistry, UserSession


def attach_session_cookie(response: Response, session: UserSession) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.id,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.session_idle_minutes * 60,
    )


async def get_user_session(request: Request) -> UserSession:
    """Resolve the browser's session from its cookie, starting one if needed."""
    registry: SessionRegistry = request.app.state.sessions
    cookie = request.cookies.get(settings.session_cookie_name)
    session = await registry.get_or_create(cookie)
    # The cookie itself is written by the session middleware in main.py.
    request.state.user_session = session
    return session


async def require_user(session: UserSession = Depends(get_user_session)) -> UserSession:
    if not session.auth.is_authenticated:
        raise unauthorized_exception()
    return session


def respond(
    error: InternConnectError | None,
    *,
    success_title: str,
    success_description: str,
    failure_title: str,
    data: Any = None,
) -> ActionResult | JSONResponse:
    """Pair an action's outcome with its notification."""
    if error is None:
        return success(success_title, success_description, data)

    http_error = http_exception_for(error)
    return JSONResponse(
        status_code=http_error.status_code,
        content=failure(failure_title, error).model_dump(mode="json"),
    )
