"""Internship catalog and posting endpoints."""

from fastapi import APIRouter, Depends, Query

from internconnect.core.exceptions import not_found_exception
from internconnect.routers.deps import get_user_session, require_user, respond
from internconnect.schemas.internship import (
    Internship,
    InternshipCreate,
    InternshipFilterOptions,
    InternshipUpdate,
)
from internconnect.schemas.notification import ActionResult
from internconnect.services.user_session import UserSession

router = APIRouter(prefix="/api/internships", tags=["internships"])


@router.get("", response_model=list[Internship])
async def list_internships(
    q: str = Query(default="", description="Matches title, company or description"),
    location: str | None = Query(default=None),
    category: str | None = Query(default=None),
    type: str | None = Query(default=None),
    session: UserSession = Depends(get_user_session),
):
    """Search the catalog."""
    await session.internships.fetch_internships()
    return session.internships.filter_internships(q, location, category, type)


@router.get("/filters", response_model=InternshipFilterOptions)
async def list_filter_options(session: UserSession = Depends(get_user_session)):
    await session.internships.fetch_internships()
    return session.internships.filter_options()


@router.get("/{internship_id}", response_model=Internship)
async def get_internship(internship_id: str, session: UserSession = Depends(get_user_session)):
    internship = await session.internships.fetch_internship_by_id(internship_id)
    if internship is None:
        raise not_found_exception("Internship not found")
    return internship


@router.post("", response_model=ActionResult)
async def post_internship(data: InternshipCreate, session: UserSession = Depends(require_user)):
    error = await session.internships.add_internship(data)
    return respond(
        error,
        success_title="Internship posted!",
        success_description="Your internship has been posted successfully.",
        failure_title="Error",
        data={"warnings": session.internships.last_warnings},
    )


@router.patch("/{internship_id}", response_model=ActionResult)
async def edit_internship(
    internship_id: str,
    updates: InternshipUpdate,
    session: UserSession = Depends(require_user),
):
    error = await session.internships.update_internship(internship_id, updates)
    return respond(
        error,
        success_title="Internship updated",
        success_description="Your internship has been updated successfully.",
        failure_title="Error",
        data={"warnings": session.internships.last_warnings},
    )


@router.delete("/{internship_id}", response_model=ActionResult)
async def delete_internship(internship_id: str, session: UserSession = Depends(require_user)):
    error = await session.internships.delete_internship(internship_id)
    return respond(
        error,
        success_title="Internship deleted",
        success_description="The internship has been removed.",
        failure_title="Error",
    )
