"""Application endpoints for students (apply, withdraw) and companies (review)."""

from fastapi import APIRouter, Depends, File, UploadFile

from internconnect.core.exceptions import http_exception_for, not_found_exception
from internconnect.routers.deps import require_user, respond
from internconnect.schemas.application import (
    Application,
    ApplyRequest,
    NotesUpdateRequest,
    StatusUpdateRequest,
)
from internconnect.schemas.notification import ActionResult
from internconnect.services.user_session import UserSession
from internconnect.utils.transitions import allowed_transitions

router = APIRouter(prefix="/api", tags=["applications"])


@router.get("/applications", response_model=list[Application])
async def list_applications(session: UserSession = Depends(require_user)):
    """Applications visible to the caller's role."""
    await session.applications.fetch_applications()
    return session.applications.applications


@router.get("/applications/counts")
async def application_counts(session: UserSession = Depends(require_user)):
    await session.applications.fetch_applications()
    return session.applications.status_counts()


@router.get("/applications/{application_id}")
async def get_application(application_id: str, session: UserSession = Depends(require_user)):
    await session.applications.fetch_applications()
    application = session.applications.get_application(application_id)
    if application is None:
        raise not_found_exception("Application not found")
    return {
        "application": application,
        "allowed_statuses": sorted(s.value for s in allowed_transitions(application.status)),
    }


@router.post("/internships/{internship_id}/apply", response_model=ActionResult)
async def apply_to_internship(
    internship_id: str,
    request: ApplyRequest,
    session: UserSession = Depends(require_user),
):
    error = await session.applications.apply_to_internship(
        internship_id, request.cover_letter, request.resume_url
    )
    return respond(
        error,
        success_title="Application submitted!",
        success_description="Your application has been submitted successfully.",
        failure_title="Application failed",
    )


@router.post("/applications/resume", response_model=ActionResult)
async def upload_resume(
    file: UploadFile = File(...), session: UserSession = Depends(require_user)
):
    """Upload a resume to attach to an application; returns its public URL."""
    data = await file.read()
    url = await session.applications.upload_resume(
        file.filename or "resume.pdf", data, file.content_type or "application/pdf"
    )
    if url is None:
        raise http_exception_for(session.applications.error)
    return respond(
        None,
        success_title="Resume uploaded",
        success_description="Your resume is ready to attach.",
        failure_title="Upload failed",
        data={"resume_url": url},
    )


@router.patch("/applications/{application_id}/status", response_model=ActionResult)
async def update_status(
    application_id: str,
    request: StatusUpdateRequest,
    session: UserSession = Depends(require_user),
):
    error = await session.applications.update_application_status(application_id, request.status)
    return respond(
        error,
        success_title="Status updated",
        success_description=f"Application marked as {request.status.value}.",
        failure_title="Error",
    )


@router.patch("/applications/{application_id}/notes", response_model=ActionResult)
async def save_notes(
    application_id: str,
    request: NotesUpdateRequest,
    session: UserSession = Depends(require_user),
):
    error = await session.applications.save_company_notes(application_id, request.company_notes)
    return respond(
        error,
        success_title="Notes saved",
        success_description="Your notes have been saved.",
        failure_title="Error",
    )


@router.delete("/applications/{application_id}", response_model=ActionResult)
async def withdraw_application(
    application_id: str, session: UserSession = Depends(require_user)
):
    error = await session.applications.delete_application(application_id)
    return respond(
        error,
        success_title="Application withdrawn",
        success_description="Your application has been withdrawn.",
        failure_title="Error",
    )
