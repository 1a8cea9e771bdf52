"""Endpoints for the signed-in user's profile, education, experience and documents."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from internconnect.core.exceptions import http_exception_for, not_found_exception
from internconnect.routers.deps import require_user, respond
from internconnect.schemas.notification import ActionResult
from internconnect.schemas.profile import (
    EducationCreate,
    ExperienceCreate,
    ProfileUpdate,
    SkillsUpdate,
)
from internconnect.services.user_session import UserSession

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("")
async def get_profile(session: UserSession = Depends(require_user)):
    profile = session.profiles.profile
    if profile is None:
        raise not_found_exception("Profile not found")
    return profile


@router.patch("", response_model=ActionResult)
async def update_profile(
    update: ProfileUpdate, session: UserSession = Depends(require_user)
):
    error = await session.profiles.update_profile(update.model_dump(exclude_unset=True))
    return respond(
        error,
        success_title="Profile updated",
        success_description="Your profile has been updated successfully.",
        failure_title="Error",
        data=session.profiles.profile,
    )


@router.post("/complete", response_model=ActionResult)
async def complete_profile(
    update: ProfileUpdate, session: UserSession = Depends(require_user)
):
    """Finish onboarding for the current role."""
    error = await session.profiles.complete_profile(update.model_dump(exclude_unset=True))
    profile = session.profiles.profile
    return respond(
        error,
        success_title="Profile created!",
        success_description="Your profile has been completed.",
        failure_title="Error",
        data={"redirect": profile.dashboard_path if profile else None},
    )


@router.put("/skills", response_model=ActionResult)
async def set_skills(update: SkillsUpdate, session: UserSession = Depends(require_user)):
    error = await session.profiles.set_skills(update.skills)
    return respond(
        error,
        success_title="Skills updated",
        success_description="Your skills have been saved.",
        failure_title="Error",
    )


@router.post("/education", response_model=ActionResult)
async def add_education(entry: EducationCreate, session: UserSession = Depends(require_user)):
    error = await session.profiles.add_education(entry)
    return respond(
        error,
        success_title="Education added",
        success_description="Your education has been added successfully.",
        failure_title="Error",
    )


@router.delete("/education/{entry_id}", response_model=ActionResult)
async def remove_education(entry_id: str, session: UserSession = Depends(require_user)):
    error = await session.profiles.remove_education(entry_id)
    return respond(
        error,
        success_title="Education removed",
        success_description="The education entry has been removed.",
        failure_title="Error",
    )


@router.post("/experience", response_model=ActionResult)
async def add_experience(entry: ExperienceCreate, session: UserSession = Depends(require_user)):
    error = await session.profiles.add_experience(entry)
    return respond(
        error,
        success_title="Experience added",
        success_description="Your experience has been added successfully.",
        failure_title="Error",
    )


@router.delete("/experience/{entry_id}", response_model=ActionResult)
async def remove_experience(entry_id: str, session: UserSession = Depends(require_user)):
    error = await session.profiles.remove_experience(entry_id)
    return respond(
        error,
        success_title="Experience removed",
        success_description="The experience entry has been removed.",
        failure_title="Error",
    )


@router.post("/documents", response_model=ActionResult)
async def upload_document(
    file: UploadFile = File(...),
    name: str = Form(""),
    file_type: str = Form("resume"),
    session: UserSession = Depends(require_user),
):
    """Upload a resume, cover letter or other document."""
    data = await file.read()
    error = await session.profiles.upload_document(
        name=name or file.filename or "document",
        file_type=file_type,
        filename=file.filename or "document",
        data=data,
        content_type=file.content_type or "application/octet-stream",
    )
    profile = session.profiles.profile
    document = profile.documents[-1] if error is None and profile and profile.documents else None
    return respond(
        error,
        success_title="Document uploaded",
        success_description="Your document has been uploaded successfully.",
        failure_title="Upload failed",
        data=document,
    )


@router.delete("/documents/{document_id}", response_model=ActionResult)
async def delete_document(document_id: str, session: UserSession = Depends(require_user)):
    error = await session.profiles.delete_document(document_id)
    return respond(
        error,
        success_title="Document deleted",
        success_description="Your document has been deleted.",
        failure_title="Error",
    )


@router.get("/documents/{document_id}")
async def download_document(document_id: str, session: UserSession = Depends(require_user)):
    result = await session.profiles.download_document(document_id)
    if result is None:
        raise http_exception_for(session.profiles.error)
    filename, content = result
    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )
