"""Schemas for internship applications."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApplicationStatus(str, Enum):
    """Review status of an application, in pipeline order."""

    SUBMITTED = "submitted"
    REVIEWING = "reviewing"
    SHORTLISTED = "shortlisted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ApplicantSummary(BaseModel):
    """Student fields embedded in an application for the reviewing company."""

    model_config = ConfigDict(extra="ignore")

    full_name: str | None = None
    bio: str | None = None
    skills: list[str] = Field(default_factory=list)
    portfolio: str | None = None
    linkedin: str | None = None
    github: str | None = None
    education: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("skills", "education", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value


class InternshipSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    company_id: str | None = None


class Application(BaseModel):
    """Application row with its student and internship embeds."""

    model_config = ConfigDict(extra="ignore")

    id: str
    student_id: str
    internship_id: str
    submitted_at: str | None = None
    status: ApplicationStatus = ApplicationStatus.SUBMITTED
    cover_letter: str | None = None
    resume_url: str | None = None
    company_notes: str | None = None
    profiles: ApplicantSummary | None = None
    internships: InternshipSummary | None = None


class ApplyRequest(BaseModel):
    """Student's submission for one internship."""

    cover_letter: str | None = Field(None, description="Optional cover letter")
    resume_url: str | None = Field(None, description="Public URL of the resume")


class StatusUpdateRequest(BaseModel):
    status: ApplicationStatus


class NotesUpdateRequest(BaseModel):
    company_notes: str = ""
