"""Pydantic schemas."""

from internconnect.schemas.application import Application, ApplicationStatus, ApplyRequest
from internconnect.schemas.auth import AuthUser, Session
from internconnect.schemas.internship import Internship, InternshipCreate, InternshipUpdate
from internconnect.schemas.profile import CompanyProfile, Profile, StudentProfile

__all__ = [
    "Application",
    "ApplicationStatus",
    "ApplyRequest",
    "AuthUser",
    "CompanyProfile",
    "Internship",
    "InternshipCreate",
    "InternshipUpdate",
    "Profile",
    "Session",
    "StudentProfile",
]
