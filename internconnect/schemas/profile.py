"""Schemas for student and company profiles.

A profile row is discriminated by ``role``; :data:`Profile` parses it into the
matching variant, and role-specific behaviour (dashboard, onboarding page,
required onboarding fields) hangs off the variant instead of string checks.
"""

from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class EducationEntry(BaseModel):
    """One education record inside a student profile."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    school: str
    degree: str
    field: str = ""
    start_year: str = Field(default="", alias="startYear")
    end_year: str = Field(default="", alias="endYear")
    description: str | None = None
    gpa: str | None = None


class ExperienceEntry(BaseModel):
    """One work experience record inside a student profile."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    title: str
    company: str
    location: str | None = None
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    description: str | None = None


class DocumentMetadata(BaseModel):
    """Metadata for an uploaded document; the bytes live in object storage."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    storage_path: str = Field(alias="storagePath")
    file_type: str = Field(alias="fileType")
    uploaded_at: str = Field(alias="uploadedAt")


class ProfileBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    profile_completed: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    location: str | None = None
    linkedin: str | None = None

    dashboard_path: ClassVar[str]
    creation_path: ClassVar[str]
    required_fields: ClassVar[tuple[str, ...]]

    @field_validator("profile_completed", mode="before")
    @classmethod
    def _none_is_incomplete(cls, value: Any) -> Any:
        return False if value is None else value

    def missing_fields(self, values: dict[str, Any]) -> list[str]:
        """Required onboarding fields left empty after applying ``values``."""
        merged = {**self.model_dump(), **values}
        return [name for name in self.required_fields if merged.get(name) in (None, "", [])]


class StudentProfile(ProfileBase):
    """Profile of a student looking for internships."""

    role: Literal["student"] = "student"
    full_name: str | None = None
    university: str | None = None
    major: str | None = None
    graduation_year: int | None = None
    skills: list[str] = Field(default_factory=list)
    bio: str | None = None
    github: str | None = None
    portfolio: str | None = None
    education: list[EducationEntry] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    documents: list[DocumentMetadata] = Field(default_factory=list)

    dashboard_path: ClassVar[str] = "/student-portal"
    creation_path: ClassVar[str] = "/student-profile-creation"
    required_fields: ClassVar[tuple[str, ...]] = (
        "full_name",
        "university",
        "major",
        "graduation_year",
    )

    @field_validator("skills", "education", "experience", "documents", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def display_name(self) -> str:
        return self.full_name or ""


class CompanyProfile(ProfileBase):
    """Profile of a company posting internships."""

    role: Literal["company"] = "company"
    company_name: str | None = None
    industry: str | None = None
    company_size: str | None = None
    founded_year: int | None = None
    long_description: str | None = None
    twitter: str | None = None
    companywebsite: str | None = None

    dashboard_path: ClassVar[str] = "/company-dashboard"
    creation_path: ClassVar[str] = "/company-profile-creation"
    required_fields: ClassVar[tuple[str, ...]] = (
        "company_name",
        "industry",
        "founded_year",
        "location",
        "long_description",
    )

    @property
    def display_name(self) -> str:
        return self.company_name or ""


Profile = Annotated[StudentProfile | CompanyProfile, Field(discriminator="role")]

PROFILE_VARIANTS: dict[str, type[StudentProfile | CompanyProfile]] = {
    "student": StudentProfile,
    "company": CompanyProfile,
}

profile_adapter: TypeAdapter[StudentProfile | CompanyProfile] = TypeAdapter(Profile)

# Columns callers may never change through a profile update.
PROTECTED_PROFILE_FIELDS = frozenset({"id", "role", "created_at", "updated_at"})


def parse_profile(row: dict[str, Any]) -> StudentProfile | CompanyProfile:
    """Parse a ``profiles`` row into its role variant."""
    return profile_adapter.validate_python(row)


class ProfileUpdate(BaseModel):
    """Partial profile update accepted from the edit-profile form."""

    model_config = ConfigDict(extra="ignore")

    location: str | None = None
    linkedin: str | None = None
    full_name: str | None = None
    university: str | None = None
    major: str | None = None
    graduation_year: int | None = None
    skills: list[str] | None = None
    bio: str | None = None
    github: str | None = None
    portfolio: str | None = None
    company_name: str | None = None
    industry: str | None = None
    company_size: str | None = None
    founded_year: int | None = None
    long_description: str | None = None
    twitter: str | None = None
    companywebsite: str | None = None


class EducationCreate(BaseModel):
    """New education entry; the id is generated by the store."""

    school: str = Field(..., min_length=1)
    degree: str = Field(..., min_length=1)
    field: str = ""
    start_year: str = ""
    end_year: str = ""
    description: str | None = None
    gpa: str | None = None


class ExperienceCreate(BaseModel):
    """New experience entry; the id is generated by the store."""

    title: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    location: str | None = None
    start_date: str = ""
    end_date: str = ""
    description: str | None = None


class SkillsUpdate(BaseModel):
    skills: list[str]
