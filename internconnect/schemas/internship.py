"""Schemas for internship postings."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Internship(BaseModel):
    """Internship row joined with the owning company's display name."""

    model_config = ConfigDict(extra="ignore")

    id: str
    company_id: str
    company: str | None = None
    title: str
    location: str | None = None
    type: str | None = None
    category: str | None = None
    description: str | None = None
    skills: list[str] = Field(default_factory=list)
    stipend: str | None = None
    requirements: str | None = None
    duration: str | None = None
    start_date: str | None = None
    deadline: str | None = None
    companywebsite: str | None = None
    companylogo: str | None = None
    created_at: str | None = None

    @field_validator("company", mode="before")
    @classmethod
    def _flatten_company(cls, value: Any) -> Any:
        # The catalog query embeds the owner as ``company:profiles(company_name)``.
        if isinstance(value, dict):
            return value.get("company_name")
        return value

    @field_validator("skills", mode="before")
    @classmethod
    def _null_skills(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("stipend", mode="before")
    @classmethod
    def _stipend_as_text(cls, value: Any) -> Any:
        if isinstance(value, int | float):
            return str(value)
        return value


class InternshipCreate(BaseModel):
    """Fields a company fills in when posting an internship."""

    title: str
    location: str
    type: str
    category: str
    description: str
    skills: list[str] = Field(default_factory=list)
    stipend: str | None = None
    requirements: str | None = None
    duration: str | None = None
    start_date: str | None = None
    deadline: str | None = None
    companywebsite: str | None = None
    companylogo: str | None = None


class InternshipUpdate(BaseModel):
    """Partial update of a posting; ``company_id`` is never accepted."""

    title: str | None = None
    location: str | None = None
    type: str | None = None
    category: str | None = None
    description: str | None = None
    skills: list[str] | None = None
    stipend: str | None = None
    requirements: str | None = None
    duration: str | None = None
    start_date: str | None = None
    deadline: str | None = None
    companywebsite: str | None = None
    companylogo: str | None = None


class InternshipFilterOptions(BaseModel):
    """Distinct values offered by the catalog filters."""

    locations: list[str]
    categories: list[str]
    types: list[str]
