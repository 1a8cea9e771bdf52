"""Validation logic for user-submitted forms."""

import re
from dataclasses import dataclass, field
from datetime import date

from internconnect.schemas.internship import InternshipCreate, InternshipUpdate

MIN_PASSWORD_LENGTH = 6

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass
class ValidationResult:
    """Result of validation process."""

    is_valid: bool
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


def validate_registration(
    email: str, password: str, confirm_password: str
) -> ValidationResult:
    """Validate the registration form before calling the auth service."""
    if not _EMAIL_PATTERN.match(email.strip()):
        return ValidationResult(is_valid=False, error="Enter a valid email address")

    if password != confirm_password:
        return ValidationResult(is_valid=False, error="Passwords do not match")

    if len(password) < MIN_PASSWORD_LENGTH:
        return ValidationResult(
            is_valid=False,
            error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    return ValidationResult(is_valid=True)


def _parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def validate_internship(data: InternshipCreate | InternshipUpdate) -> ValidationResult:
    """Validate a posting form; fields left unset on an update are skipped."""
    values = data.model_dump(exclude_unset=isinstance(data, InternshipUpdate))
    warnings = []

    minimums = {"title": 5, "location": 2, "type": 1, "category": 1, "description": 20}
    for name, minimum in minimums.items():
        if name not in values:
            continue
        text = (values[name] or "").strip()
        if len(text) < minimum:
            if minimum == 1:
                return ValidationResult(is_valid=False, error=f"{name.title()} is required")
            return ValidationResult(
                is_valid=False,
                error=f"{name.title()} must be at least {minimum} characters",
            )

    if "skills" in values and not [s for s in values["skills"] or [] if s.strip()]:
        return ValidationResult(is_valid=False, error="At least one skill is required")

    start = _parse_iso_date(values.get("start_date"))
    deadline = _parse_iso_date(values.get("deadline"))
    if start and deadline and deadline > start:
        warnings.append("Application deadline falls after the start date")

    if values.get("deadline") and deadline and deadline < date.today():
        warnings.append("Application deadline is already in the past")

    return ValidationResult(is_valid=True, warnings=warnings)


def normalize_skills(skills: list[str]) -> list[str]:
    """Trim entries, drop blanks and repeats, keep first-seen order."""
    seen: set[str] = set()
    result = []
    for skill in skills:
        cleaned = skill.strip()
        key = cleaned.lower()
        if cleaned and key not in seen:
            seen.add(key)
            result.append(cleaned)
    return result
