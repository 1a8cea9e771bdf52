"""Client-side catalog filtering and recommendations."""

from dataclasses import dataclass

from internconnect.schemas.application import Application
from internconnect.schemas.internship import Internship, InternshipFilterOptions
from internconnect.schemas.profile import StudentProfile


@dataclass
class InternshipFilter:
    """Search box plus the location/category/type dropdowns of the catalog."""

    query: str = ""
    location: str | None = None
    category: str | None = None
    type: str | None = None

    def matches(self, internship: Internship) -> bool:
        if self.query:
            needle = self.query.lower()
            haystacks = (internship.title, internship.company, internship.description)
            if not any(needle in (text or "").lower() for text in haystacks):
                return False

        if self.location and self.location not in (internship.location or ""):
            return False

        if self.category and internship.category != self.category:
            return False

        if self.type and internship.type != self.type:
            return False

        return True

    def apply(self, internships: list[Internship]) -> list[Internship]:
        return [item for item in internships if self.matches(item)]


def filter_options(internships: list[Internship]) -> InternshipFilterOptions:
    """Distinct non-empty values for each dropdown, in first-seen order."""

    def distinct(values):
        return list(dict.fromkeys(value for value in values if value))

    return InternshipFilterOptions(
        locations=distinct(item.location for item in internships),
        categories=distinct(item.category for item in internships),
        types=distinct(item.type for item in internships),
    )


def recommend_internships(
    student: StudentProfile,
    internships: list[Internship],
    applications: list[Application],
    limit: int = 3,
) -> list[Internship]:
    """Internships whose requirements or description mention the student's
    major or one of their skills, excluding ones already applied to."""
    applied = {app.internship_id for app in applications if app.student_id == student.id}
    major = (student.major or "").lower()
    skills = [skill.lower() for skill in student.skills if skill.strip()]

    recommended = []
    for internship in internships:
        if internship.id in applied:
            continue

        text = f"{internship.requirements or ''} {internship.description or ''}".lower()
        major_match = bool(major) and major in text
        skill_match = any(skill in text for skill in skills)
        if major_match or skill_match:
            recommended.append(internship)
        if len(recommended) >= limit:
            break

    return recommended
