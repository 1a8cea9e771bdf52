"""Tests for catalog filtering and recommendations."""

from internconnect.schemas.application import Application
from internconnect.schemas.internship import Internship
from internconnect.schemas.profile import StudentProfile
from internconnect.utils.filters import InternshipFilter, filter_options, recommend_internships


def _internship(id, **fields):
    values = {"id": id, "company_id": "company-1", "title": "Intern"}
    values.update(fields)
    return Internship(**values)


CATALOG = [
    _internship(
        "i1",
        title="Backend Intern",
        company={"company_name": "Acme"},
        location="Berlin, Germany",
        category="Engineering",
        type="Full-time",
        description="Python services",
        requirements="Python",
    ),
    _internship(
        "i2",
        title="Design Intern",
        company={"company_name": "Pixel"},
        location="Remote",
        category="Design",
        type="Part-time",
        description="Figma prototypes",
        requirements="Figma",
    ),
    _internship(
        "i3",
        title="Data Intern",
        company={"company_name": "Acme"},
        location="Berlin, Germany",
        category="Engineering",
        type="Part-time",
        description="SQL reporting",
        requirements="Computer Science students",
    ),
]


class TestInternshipFilter:
    """Tests for the catalog search box and dropdowns."""

    def test_empty_filter_matches_all(self):
        assert InternshipFilter().apply(CATALOG) == CATALOG

    def test_query_matches_title_company_or_description(self):
        assert [i.id for i in InternshipFilter(query="design").apply(CATALOG)] == ["i2"]
        assert [i.id for i in InternshipFilter(query="acme").apply(CATALOG)] == ["i1", "i3"]
        assert [i.id for i in InternshipFilter(query="SQL").apply(CATALOG)] == ["i3"]

    def test_location_is_substring(self):
        result = InternshipFilter(location="Berlin").apply(CATALOG)
        assert [i.id for i in result] == ["i1", "i3"]

    def test_category_and_type_are_exact(self):
        result = InternshipFilter(category="Engineering", type="Part-time").apply(CATALOG)
        assert [i.id for i in result] == ["i3"]

    def test_filter_options(self):
        options = filter_options(CATALOG)
        assert options.locations == ["Berlin, Germany", "Remote"]
        assert options.categories == ["Engineering", "Design"]
        assert options.types == ["Full-time", "Part-time"]


class TestRecommendations:
    """Tests for dashboard recommendations."""

    def test_matches_skills_and_major(self):
        student = StudentProfile(id="s1", major="Computer Science", skills=["figma"])
        result = recommend_internships(student, CATALOG, [])
        assert [i.id for i in result] == ["i2", "i3"]

    def test_excludes_applied(self):
        student = StudentProfile(id="s1", skills=["Python", "Figma"])
        applied = [Application(id="a1", student_id="s1", internship_id="i1")]
        result = recommend_internships(student, CATALOG, applied)
        assert [i.id for i in result] == ["i2"]

    def test_limit(self):
        student = StudentProfile(id="s1", skills=["python", "figma", "sql"])
        assert len(recommend_internships(student, CATALOG, [], limit=2)) == 2

    def test_no_skills_no_major(self):
        assert recommend_internships(StudentProfile(id="s1"), CATALOG, []) == []
