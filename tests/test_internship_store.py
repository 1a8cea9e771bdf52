"""Tests for the internship store."""

import pytest

from internconnect.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from internconnect.schemas.internship import InternshipCreate, InternshipUpdate


def _posting(**overrides):
    values = {
        "title": "Frontend Intern",
        "location": "Remote",
        "type": "Full-time",
        "category": "Engineering",
        "description": "Build user interfaces with our web team in React.",
        "skills": ["React", "TypeScript"],
    }
    values.update(overrides)
    return InternshipCreate(**values)


class TestCatalog:
    """Tests for loading and querying the catalog."""

    @pytest.mark.asyncio
    async def test_catalog_loaded_at_start(self, backend, seeded, make_session):
        session = make_session()
        await session.start()

        internships = session.internships.internships
        assert len(internships) == 2
        assert internships[0].company == "Acme Corp"

    @pytest.mark.asyncio
    async def test_fetch_failure_empties_catalog(self, backend, seeded, make_session):
        session = make_session()
        backend.fail("GET", "/rest/v1/internships", 503)
        await session.start()

        assert session.internships.internships == []
        assert session.internships.error.status_code == 503

    @pytest.mark.asyncio
    async def test_fetch_by_id_upserts_cache(self, backend, seeded, make_session):
        session = make_session()
        await session.start()
        new_id = backend.add_internship(seeded["company_id"], title="Late Posting")

        assert session.internships.get_internship_by_id(new_id) is None
        internship = await session.internships.fetch_internship_by_id(new_id)

        assert internship.title == "Late Posting"
        assert session.internships.get_internship_by_id(new_id) == internship
        assert len(session.internships.internships) == 3

    @pytest.mark.asyncio
    async def test_fetch_by_id_error_leaves_shared_error(self, backend, seeded, make_session):
        session = make_session()
        await session.start()
        backend.fail("GET", "/rest/v1/internships", 500)

        assert await session.internships.fetch_internship_by_id("whatever") is None
        assert session.internships.error is None

    @pytest.mark.asyncio
    async def test_filtering_helpers(self, seeded, make_session):
        session = make_session()
        await session.start()

        assert [i.title for i in session.internships.filter_internships("design")] == [
            "Design Intern"
        ]
        assert session.internships.filter_options().categories == ["Engineering", "Design"]
        assert len(session.internships.internships_for_company(seeded["company_id"])) == 2


class TestPostingManagement:
    """Tests for company-only catalog writes."""

    @pytest.mark.asyncio
    async def test_add_internship(self, backend, seeded, sign_in):
        session = await sign_in("hr@acme.test")

        error = await session.internships.add_internship(_posting())

        assert error is None
        titles = [i.title for i in session.internships.internships]
        assert "Frontend Intern" in titles
        created = next(r for r in backend.tables["internships"] if r["title"] == "Frontend Intern")
        assert created["company_id"] == seeded["company_id"]

    @pytest.mark.asyncio
    async def test_student_cannot_post(self, backend, seeded, sign_in):
        session = await sign_in("ada@uni.test")

        error = await session.internships.add_internship(_posting())

        assert isinstance(error, AuthorizationError)
        assert error.code == "401"
        assert backend.count("POST", "/rest/v1/internships") == 0

    @pytest.mark.asyncio
    async def test_invalid_posting(self, backend, seeded, sign_in):
        session = await sign_in("hr@acme.test")

        error = await session.internships.add_internship(_posting(description="short"))

        assert isinstance(error, ValidationError)
        assert backend.count("POST", "/rest/v1/internships") == 0

    @pytest.mark.asyncio
    async def test_update_own_internship_refetches(self, backend, seeded, sign_in):
        session = await sign_in("hr@acme.test")
        fetches = backend.count("GET", "/rest/v1/internships")

        error = await session.internships.update_internship(
            seeded["backend_internship"], InternshipUpdate(stipend="800/month")
        )

        assert error is None
        assert backend.count("GET", "/rest/v1/internships") == fetches + 1
        updated = session.internships.get_internship_by_id(seeded["backend_internship"])
        assert updated.stipend == "800/month"

    @pytest.mark.asyncio
    async def test_update_ignores_ownership_fields(self, backend, seeded, sign_in):
        session = await sign_in("hr@acme.test")

        await session.internships.update_internship(
            seeded["backend_internship"], {"company_id": "someone-else", "duration": "3 months"}
        )

        row = backend.row("internships", seeded["backend_internship"])
        assert row["company_id"] == seeded["company_id"]
        assert row["duration"] == "3 months"

    @pytest.mark.asyncio
    async def test_foreign_internship_untouched(self, backend, seeded, sign_in):
        backend.add_user("jobs@initech.test", role="company", company_name="Initech")
        session = await sign_in("jobs@initech.test")
        internship_id = seeded["backend_internship"]

        update_error = await session.internships.update_internship(
            internship_id, InternshipUpdate(title="Hijacked title")
        )
        delete_error = await session.internships.delete_internship(internship_id)

        assert isinstance(update_error, NotFoundError)
        assert isinstance(delete_error, NotFoundError)
        row = backend.row("internships", internship_id)
        assert row["title"] == "Backend Intern"

    @pytest.mark.asyncio
    async def test_delete_internship(self, backend, seeded, sign_in):
        session = await sign_in("hr@acme.test")

        error = await session.internships.delete_internship(seeded["design_internship"])

        assert error is None
        assert backend.row("internships", seeded["design_internship"]) is None
        assert session.internships.get_internship_by_id(seeded["design_internship"]) is None


class TestRecommendations:
    """Tests for student recommendations."""

    @pytest.mark.asyncio
    async def test_recommend_for_student(self, seeded, sign_in):
        session = await sign_in("ada@uni.test")
        student = session.profiles.profile

        recommended = session.internships.recommend_for(
            student, session.applications.applications
        )

        assert [i.title for i in recommended] == ["Backend Intern"]
