"""Internship catalog cache and company-side posting management."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from internconnect.backend.client import BackendClient
from internconnect.core.exceptions import (
    AuthorizationError,
    BackendError,
    InternConnectError,
    NotFoundError,
    ValidationError,
)
from internconnect.schemas.application import Application
from internconnect.schemas.internship import (
    Internship,
    InternshipCreate,
    InternshipFilterOptions,
    InternshipUpdate,
)
from internconnect.schemas.profile import CompanyProfile, StudentProfile
from internconnect.services.auth_store import AuthStore
from internconnect.services.profile_store import ProfileStore
from internconnect.services.store import Store
from internconnect.utils.filters import InternshipFilter, filter_options, recommend_internships
from internconnect.utils.validators import normalize_skills, validate_internship

logger = logging.getLogger(__name__)

INTERNSHIP_SELECT = "*, company:profiles(company_name)"

# Columns a posting update may never touch.
_IMMUTABLE_FIELDS = frozenset({"id", "company_id", "created_at", "company"})


class InternshipStore(Store):
    """Holds the whole catalog; every posting change reloads it."""

    def __init__(self, client: BackendClient, auth: AuthStore, profiles: ProfileStore):
        super().__init__()
        self._client = client
        self._auth = auth
        self._profiles = profiles
        self.internships: list[Internship] = []
        self.last_warnings: list[str] = []

    async def fetch_internships(self) -> None:
        async with self._lock:
            await self._fetch()

    async def _fetch(self) -> None:
        self.loading = True
        self.error = None
        try:
            response = await self._client.table("internships").select(INTERNSHIP_SELECT).execute()
            self.internships = self._parse_rows(response.data)
        except BackendError as e:
            logger.error(f"Error fetching internships: {e.message}")
            self.error = e
            self.internships = []
        finally:
            self.loading = False
        await self._notify()

    @staticmethod
    def _parse_rows(rows: list[dict[str, Any]]) -> list[Internship]:
        internships = []
        for row in rows:
            try:
                internships.append(Internship.model_validate(row))
            except PydanticValidationError:
                logger.warning(f"Skipping unreadable internship row {row.get('id')}")
        return internships

    async def fetch_internship_by_id(self, internship_id: str) -> Internship | None:
        """Fetch one posting and merge it into the cache.

        Failures are logged and give ``None``; the shared error is untouched.
        """
        try:
            response = await (
                self._client.table("internships")
                .select(INTERNSHIP_SELECT)
                .eq("id", internship_id)
                .maybe_single()
                .execute()
            )
        except BackendError as e:
            logger.error(f"Error fetching internship {internship_id}: {e.message}")
            return None
        if response.data is None:
            return None

        try:
            internship = Internship.model_validate(response.data)
        except PydanticValidationError:
            logger.warning(f"Unreadable internship row {internship_id}")
            return None

        async with self._lock:
            if any(item.id == internship.id for item in self.internships):
                self.internships = [
                    internship if item.id == internship.id else item
                    for item in self.internships
                ]
            else:
                self.internships = [*self.internships, internship]
        return internship

    def get_internship_by_id(self, internship_id: str) -> Internship | None:
        return next((item for item in self.internships if item.id == internship_id), None)

    def _company(self) -> CompanyProfile | None:
        profile = self._profiles.profile
        if self._auth.user is None or not isinstance(profile, CompanyProfile):
            return None
        return profile

    async def add_internship(self, data: InternshipCreate) -> InternConnectError | None:
        company = self._company()
        if company is None:
            return self._fail(AuthorizationError())

        validation = validate_internship(data)
        if not validation.is_valid:
            return self._fail(ValidationError(validation.error))
        self.last_warnings = validation.warnings

        values = data.model_dump()
        values["skills"] = normalize_skills(values["skills"])
        values["company_id"] = company.id

        async with self._lock:
            self.loading = True
            self.error = None
            try:
                response = await (
                    self._client.table("internships")
                    .insert(values)
                    .select("id, company_id")
                    .execute()
                )
                if response.data:
                    logger.info(f"Company {company.id} posted internship {response.data[0]['id']}")
                await self._fetch()
                return None
            except BackendError as e:
                logger.error(f"Error adding internship: {e.message}")
                return self._fail(e)
            finally:
                self.loading = False

    async def update_internship(
        self, internship_id: str, updates: InternshipUpdate | dict[str, Any]
    ) -> InternConnectError | None:
        company = self._company()
        if company is None:
            return self._fail(AuthorizationError())

        if isinstance(updates, dict):
            updates = InternshipUpdate.model_validate(
                {k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS}
            )
        validation = validate_internship(updates)
        if not validation.is_valid:
            return self._fail(ValidationError(validation.error))
        self.last_warnings = validation.warnings

        values = updates.model_dump(exclude_unset=True)
        if "skills" in values:
            values["skills"] = normalize_skills(values["skills"] or [])

        async with self._lock:
            self.loading = True
            self.error = None
            try:
                response = await (
                    self._client.table("internships")
                    .update(values)
                    .eq("id", internship_id)
                    .eq("company_id", company.id)
                    .execute()
                )
                if response.count == 0:
                    return self._fail(
                        NotFoundError("Internship not found or not owned by this company")
                    )
                await self._fetch()
                return None
            except BackendError as e:
                logger.error(f"Error updating internship {internship_id}: {e.message}")
                return self._fail(e)
            finally:
                self.loading = False

    async def delete_internship(self, internship_id: str) -> InternConnectError | None:
        company = self._company()
        if company is None:
            return self._fail(AuthorizationError())

        async with self._lock:
            self.loading = True
            self.error = None
            try:
                response = await (
                    self._client.table("internships")
                    .delete()
                    .eq("id", internship_id)
                    .eq("company_id", company.id)
                    .execute()
                )
                if response.count == 0:
                    return self._fail(
                        NotFoundError("Internship not found or not owned by this company")
                    )
                logger.info(f"Company {company.id} deleted internship {internship_id}")
                await self._fetch()
                return None
            except BackendError as e:
                logger.error(f"Error deleting internship {internship_id}: {e.message}")
                return self._fail(e)
            finally:
                self.loading = False

    def filter_internships(
        self,
        query: str = "",
        location: str | None = None,
        category: str | None = None,
        type: str | None = None,
    ) -> list[Internship]:
        criteria = InternshipFilter(query=query, location=location, category=category, type=type)
        return criteria.apply(self.internships)

    def filter_options(self) -> InternshipFilterOptions:
        return filter_options(self.internships)

    def internships_for_company(self, company_id: str) -> list[Internship]:
        return [item for item in self.internships if item.company_id == company_id]

    def recommend_for(
        self, student: StudentProfile, applications: list[Application], limit: int = 3
    ) -> list[Internship]:
        return recommend_internships(student, self.internships, applications, limit)
