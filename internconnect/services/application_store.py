"""Applications visible to the signed-in student or company."""

import logging
import secrets
import time
from collections import Counter
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from internconnect.backend.client import BackendClient
from internconnect.core.exceptions import (
    AuthorizationError,
    BackendError,
    ConflictError,
    DuplicateApplicationError,
    InternConnectError,
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
)
from internconnect.schemas.application import Application, ApplicationStatus
from internconnect.schemas.profile import CompanyProfile, DocumentMetadata, StudentProfile
from internconnect.services.auth_store import AuthStore
from internconnect.services.profile_store import ProfileStore
from internconnect.services.store import Store
from internconnect.utils.transitions import can_transition

logger = logging.getLogger(__name__)

_APPLICATION_COLUMNS = (
    "id, student_id, internship_id, submitted_at, status, cover_letter, resume_url"
)
# Company notes are never selected for the applicant.
STUDENT_SELECT = f"{_APPLICATION_COLUMNS}, internships(title, company_id)"
# The inner join makes the embedded company filter restrict the applications
# themselves rather than just blank out the embed.
COMPANY_SELECT = (
    f"{_APPLICATION_COLUMNS}, company_notes, "
    "profiles(full_name, bio, skills, portfolio, linkedin, github, education), "
    "internships!inner(title, company_id)"
)

_UNSET = object()


class ApplicationStore(Store):
    """Role-scoped application list with apply, review and withdraw actions."""

    def __init__(
        self,
        client: BackendClient,
        auth: AuthStore,
        profiles: ProfileStore,
        resumes_bucket: str = "resumes",
    ):
        super().__init__()
        self._client = client
        self._auth = auth
        self._profiles = profiles
        self._resumes_bucket = resumes_bucket
        self.applications: list[Application] = []
        self._scope: Any = _UNSET
        self._unsubscribe = profiles.subscribe(self._on_profile_change)

    async def _on_profile_change(self) -> None:
        profile = self._profiles.profile
        scope = (profile.id, profile.role) if profile else None
        if scope == self._scope:
            return
        self._scope = scope
        await self.fetch_applications()

    async def fetch_applications(self) -> None:
        async with self._lock:
            await self._fetch()

    async def _fetch(self) -> None:
        profile = self._profiles.profile
        if self._auth.user is None or profile is None:
            self.applications = []
            self.loading = False
            return

        if isinstance(profile, StudentProfile):
            query = (
                self._client.table("applications")
                .select(STUDENT_SELECT)
                .eq("student_id", profile.id)
            )
        elif isinstance(profile, CompanyProfile):
            query = (
                self._client.table("applications")
                .select(COMPANY_SELECT)
                .eq("internships.company_id", profile.id)
            )
        else:
            logger.warning(f"No application scope for profile {profile.id}")
            self.applications = []
            self.loading = False
            return

        self.loading = True
        self.error = None
        try:
            response = await query.execute()
            self.applications = self._parse_rows(response.data)
        except BackendError as e:
            logger.error(f"Error fetching applications: {e.message}")
            self.error = e
            self.applications = []
        finally:
            self.loading = False
        await self._notify()

    @staticmethod
    def _parse_rows(rows: list[dict[str, Any]]) -> list[Application]:
        applications = []
        for row in rows:
            try:
                applications.append(Application.model_validate(row))
            except PydanticValidationError:
                logger.warning(f"Skipping unreadable application row {row.get('id')}")
        return applications

    def _student(self) -> StudentProfile | None:
        profile = self._profiles.profile
        if self._auth.user is None or not isinstance(profile, StudentProfile):
            return None
        return profile

    def _company(self) -> CompanyProfile | None:
        profile = self._profiles.profile
        if self._auth.user is None or not isinstance(profile, CompanyProfile):
            return None
        return profile

    async def apply_to_internship(
        self,
        internship_id: str,
        cover_letter: str | None = None,
        resume_url: str | None = None,
    ) -> InternConnectError | None:
        student = self._student()
        if student is None:
            return self._fail(AuthorizationError())

        async with self._lock:
            already_applied = any(
                app.internship_id == internship_id and app.student_id == student.id
                for app in self.applications
            )
            if already_applied:
                logger.warning(
                    f"Student {student.id} already applied to internship {internship_id}"
                )
                return self._fail(DuplicateApplicationError(internship_id, student.id))

            self.loading = True
            self.error = None
            try:
                await self._client.table("applications").insert(
                    {
                        "student_id": student.id,
                        "internship_id": internship_id,
                        "cover_letter": cover_letter,
                        "resume_url": resume_url,
                        "status": ApplicationStatus.SUBMITTED.value,
                    }
                ).execute()
                logger.info(f"Student {student.id} applied to internship {internship_id}")
                await self._fetch()
                return None
            except BackendError as e:
                logger.error(f"Error applying to internship {internship_id}: {e.message}")
                return self._fail(e)
            finally:
                self.loading = False

    async def update_application_status(
        self, application_id: str, status: ApplicationStatus | str
    ) -> InternConnectError | None:
        """Move an application along the review pipeline.

        The write only lands if the row still has the status this store last
        saw; on success the cached row is patched without a refetch.
        """
        company = self._company()
        if company is None:
            return self._fail(AuthorizationError())

        try:
            target = ApplicationStatus(status)
        except ValueError:
            return self._fail(ValidationError(f"Unknown application status '{status}'"))

        async with self._lock:
            current = self.get_application(application_id)
            if current is None:
                return self._fail(NotFoundError("Application not found"))
            if current.status == target:
                return None
            if not can_transition(current.status, target):
                return self._fail(
                    InvalidStatusTransitionError(current.status.value, target.value)
                )

            self.loading = True
            self.error = None
            try:
                response = await (
                    self._client.table("applications")
                    .update({"status": target.value})
                    .eq("id", application_id)
                    .eq("status", current.status.value)
                    .execute()
                )
                if response.count == 0:
                    return self._fail(
                        ConflictError("Application was changed elsewhere; reload and try again")
                    )
                self.applications = [
                    app.model_copy(update={"status": target}) if app.id == application_id else app
                    for app in self.applications
                ]
                logger.info(
                    f"Application {application_id} moved from {current.status.value} "
                    f"to {target.value}"
                )
                return None
            except BackendError as e:
                logger.error(f"Error updating application {application_id}: {e.message}")
                return self._fail(e)
            finally:
                self.loading = False

    async def delete_application(self, application_id: str) -> InternConnectError | None:
        student = self._student()
        if student is None:
            return self._fail(AuthorizationError())

        async with self._lock:
            cached = self.get_application(application_id)
            if cached is not None and cached.student_id != student.id:
                return self._fail(AuthorizationError())

            self.loading = True
            self.error = None
            try:
                response = await (
                    self._client.table("applications")
                    .delete()
                    .eq("id", application_id)
                    .eq("student_id", student.id)
                    .execute()
                )
                if response.count == 0:
                    return self._fail(NotFoundError("Application not found"))
                self.applications = [
                    app for app in self.applications if app.id != application_id
                ]
                logger.info(f"Student {student.id} withdrew application {application_id}")
                return None
            except BackendError as e:
                logger.error(f"Error deleting application {application_id}: {e.message}")
                return self._fail(e)
            finally:
                self.loading = False

    async def save_company_notes(
        self, application_id: str, notes: str
    ) -> InternConnectError | None:
        company = self._company()
        if company is None:
            return self._fail(AuthorizationError())

        async with self._lock:
            self.loading = True
            self.error = None
            try:
                response = await (
                    self._client.table("applications")
                    .update({"company_notes": notes})
                    .eq("id", application_id)
                    .execute()
                )
                if response.count == 0:
                    return self._fail(NotFoundError("Application not found"))
                self.applications = [
                    app.model_copy(update={"company_notes": notes})
                    if app.id == application_id
                    else app
                    for app in self.applications
                ]
                return None
            except BackendError as e:
                logger.error(f"Error saving notes on {application_id}: {e.message}")
                return self._fail(e)
            finally:
                self.loading = False

    async def upload_resume(
        self, filename: str, data: bytes, content_type: str = "application/pdf"
    ) -> str | None:
        """Upload a resume for an application and return its public URL."""
        student = self._student()
        if student is None:
            self.error = AuthorizationError()
            return None

        extension = filename.rsplit(".", 1)[-1] if "." in filename else "pdf"
        path = f"{student.id}/{int(time.time() * 1000)}_{secrets.token_hex(4)}.{extension}"
        bucket = self._client.storage.from_(self._resumes_bucket)
        try:
            await bucket.upload(path, data, content_type)
        except BackendError as e:
            logger.error(f"Error uploading resume: {e.message}")
            self.error = e
            return None
        return bucket.get_public_url(path)

    def resume_url_for(self, document: DocumentMetadata) -> str:
        """Public URL of a resume already stored on the student's profile."""
        return self._client.storage.from_(self._resumes_bucket).get_public_url(
            document.storage_path
        )

    def get_application(self, application_id: str) -> Application | None:
        return next((app for app in self.applications if app.id == application_id), None)

    def applications_for_internship(self, internship_id: str) -> list[Application]:
        return [app for app in self.applications if app.internship_id == internship_id]

    def has_applied(self, internship_id: str) -> bool:
        student = self._student()
        return student is not None and any(
            app.internship_id == internship_id and app.student_id == student.id
            for app in self.applications
        )

    def status_counts(self, applications: list[Application] | None = None) -> dict[str, int]:
        if applications is None:
            applications = self.applications
        counts = Counter(app.status.value for app in applications)
        return {status.value: counts.get(status.value, 0) for status in ApplicationStatus}

    def close(self) -> None:
        self._unsubscribe()
