"""Profile of the signed-in identity, plus profile-owned documents."""

import logging
import secrets
import time
import uuid
from datetime import UTC, datetime
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
from internconnect.schemas.profile import (
    PROTECTED_PROFILE_FIELDS,
    CompanyProfile,
    DocumentMetadata,
    EducationCreate,
    EducationEntry,
    ExperienceCreate,
    ExperienceEntry,
    StudentProfile,
    parse_profile,
)
from internconnect.services.auth_store import AuthStore
from internconnect.services.store import Store
from internconnect.utils.validators import normalize_skills

logger = logging.getLogger(__name__)

_UNSET = object()


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _entry_id() -> str:
    return uuid.uuid4().hex[:12]


class ProfileStore(Store):
    """Loads the current identity's ``profiles`` row and applies edits to it."""

    def __init__(self, client: BackendClient, auth: AuthStore, documents_bucket: str = "documents"):
        super().__init__()
        self._client = client
        self._auth = auth
        self._documents_bucket = documents_bucket
        self.profile: StudentProfile | CompanyProfile | None = None
        # Nothing is known until the first auth event arrives.
        self.loading = True
        self._identity: Any = _UNSET
        self._unsubscribe = auth.subscribe(self._on_auth_change)

    async def _on_auth_change(self) -> None:
        identity = self._auth.user.id if self._auth.user else None
        if identity == self._identity:
            return
        self._identity = identity
        await self.fetch_profile()

    async def fetch_profile(self) -> None:
        async with self._lock:
            await self._fetch()

    async def _fetch(self) -> None:
        user = self._auth.user
        if user is None:
            self.profile = None
            self.loading = False
            await self._notify()
            return

        self.loading = True
        self.error = None
        try:
            response = await (
                self._client.table("profiles").select("*").eq("id", user.id).single().execute()
            )
            self.profile = parse_profile(response.data) if response.data else None
        except BackendError as e:
            self.profile = None
            if e.is_row_not_found:
                logger.info(f"No profile row yet for user {user.id}")
            else:
                logger.error(f"Error fetching profile: {e.message}")
                self.error = e
        except PydanticValidationError as e:
            logger.error(f"Unreadable profile row for user {user.id}: {e}")
            self.profile = None
            self.error = InternConnectError("Profile data is invalid")
        finally:
            self.loading = False
        await self._notify()

    async def update_profile(self, values: dict[str, Any]) -> InternConnectError | None:
        """Write a partial update, then reload the row."""
        async with self._lock:
            return await self._update(values)

    async def _update(self, values: dict[str, Any]) -> InternConnectError | None:
        user = self._auth.user
        if user is None or self.profile is None:
            return self._fail(AuthorizationError("User or profile not available"))

        # Only columns of the caller's own profile variant may be written.
        allowed = type(self.profile).model_fields
        changes = {
            k: v
            for k, v in values.items()
            if k in allowed and k not in PROTECTED_PROFILE_FIELDS
        }
        ignored = sorted(set(values) - set(changes))
        if ignored:
            logger.debug(f"Ignoring profile fields {ignored} for {self.profile.role}")
        changes["updated_at"] = _now_iso()

        self.loading = True
        self.error = None
        try:
            response = await (
                self._client.table("profiles").update(changes).eq("id", user.id).execute()
            )
            if response.count == 0:
                return self._fail(NotFoundError("Profile not found"))
            await self._fetch()
            return None
        except BackendError as e:
            logger.error(f"Error updating profile: {e.message}")
            return self._fail(e)
        finally:
            self.loading = False

    async def complete_profile(self, values: dict[str, Any]) -> InternConnectError | None:
        """Finish onboarding once every required field has a value."""
        async with self._lock:
            if self.profile is None:
                return self._fail(AuthorizationError("User or profile not available"))
            missing = self.profile.missing_fields(values)
            if missing:
                return self._fail(
                    ValidationError(f"Missing required fields: {', '.join(missing)}")
                )
            return await self._update({**values, "profile_completed": True})

    def _student(self) -> StudentProfile | InternConnectError:
        if not isinstance(self.profile, StudentProfile):
            return AuthorizationError("Only students can edit this section")
        return self.profile

    async def set_skills(self, skills: list[str]) -> InternConnectError | None:
        async with self._lock:
            student = self._student()
            if isinstance(student, InternConnectError):
                return self._fail(student)
            return await self._update({"skills": normalize_skills(skills)})

    async def add_education(self, entry: EducationCreate) -> InternConnectError | None:
        async with self._lock:
            student = self._student()
            if isinstance(student, InternConnectError):
                return self._fail(student)
            new_entry = EducationEntry(id=_entry_id(), **entry.model_dump())
            education = [*student.education, new_entry]
            return await self._update(
                {"education": [item.model_dump(by_alias=True) for item in education]}
            )

    async def remove_education(self, entry_id: str) -> InternConnectError | None:
        async with self._lock:
            student = self._student()
            if isinstance(student, InternConnectError):
                return self._fail(student)
            remaining = [item for item in student.education if item.id != entry_id]
            if len(remaining) == len(student.education):
                return self._fail(NotFoundError("Education entry not found"))
            return await self._update(
                {"education": [item.model_dump(by_alias=True) for item in remaining]}
            )

    async def add_experience(self, entry: ExperienceCreate) -> InternConnectError | None:
        async with self._lock:
            student = self._student()
            if isinstance(student, InternConnectError):
                return self._fail(student)
            new_entry = ExperienceEntry(id=_entry_id(), **entry.model_dump())
            experience = [*student.experience, new_entry]
            return await self._update(
                {"experience": [item.model_dump(by_alias=True) for item in experience]}
            )

    async def remove_experience(self, entry_id: str) -> InternConnectError | None:
        async with self._lock:
            student = self._student()
            if isinstance(student, InternConnectError):
                return self._fail(student)
            remaining = [item for item in student.experience if item.id != entry_id]
            if len(remaining) == len(student.experience):
                return self._fail(NotFoundError("Experience entry not found"))
            return await self._update(
                {"experience": [item.model_dump(by_alias=True) for item in remaining]}
            )

    async def upload_document(
        self,
        name: str,
        file_type: str,
        filename: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> InternConnectError | None:
        """Store the file, then record it on the profile.

        If the profile write fails the uploaded object is removed again.
        """
        async with self._lock:
            student = self._student()
            if isinstance(student, InternConnectError):
                return self._fail(student)

            extension = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
            unique_name = f"{int(time.time() * 1000)}_{secrets.token_hex(4)}.{extension}"
            path = f"{student.id}/{unique_name}"
            bucket = self._client.storage.from_(self._documents_bucket)

            try:
                await bucket.upload(path, data, content_type)
            except BackendError as e:
                logger.error(f"Error uploading document: {e.message}")
                return self._fail(e)

            document = DocumentMetadata(
                id=unique_name,
                name=name or filename,
                storage_path=path,
                file_type=file_type,
                uploaded_at=_now_iso(),
            )
            documents = [*student.documents, document]
            error = await self._update(
                {"documents": [item.model_dump(by_alias=True) for item in documents]}
            )
            if error is not None:
                logger.error(f"Profile write failed, removing orphaned file {path}")
                try:
                    await bucket.remove([path])
                except BackendError as e:
                    logger.error(f"Failed to remove orphaned file {path}: {e.message}")
                return error
            return None

    async def delete_document(self, document_id: str) -> InternConnectError | None:
        async with self._lock:
            student = self._student()
            if isinstance(student, InternConnectError):
                return self._fail(student)

            document = next((d for d in student.documents if d.id == document_id), None)
            if document is None:
                return self._fail(NotFoundError("Document not found"))

            try:
                await self._client.storage.from_(self._documents_bucket).remove(
                    [document.storage_path]
                )
            except BackendError as e:
                logger.error(f"Error deleting file from storage: {e.message}")

            remaining = [d for d in student.documents if d.id != document_id]
            return await self._update(
                {"documents": [item.model_dump(by_alias=True) for item in remaining]}
            )

    async def download_document(self, document_id: str) -> tuple[str, bytes] | None:
        """Return ``(filename, content)``; ``None`` with ``error`` set on failure."""
        student = self._student()
        if isinstance(student, InternConnectError):
            self.error = student
            return None

        document = next((d for d in student.documents if d.id == document_id), None)
        if document is None:
            self.error = NotFoundError("Document not found")
            return None

        try:
            content = await self._client.storage.from_(self._documents_bucket).download(
                document.storage_path
            )
        except BackendError as e:
            logger.error(f"Error downloading document: {e.message}")
            self.error = e
            return None

        extension = document.storage_path.rsplit(".", 1)[-1]
        filename = document.name
        if not filename.endswith(f".{extension}"):
            filename = f"{filename}.{extension}"
        return filename, content

    async def fetch_public_profile(
        self, profile_id: str
    ) -> StudentProfile | CompanyProfile | None:
        """Look up someone else's profile; errors are logged, not stored."""
        try:
            response = await (
                self._client.table("profiles")
                .select("*")
                .eq("id", profile_id)
                .maybe_single()
                .execute()
            )
        except BackendError as e:
            logger.error(f"Error fetching profile {profile_id}: {e.message}")
            return None
        if response.data is None:
            return None
        try:
            return parse_profile(response.data)
        except PydanticValidationError:
            logger.warning(f"Unreadable profile row {profile_id}")
            return None

    def close(self) -> None:
        self._unsubscribe()
