"""Application configuration management."""

from pydantic import AnyUrl, ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Hosted backend (auth, tables, object storage)
    backend_url: AnyUrl
    backend_anon_key: str
    backend_timeout_seconds: float = Field(default=30.0, gt=0)

    # Storage buckets
    documents_bucket: str = "documents"
    resumes_bucket: str = "resumes"

    # Auth session persistence
    database_url: AnyUrl

    # Browser sessions
    session_cookie_name: str = "ic_session"
    session_idle_minutes: int = Field(default=120, ge=1)
    cookie_secure: bool = Field(
        default=True,
        description="Set to False for local HTTP development",
    )

    log_level: str = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def backend_base_url(self) -> str:
        """Backend URL without a trailing slash."""
        return str(self.backend_url).rstrip("/")


settings = Settings()
