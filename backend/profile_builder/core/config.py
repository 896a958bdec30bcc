"""Application configuration loaded from environment variables.

Settings for database, object storage, AI providers, upload limits and
wizard sessions. Uses pydantic-settings for validation and .env file support.
"""

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "profile_builder_dev_password"  # nosec B105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "profile_builder"
    database_user: str = "profile_builder_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # API
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # CORS (Security)
    # Default allows localhost:3000 for the web client during development
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Object storage (Supabase-compatible storage API)
    storage_url: str = "http://localhost:54321"
    storage_service_key: SecretStr = SecretStr("")
    storage_timeout_seconds: float = 30.0

    # Buckets used by the submission pipelines
    br_certificate_bucket: str = "br-certificates"
    company_logo_bucket: str = "company-logos"
    profile_image_bucket: str = "profile-images"

    # Upload limits
    upload_max_size_mb: int = 10  # certificates, logos, profile images
    cv_max_size_mb: int = 5  # CV documents sent for extraction

    # AI provider (document verification + CV extraction)
    llm_provider: str = "gemini"
    google_api_key: str = ""

    # Wizard sessions held server-side between requests
    wizard_session_ttl_minutes: int = 60

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - Upload limits and session TTL must be positive (all environments)
        - Storage URL must be http(s) (all environments)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Database password must not be the default in production
        - Storage service key must be set in production
        """
        if self.upload_max_size_mb <= 0 or self.cv_max_size_mb <= 0:
            msg = (
                "UPLOAD_MAX_SIZE_MB and CV_MAX_SIZE_MB must be positive. "
                f"Got: {self.upload_max_size_mb}, {self.cv_max_size_mb}"
            )
            raise ValueError(msg)

        if self.wizard_session_ttl_minutes <= 0:
            msg = (
                "WIZARD_SESSION_TTL_MINUTES must be positive. "
                f"Got: {self.wizard_session_ttl_minutes}"
            )
            raise ValueError(msg)

        if not self.storage_url.startswith(("http://", "https://")):
            msg = f"STORAGE_URL must be an http(s) URL. Got: {self.storage_url}"
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)
            if not self.storage_service_key.get_secret_value():
                msg = "STORAGE_SERVICE_KEY must be set in production."
                raise ValueError(msg)

        return self


settings = Settings()
