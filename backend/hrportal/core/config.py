from typing import Optional, List

from pydantic import Field, AliasChoices, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Known insecure default values that must be changed in production
_INSECURE_SECRET_KEYS = {
    "hrportal-development-secret-change-me-in-production",
    "demo-secret",
    "changeme",
    "secret",
}


class Settings(BaseSettings):
    # Allow comma-separated env vars for list fields like ALLOWED_ORIGINS
    model_config = SettingsConfigDict(env_file=".env", env_parse_delimiter=",", extra="ignore")
    PROJECT_NAME: str = "HR Portal"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # CORS
    ALLOWED_ORIGINS: List[str] | str = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("ALLOWED_ORIGINS", "BACKEND_CORS_ORIGINS"),
    )

    # Database settings
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_SERVER: str = Field(
        default="localhost",
        validation_alias=AliasChoices("POSTGRES_SERVER", "POSTGRES_HOST"),
    )
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "hrportal"

    DB_POOL_SIZE: int = Field(default=10, description="Number of persistent DB connections")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Max additional connections under load")

    # Full DB URL. If not provided, we build it from POSTGRES_*.
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "SQLALCHEMY_DATABASE_URI"),
    )
    SQLALCHEMY_ECHO: bool = False

    # Token issuing
    SECRET_KEY: str = Field(
        default="hrportal-development-secret-change-me-in-production",
        validation_alias=AliasChoices("JWT_SECRET", "SECRET_KEY"),
    )
    ALGORITHM: str = "HS256"
    AUTH_TOKEN_EXPIRE_DAYS: int = 7
    AUTH_COOKIE_NAME: str = "auth-token"
    BCRYPT_ROUNDS: int = 12

    # Password policy for generated and changed passwords
    MIN_PASSWORD_LENGTH: int = 8

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "5/minute"

    # Documents
    DOCUMENT_MAX_BYTES: int = 10 * 1024 * 1024
    DOCUMENT_ALLOWED_TYPES: List[str] | str = Field(
        default_factory=lambda: [
            "application/pdf",
            "image/jpeg",
            "image/png",
            "image/gif",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        ]
    )

    # Public landing page counters
    PUBLIC_SATISFACTION_RATE: float = 98.5

    # Government gateways
    GOVERNMENT_SANDBOX: bool = True
    GOVERNMENT_TIMEOUT: float = 15.0
    GOVERNMENT_MAX_RETRIES: int = 2
    LHDN_BASE_URL: str = "https://api.lhdn.gov.my"
    KWSP_BASE_URL: str = "https://api.kwsp.gov.my"
    PERKESO_BASE_URL: str = "https://api.perkeso.gov.my"
    HRDF_BASE_URL: str = "https://api.hrdf.gov.my"
    MYWORKID_BASE_URL: str = "https://api.myworkid.gov.my"

    # HR agents. "auto" uses OpenAI when a key is configured, local Ollama otherwise.
    AI_PROVIDER: str = "auto"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "gemma3:4b"
    LLM_REQUEST_TIMEOUT: float = 60.0
    AI_TASK_TIMEOUT: float = 120.0

    @computed_field
    @property
    def COOKIE_SECURE(self) -> bool:
        """Only set secure cookies in production."""
        return self.ENVIRONMENT.lower() == "production"

    @computed_field
    @property
    def AUTH_TOKEN_MAX_AGE(self) -> int:
        """Token and cookie lifetime in seconds."""
        return self.AUTH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

    def model_post_init(self, __context):
        """
        Fill derived values and refuse to start production with development credentials.
        """
        if not self.DATABASE_URL:
            self.DATABASE_URL = (
                f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )

        if self.ENVIRONMENT.lower() != "production":
            return

        errors = []
        if self.SECRET_KEY in _INSECURE_SECRET_KEYS or len(self.SECRET_KEY) < 32:
            errors.append(
                "SECRET_KEY is insecure. Generate a new key with: "
                "python -c \"import secrets; print(secrets.token_urlsafe(32))\""
            )
        if self.DEBUG:
            errors.append("DEBUG must be False in production.")
        if self.GOVERNMENT_SANDBOX:
            errors.append("GOVERNMENT_SANDBOX must be False in production.")

        if errors:
            error_msg = "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

    @field_validator("ALLOWED_ORIGINS", "DOCUMENT_ALLOWED_TYPES", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value


settings = Settings()
