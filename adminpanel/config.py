"""Admin console configuration (pydantic-settings)."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

UNSET_SECRET = "your-secret-key-change-in-production"


def _toggle(name: str, default: bool) -> bool:
    # Feature toggles are also read from their NEXT_PUBLIC_ prefixed names
    return Field(default, validation_alias=AliasChoices(name, f"NEXT_PUBLIC_{name}"))


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./adminpanel.db"

    # Security
    SECRET_KEY: str = Field(UNSET_SECRET, validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET"))
    JWT_ALGORITHM: str = "HS256"

    # Public base URL used in emails and OAuth redirects
    APP_URL: str = "http://localhost:8000"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Sign-in methods
    ENABLE_EMAIL_PASSWORD: bool = _toggle("ENABLE_EMAIL_PASSWORD", True)
    ENABLE_MAGIC_LINK: bool = _toggle("ENABLE_MAGIC_LINK", False)
    ENABLE_GOOGLE_AUTH: bool = _toggle("ENABLE_GOOGLE_AUTH", False)
    ENABLE_GITHUB_AUTH: bool = _toggle("ENABLE_GITHUB_AUTH", False)

    # OAuth clients
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""

    # Email
    EMAIL_PROVIDER: str = "console"  # "console" or "smtp"
    EMAIL_FROM: str = "noreply@example.com"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True

    # Media storage
    MEDIA_DIR: str = "./data/media"
    MEDIA_MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # File edited by the environment screen
    ENV_FILE: str = ".env"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
