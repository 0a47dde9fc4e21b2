"""Settings service — environment variables, sign-in methods and email configuration."""

import re
from datetime import datetime, timezone
from typing import Dict, Optional

import structlog

from adminpanel.config import get_settings
from adminpanel.core.exceptions import ForbiddenException, ValidationException
from adminpanel.domain.schemas.settings import (
    AuthSettings,
    EmailSettings,
    EnvironmentListing,
    EnvironmentVariable,
    PlatformInfo,
)
from adminpanel.infrastructure.email import EmailOptions, send_email
from adminpanel.infrastructure.environment import DotEnvStore

logger = structlog.get_logger(__name__)

ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SENSITIVE_KEYWORDS = (
    "secret", "key", "password", "token", "auth", "api", "private",
    "credential", "pass", "jwt", "oauth", "github", "google", "aws",
    "azure", "gcp", "stripe", "paypal", "database", "db", "redis",
    "session", "cookie", "smtp", "email", "twilio", "sendgrid",
    "bucket", "access", "client",
)

AUTH_TOGGLES = {
    "enable_email_password": "ENABLE_EMAIL_PASSWORD",
    "enable_magic_link": "ENABLE_MAGIC_LINK",
    "enable_google_auth": "ENABLE_GOOGLE_AUTH",
    "enable_github_auth": "ENABLE_GITHUB_AUTH",
}
AUTH_CREDENTIALS = {
    "google_client_id": "GOOGLE_CLIENT_ID",
    "google_client_secret": "GOOGLE_CLIENT_SECRET",
    "github_client_id": "GITHUB_CLIENT_ID",
    "github_client_secret": "GITHUB_CLIENT_SECRET",
}
EMAIL_KEYS = {
    "provider": "EMAIL_PROVIDER",
    "from_address": "EMAIL_FROM",
    "smtp_host": "SMTP_HOST",
    "smtp_port": "SMTP_PORT",
    "smtp_user": "SMTP_USER",
    "smtp_password": "SMTP_PASSWORD",
}


def is_sensitive_key(key: str) -> bool:
    lower_key = key.lower()
    return any(keyword in lower_key for keyword in SENSITIVE_KEYWORDS)


def _require_editable_environment() -> None:
    if get_settings().is_production:
        raise ForbiddenException("Environment editing is disabled in production")


def _validate_key(key: Optional[str]) -> str:
    key = (key or "").strip()
    if not key:
        raise ValidationException("Key is required")
    if not ENV_KEY_RE.match(key):
        raise ValidationException("Invalid environment variable name", {"key": key})
    return key


def list_environment(store: DotEnvStore) -> EnvironmentListing:
    _require_editable_environment()
    variables = [
        EnvironmentVariable(key=key, value=value, is_secret=is_sensitive_key(key))
        for key, value in sorted(store.list().items())
    ]
    return EnvironmentListing(
        variables=variables,
        platform=PlatformInfo(**store.provider_info()),
        timestamp=datetime.now(timezone.utc),
    )


def update_environment_variable(store: DotEnvStore, key: Optional[str], value: Optional[str]) -> Dict[str, object]:
    _require_editable_environment()
    key = _validate_key(key)
    store.set(key, value or "")
    return {"success": True, "message": f"Environment variable {key} updated"}


def delete_environment_variable(store: DotEnvStore, key: Optional[str]) -> Dict[str, object]:
    _require_editable_environment()
    key = _validate_key(key)
    store.delete(key)
    return {"success": True, "message": f"Environment variable {key} deleted"}


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("true", "1")


def get_auth_settings(store: DotEnvStore) -> AuthSettings:
    settings = get_settings()
    stored = store.list()

    values = {}
    for field, key in AUTH_TOGGLES.items():
        raw = stored.get(key, stored.get(f"NEXT_PUBLIC_{key}"))
        values[field] = _as_bool(raw, getattr(settings, key))
    for field, key in AUTH_CREDENTIALS.items():
        values[field] = stored.get(key) or getattr(settings, key) or None
    return AuthSettings(**values)


def update_auth_settings(store: DotEnvStore, body: AuthSettings) -> Dict[str, object]:
    updates = {key: str(getattr(body, field)).lower() for field, key in AUTH_TOGGLES.items()}
    for field, key in AUTH_CREDENTIALS.items():
        value = getattr(body, field)
        if value and value.strip():
            updates[key] = value.strip()

    store.update(updates, remove_empty=False)
    logger.info("Authentication settings updated", keys=sorted(updates))
    return {"success": True, "message": "Authentication settings updated successfully"}


def get_email_settings(store: DotEnvStore) -> EmailSettings:
    settings = get_settings()
    stored = store.list()
    port = stored.get("SMTP_PORT")
    return EmailSettings(
        provider=stored.get("EMAIL_PROVIDER") or settings.EMAIL_PROVIDER,
        from_address=stored.get("EMAIL_FROM") or settings.EMAIL_FROM,
        smtp_host=stored.get("SMTP_HOST") or settings.SMTP_HOST or None,
        smtp_port=int(port) if port and port.isdigit() else settings.SMTP_PORT,
        smtp_user=stored.get("SMTP_USER") or settings.SMTP_USER or None,
        smtp_password=stored.get("SMTP_PASSWORD") or settings.SMTP_PASSWORD or None,
    )


def update_email_settings(store: DotEnvStore, body: EmailSettings) -> Dict[str, object]:
    if body.provider == "smtp" and not body.smtp_host:
        raise ValidationException("SMTP host is required for the smtp provider")

    updates: Dict[str, Optional[str]] = {}
    for field, key in EMAIL_KEYS.items():
        value = getattr(body, field)
        updates[key] = None if value is None else str(value)

    # keep a stored password when the form leaves it blank
    if not body.smtp_password:
        updates.pop("SMTP_PASSWORD")

    store.update(updates)
    logger.info("Email settings updated", provider=body.provider)
    return {"success": True, "message": "Email settings updated successfully"}


def send_test_email(to: str) -> Dict[str, object]:
    send_email(EmailOptions(
        to=to,
        subject="Test email",
        html="<p>Your email settings are working.</p>",
        text="Your email settings are working.",
    ))
    return {"success": True, "message": f"Test email sent to {to}"}
