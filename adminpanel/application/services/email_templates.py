"""Transactional email templates and their previews."""

from dataclasses import dataclass
from typing import Callable, List, Optional

from adminpanel.config import get_settings
from adminpanel.core.exceptions import EntityNotFoundException
from adminpanel.domain.schemas.settings import EmailTemplateInfo, EmailTemplatePreview
from adminpanel.infrastructure.email import EmailOptions

_BUTTON_STYLE = (
    "background-color: #000; color: #fff; padding: 10px 20px; "
    "text-decoration: none; border-radius: 5px;"
)


def _render(title: str, intro: str, action: str, url: str, footer: str) -> str:
    return f"""
    <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
      <h2>{title}</h2>
      <p>{intro}</p>
      <p style="margin: 30px 0;">
        <a href="{url}" style="{_BUTTON_STYLE}">{action}</a>
      </p>
      <p>Or copy and paste this link into your browser:</p>
      <p style="color: #666; word-break: break-all;">{url}</p>
      <p style="color: #666; font-size: 14px;">{footer}</p>
    </div>
    """


def verification_email(to: str, token: str, app_url: str) -> EmailOptions:
    url = f"{app_url.rstrip('/')}/auth/verify-email?token={token}"
    return EmailOptions(
        to=to,
        subject="Verify your email address",
        html=_render(
            "Verify your email address",
            "Thanks for signing up! Please click the button below to verify your email address.",
            "Verify Email",
            url,
            "This link will expire in 24 hours.",
        ),
        text=f"Verify your email address: {url}",
    )


def password_reset_email(to: str, token: str, app_url: str) -> EmailOptions:
    url = f"{app_url.rstrip('/')}/auth/reset-password?token={token}"
    return EmailOptions(
        to=to,
        subject="Reset your password",
        html=_render(
            "Reset your password",
            "We received a request to reset your password. Click the button below to choose a new one.",
            "Reset Password",
            url,
            "This link will expire in 1 hour. If you didn't request this, you can ignore this email.",
        ),
        text=f"Reset your password: {url}",
    )


def magic_link_email(to: str, token: str, app_url: str) -> EmailOptions:
    url = f"{app_url.rstrip('/')}/api/auth/magic-link?token={token}"
    return EmailOptions(
        to=to,
        subject="Sign in to your account",
        html=_render(
            "Sign in to your account",
            "Click the button below to sign in. No password needed.",
            "Sign In",
            url,
            "This link will expire in 24 hours. If you didn't request this, you can ignore this email.",
        ),
        text=f"Sign in to your account: {url}",
    )


@dataclass(frozen=True)
class EmailTemplate:
    id: str
    name: str
    description: str
    render: Callable[[str, str, str], EmailOptions]


TEMPLATES = {
    template.id: template
    for template in (
        EmailTemplate(
            "email-verification",
            "Email Verification",
            "Sent after sign-up with a link to confirm the address",
            verification_email,
        ),
        EmailTemplate(
            "password-reset",
            "Password Reset",
            "Sent from forgot-password and by admins, links to the reset form",
            password_reset_email,
        ),
        EmailTemplate(
            "magic-link",
            "Magic Link",
            "Passwordless sign-in link",
            magic_link_email,
        ),
    )
}

PREVIEW_RECIPIENT = "preview@example.com"
PREVIEW_TOKEN = "preview-token"


def list_templates() -> List[EmailTemplateInfo]:
    return sorted(
        (EmailTemplateInfo(id=t.id, name=t.name, description=t.description) for t in TEMPLATES.values()),
        key=lambda info: info.name,
    )


def render_preview(template_id: str, app_url: Optional[str] = None) -> EmailTemplatePreview:
    """Render a template with sample data; nothing is sent."""
    template = TEMPLATES.get(template_id)
    if template is None:
        raise EntityNotFoundException("Email template not found", {"template": template_id})

    rendered = template.render(PREVIEW_RECIPIENT, PREVIEW_TOKEN, app_url or get_settings().APP_URL)
    return EmailTemplatePreview(
        id=template.id,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
    )
