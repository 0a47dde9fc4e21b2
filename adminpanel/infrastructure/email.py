"""Outgoing email: a console provider for development and an SMTP provider."""

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

import structlog

from adminpanel.config import Settings, get_settings
from adminpanel.core.exceptions import AppError

logger = structlog.get_logger(__name__)


@dataclass
class EmailOptions:
    to: str
    subject: str
    html: str
    text: Optional[str] = None
    from_address: Optional[str] = None


class EmailDeliveryError(AppError):
    def __init__(self, message: str = "Failed to send email", details: Optional[dict] = None):
        super().__init__(message, 502, details)


class EmailProvider(Protocol):
    def send(self, options: EmailOptions) -> None:
        ...


class ConsoleEmailProvider:
    """Logs messages instead of sending them, keeping the most recent ones in `sent`."""

    def __init__(self, keep: int = 100):
        self.keep = keep
        self.sent: list[EmailOptions] = []

    def send(self, options: EmailOptions) -> None:
        self.sent.append(options)
        del self.sent[:-self.keep]
        logger.info(
            "Email (console provider)",
            to=options.to,
            from_address=options.from_address,
            subject=options.subject,
            text=options.text,
        )


class SmtpEmailProvider:
    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS

    def send(self, options: EmailOptions) -> None:
        if not self.host:
            raise EmailDeliveryError("SMTP not configured")

        msg = EmailMessage()
        msg["Subject"] = options.subject
        msg["From"] = options.from_address
        msg["To"] = options.to
        msg.set_content(options.text or options.subject)
        msg.add_alternative(options.html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery failed", to=options.to, host=self.host, error=str(e))
            raise EmailDeliveryError(details={"host": self.host}) from e
        logger.info("Email sent", to=options.to, subject=options.subject)


_provider: Optional[EmailProvider] = None
_console_provider = ConsoleEmailProvider()


def set_email_provider(provider: Optional[EmailProvider]) -> None:
    """Override the provider (None restores the configured one)."""
    global _provider
    _provider = provider


def get_email_provider() -> EmailProvider:
    if _provider is not None:
        return _provider
    settings = get_settings()
    if settings.EMAIL_PROVIDER == "smtp":
        return SmtpEmailProvider(settings)
    return _console_provider


def send_email(options: EmailOptions) -> None:
    if not options.from_address:
        options.from_address = get_settings().EMAIL_FROM
    get_email_provider().send(options)
