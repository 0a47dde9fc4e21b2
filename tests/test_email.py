import smtplib

import pytest

from adminpanel.application.services.email_templates import (
    magic_link_email,
    password_reset_email,
    verification_email,
)
from adminpanel.config import get_settings
from adminpanel.infrastructure.email import (
    ConsoleEmailProvider,
    EmailDeliveryError,
    EmailOptions,
    SmtpEmailProvider,
    get_email_provider,
    send_email,
    set_email_provider,
)


def test_templates_link_to_the_right_pages():
    assert "http://app.test/auth/verify-email?token=t1" in verification_email("a@x.com", "t1", "http://app.test/").text
    assert "http://app.test/auth/reset-password?token=t2" in password_reset_email("a@x.com", "t2", "http://app.test").html
    assert "http://app.test/api/auth/magic-link?token=t3" in magic_link_email("a@x.com", "t3", "http://app.test").html


def test_send_email_fills_from_address(outbox, monkeypatch):
    monkeypatch.setenv("EMAIL_FROM", "team@example.com")
    get_settings.cache_clear()

    send_email(EmailOptions(to="a@example.com", subject="Hi", html="<p>Hi</p>"))
    send_email(EmailOptions(to="b@example.com", subject="Hi", html="<p>Hi</p>", from_address="ops@example.com"))

    assert [mail.from_address for mail in outbox] == ["team@example.com", "ops@example.com"]


def test_console_provider_is_shared_between_sends():
    set_email_provider(None)
    provider = get_email_provider()
    assert isinstance(provider, ConsoleEmailProvider)
    assert get_email_provider() is provider

    before = len(provider.sent)
    send_email(EmailOptions(to="a@example.com", subject="Hi", html="<p>Hi</p>"))
    assert len(provider.sent) == min(before + 1, provider.keep)
    assert provider.sent[-1].to == "a@example.com"


def test_console_outbox_keeps_recent_messages():
    provider = ConsoleEmailProvider(keep=2)
    for to in ("a@example.com", "b@example.com", "c@example.com"):
        provider.send(EmailOptions(to=to, subject="Hi", html="<p>Hi</p>"))
    assert [mail.to for mail in provider.sent] == ["b@example.com", "c@example.com"]


def test_smtp_requires_host():
    provider = SmtpEmailProvider(get_settings())
    with pytest.raises(EmailDeliveryError):
        provider.send(EmailOptions(to="a@example.com", subject="Hi", html="<p>Hi</p>"))


def test_smtp_failures_become_delivery_errors(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no server")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    monkeypatch.setenv("SMTP_HOST", "smtp.invalid")
    get_settings.cache_clear()

    provider = SmtpEmailProvider(get_settings())
    with pytest.raises(EmailDeliveryError) as exc:
        provider.send(EmailOptions(to="a@example.com", subject="Hi", html="<p>Hi</p>", from_address="x@example.com"))
    assert exc.value.status_code == 502


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        self.user = user

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


def test_smtp_sends_multipart_message(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_USER", "mailer")
    get_settings.cache_clear()

    SmtpEmailProvider(get_settings()).send(
        EmailOptions(to="a@example.com", subject="Hi", html="<p>Hi</p>", text="Hi", from_address="x@example.com")
    )

    [msg] = FakeSMTP.sent
    assert msg["To"] == "a@example.com"
    assert msg.is_multipart()
