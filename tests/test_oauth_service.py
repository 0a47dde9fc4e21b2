import pytest

from adminpanel.application.services.oauth_service import (
    complete_oauth_sign_in,
    disconnect_account,
    get_enabled_providers,
    normalize_profile,
    resolve_redirect,
    sign_in_callback,
    sync_oauth_profile,
)
from adminpanel.application.services.role_service import get_user_roles
from adminpanel.config import get_settings
from adminpanel.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    UnauthorizedException,
)
from adminpanel.domain.models.account import Account
from adminpanel.domain.models.user import User

from conftest import make_user

GOOGLE_PROFILE = {
    "sub": "google-123",
    "email": "gina@example.com",
    "name": "Gina G",
    "picture": "https://lh3.googleusercontent.com/a/gina.png",
}
GITHUB_PROFILE = {
    "id": 4242,
    "login": "octo",
    "name": None,
    "email": "octo@example.com",
    "avatar_url": "https://avatars.githubusercontent.com/u/4242",
}


def test_enabled_providers_defaults():
    assert get_enabled_providers() == {
        "credentials": True,
        "magic_link": False,
        "google": False,
        "github": False,
    }


def test_oauth_provider_needs_toggle_and_credentials(monkeypatch):
    monkeypatch.setenv("NEXT_PUBLIC_ENABLE_GOOGLE_AUTH", "true")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "client-id")
    get_settings.cache_clear()
    assert get_enabled_providers()["google"] is False

    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "client-secret")
    get_settings.cache_clear()
    assert get_enabled_providers()["google"] is True


def test_toggles_accept_one(monkeypatch):
    monkeypatch.setenv("ENABLE_MAGIC_LINK", "1")
    monkeypatch.setenv("ENABLE_EMAIL_PASSWORD", "false")
    get_settings.cache_clear()

    providers = get_enabled_providers()
    assert providers["magic_link"] is True
    assert providers["credentials"] is False


def test_normalize_google_profile():
    assert normalize_profile("google", GOOGLE_PROFILE) == {
        "id": "google-123",
        "email": "gina@example.com",
        "name": "Gina G",
        "image": "https://lh3.googleusercontent.com/a/gina.png",
    }


def test_normalize_github_profile_falls_back_to_login():
    normalized = normalize_profile("github", GITHUB_PROFILE)
    assert normalized["id"] == "4242"
    assert normalized["name"] == "octo"
    assert normalized["image"] == GITHUB_PROFILE["avatar_url"]


def test_sign_in_without_email_is_denied(db):
    assert sign_in_callback(db, "github", None, GITHUB_PROFILE) is False
    with pytest.raises(UnauthorizedException):
        complete_oauth_sign_in(db, "github", {**GITHUB_PROFILE, "email": None})


def test_magic_link_sign_in_is_allowed(db):
    assert sign_in_callback(db, "email", "anyone@example.com") is True


def test_existing_user_without_roles_gets_default_role(db):
    user = make_user(db, "gina@example.com", roles=())

    assert sign_in_callback(db, "google", "gina@example.com", GOOGLE_PROFILE) is True
    assert get_user_roles(db, user.id) == ["user"]
    db.refresh(user)
    assert user.name == "Gina G"
    assert user.image == GOOGLE_PROFILE["picture"]


def test_sync_profile_keeps_existing_name_and_updates_avatar(db):
    user = make_user(db, "octo@example.com", name="Existing Name")
    user.image = "https://avatars.githubusercontent.com/u/old"
    db.commit()

    sync_oauth_profile(db, user.id, "github", {"name": "Other", "avatar_url": GITHUB_PROFILE["avatar_url"]})

    db.refresh(user)
    assert user.name == "Existing Name"
    assert user.image == GITHUB_PROFILE["avatar_url"]


def test_new_oauth_user_is_created_with_default_role(db):
    user = complete_oauth_sign_in(db, "google", GOOGLE_PROFILE)

    assert user.email == "gina@example.com"
    assert user.email_verified is not None
    assert user.last_signed_in is not None
    assert user.profile is not None
    assert user.roles == ["user"]
    account = db.query(Account).filter(Account.user_id == user.id).one()
    assert (account.provider, account.provider_account_id) == ("google", "google-123")


def test_oauth_sign_in_links_existing_user_by_email(db):
    existing = make_user(db, "octo@example.com")

    user = complete_oauth_sign_in(db, "github", GITHUB_PROFILE)
    assert user.id == existing.id

    again = complete_oauth_sign_in(db, "github", GITHUB_PROFILE)
    assert again.id == existing.id
    assert db.query(Account).filter(Account.user_id == existing.id).count() == 1


def test_oauth_sign_in_refused_for_soft_deleted_email(db):
    user = make_user(db, "gina@example.com")
    user.soft_delete()
    db.commit()

    with pytest.raises(UnauthorizedException):
        complete_oauth_sign_in(db, "google", GOOGLE_PROFILE)


def test_oauth_sign_in_refused_for_account_linked_to_deleted_user(db):
    old = complete_oauth_sign_in(db, "github", {"id": 99, "login": "octo", "email": "old@example.com"})
    old.soft_delete()
    db.commit()

    with pytest.raises(UnauthorizedException):
        complete_oauth_sign_in(db, "github", {"id": 99, "login": "octo", "email": "new@example.com"})

    assert db.query(Account).filter(Account.provider_account_id == "99").count() == 1
    assert db.query(User).filter(User.email == "new@example.com").first() is None


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://testserver/auth/signin?error=x", "http://testserver/auth/signin?error=x"),
        ("/auth/signin", "/auth/signin"),
        ("http://testserver", "http://testserver/"),
        ("/admin/users", "http://testserver/admin/users"),
        ("http://testserver/profile", "http://testserver/profile"),
        ("https://evil.example.com/auth/signin", "http://testserver/"),
        ("https://evil.example.com/", "http://testserver/"),
        ("//evil.example.com/path", "http://testserver/"),
    ],
)
def test_resolve_redirect(url, expected):
    assert resolve_redirect(url, "http://testserver") == expected


def test_disconnect_requires_password(db):
    user = complete_oauth_sign_in(db, "google", GOOGLE_PROFILE)
    with pytest.raises(BusinessRuleViolationException):
        disconnect_account(db, user, "google")


def test_disconnect_account(db):
    existing = make_user(db, "gina@example.com")
    user = complete_oauth_sign_in(db, "google", GOOGLE_PROFILE)
    assert user.id == existing.id

    with pytest.raises(EntityNotFoundException):
        disconnect_account(db, user, "github")

    disconnect_account(db, user, "google")
    assert db.query(Account).filter(Account.user_id == user.id).count() == 0
