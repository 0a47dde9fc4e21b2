import pytest

from adminpanel.application.services.user_service import delete_user
from adminpanel.core.exceptions import BusinessRuleViolationException
from adminpanel.domain.models.user import User
from adminpanel.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

from conftest import auth_headers, make_user


def test_requires_authentication(client):
    assert client.get("/api/admin/users").status_code == 401


def test_requires_admin_role(client, member):
    resp = client.get("/api/admin/users", headers=auth_headers(member))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "ForbiddenException"


def test_list_users_newest_first_with_pagination(client, db, admin):
    for i in range(12):
        make_user(db, f"user{i:02d}@example.com")

    resp = client.get("/api/admin/users?page=1&page_size=5", headers=auth_headers(admin))
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 13
    assert body["total_pages"] == 3
    assert [u["email"] for u in body["items"]][:2] == ["user11@example.com", "user10@example.com"]

    last = client.get("/api/admin/users?page=3&page_size=5", headers=auth_headers(admin)).json()
    assert len(last["items"]) == 3
    assert last["items"][-1]["email"] == admin.email


def test_list_users_search(client, db, admin):
    make_user(db, "alice@example.com")
    make_user(db, "bob@example.com")

    body = client.get("/api/admin/users?search=ALI", headers=auth_headers(admin)).json()
    assert [u["email"] for u in body["items"]] == ["alice@example.com"]
    assert body["items"][0]["roles"] == ["user"]


def test_list_users_rejects_bad_pagination(client, admin):
    resp = client.get("/api/admin/users?page=0", headers=auth_headers(admin))
    assert resp.status_code == 400


def test_create_user(client, admin):
    resp = client.post(
        "/api/admin/users",
        json={"email": "Editor@Example.com", "password": "secret1", "name": "Ed", "roles": ["user", "admin"]},
        headers=auth_headers(admin),
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "editor@example.com"
    assert sorted(body["roles"]) == ["admin", "user"]
    assert body["profile"] == {"first_name": None, "last_name": None}
    assert "password" not in body


def test_create_user_defaults_to_user_role(client, admin):
    body = client.post(
        "/api/admin/users",
        json={"email": "plain@example.com", "password": "secret1"},
        headers=auth_headers(admin),
    ).json()
    assert body["roles"] == ["user"]


def test_create_user_conflicts_and_validation(client, admin, member):
    dup = client.post(
        "/api/admin/users",
        json={"email": member.email, "password": "secret1"},
        headers=auth_headers(admin),
    )
    assert dup.status_code == 400
    assert dup.json()["error"]["code"] == "ConflictException"

    short = client.post(
        "/api/admin/users",
        json={"email": "x@example.com", "password": "123"},
        headers=auth_headers(admin),
    )
    assert short.status_code == 400

    unknown_role = client.post(
        "/api/admin/users",
        json={"email": "y@example.com", "password": "secret1", "roles": ["wizard"]},
        headers=auth_headers(admin),
    )
    assert unknown_role.status_code == 400


def test_get_user(client, admin, member):
    resp = client.get(f"/api/admin/users/{member.id}", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["name"] == "Member"

    assert client.get("/api/admin/users/missing", headers=auth_headers(admin)).status_code == 404


def test_update_user_replaces_roles(client, admin, member):
    resp = client.patch(
        f"/api/admin/users/{member.id}",
        json={"email": member.email, "name": "Renamed", "roles": ["admin"]},
        headers=auth_headers(admin),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Renamed"
    assert body["roles"] == ["admin"]


def test_update_user_changes_password(client, admin, member):
    resp = client.patch(
        f"/api/admin/users/{member.id}",
        json={"email": member.email, "password": "changed"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200

    signin = client.post(
        "/api/auth/signin",
        json={"type": "password", "email": member.email, "password": "changed"},
    )
    assert signin.status_code == 200


def test_update_user_rejects_taken_email(client, admin, member):
    resp = client.patch(
        f"/api/admin/users/{member.id}",
        json={"email": admin.email},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 400


def test_update_cannot_drop_own_admin_role(client, admin):
    resp = client.patch(
        f"/api/admin/users/{admin.id}",
        json={"email": admin.email, "roles": ["user"]},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Cannot remove admin role from yourself"


def test_delete_user(client, db, admin, member):
    resp = client.delete(f"/api/admin/users/{member.id}", headers=auth_headers(admin))
    assert resp.status_code == 200

    assert client.get(f"/api/admin/users/{member.id}", headers=auth_headers(admin)).status_code == 404
    db.expire_all()
    assert db.query(User).filter(User.id == member.id).one().deleted_at is not None


def test_cannot_delete_self(client, admin):
    resp = client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))
    assert resp.status_code == 400


def test_last_admin_cannot_be_deleted(db, admin, member):
    repo = SQLAlchemyUserRepository(db, User)

    with pytest.raises(BusinessRuleViolationException, match="last admin"):
        delete_user(repo, admin.id, acting_user_id=member.id)

    db.expire_all()
    assert db.query(User).filter(User.id == admin.id).one().deleted_at is None


def test_admin_can_be_deleted_while_another_remains(client, db, admin):
    other = make_user(db, "second-admin@example.com", roles=("user", "admin"))
    resp = client.delete(f"/api/admin/users/{other.id}", headers=auth_headers(admin))
    assert resp.status_code == 200


def test_deleted_user_cannot_authenticate(client, admin, member):
    headers = auth_headers(member)
    client.delete(f"/api/admin/users/{member.id}", headers=auth_headers(admin))
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_grant_and_revoke_role(client, admin, member):
    url = f"/api/admin/users/{member.id}/roles"

    granted = client.post(url, json={"roleName": "admin"}, headers=auth_headers(admin))
    assert granted.status_code == 200
    assert sorted(granted.json()["roles"]) == ["admin", "user"]

    again = client.post(url, json={"roleName": "admin"}, headers=auth_headers(admin))
    assert again.status_code == 400

    revoked = client.request("DELETE", url, json={"roleName": "admin"}, headers=auth_headers(admin))
    assert revoked.status_code == 200
    assert revoked.json()["roles"] == ["user"]

    regranted = client.post(url, json={"roleName": "admin"}, headers=auth_headers(admin))
    assert sorted(regranted.json()["roles"]) == ["admin", "user"]


@pytest.mark.parametrize("role_name, status", [("wizard", 404), ("admin", 404)])
def test_revoke_missing_grant(client, admin, member, role_name, status):
    resp = client.request(
        "DELETE",
        f"/api/admin/users/{member.id}/roles",
        json={"roleName": role_name},
        headers=auth_headers(admin),
    )
    assert resp.status_code == status


def test_cannot_revoke_own_admin(client, admin):
    resp = client.request(
        "DELETE",
        f"/api/admin/users/{admin.id}/roles",
        json={"roleName": "admin"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 400


def test_admin_password_reset_sends_email(client, admin, member, outbox):
    resp = client.post(f"/api/admin/users/{member.id}/reset-password", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert [mail.to for mail in outbox] == [member.email]
