import pytest

from adminpanel.application.services.role_service import (
    assign_default_user_role,
    create_role,
    delete_role,
    get_user_roles,
    grant_role,
    has_role,
    is_admin,
    list_roles,
    revoke_role,
)
from adminpanel.core.exceptions import (
    BusinessRuleViolationException,
    ConflictException,
    EntityNotFoundException,
)
from adminpanel.domain.models.role import Role, UserRole
from adminpanel.domain.models.user import User
from adminpanel.domain.schemas.role import RoleCreate
from adminpanel.infrastructure.repositories.role_repository import SQLAlchemyRoleRepository
from adminpanel.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

from conftest import make_user


@pytest.fixture
def role_repo(db):
    return SQLAlchemyRoleRepository(db, Role)


@pytest.fixture
def user_repo(db):
    return SQLAlchemyUserRepository(db, User)


def test_has_role_and_is_admin(db):
    admin = make_user(db, "admin@example.com", roles=("user", "admin"))
    member = make_user(db, "member@example.com")

    assert has_role(db, member.id, "user")
    assert not has_role(db, member.id, "admin")
    assert is_admin(db, admin.id)
    assert not is_admin(db, member.id)


def test_missing_admin_role_means_not_admin(db):
    user = make_user(db, "admin@example.com", roles=("admin",))
    db.query(Role).filter(Role.name == "admin").first().soft_delete()
    db.commit()

    assert is_admin(db, user.id) is False


def test_assign_default_user_role(db):
    user = make_user(db, "fresh@example.com", roles=())
    assert get_user_roles(db, user.id) == []

    assert assign_default_user_role(db, user.id) is True
    assert get_user_roles(db, user.id) == ["user"]


def test_assign_default_user_role_without_user_role(db):
    user = make_user(db, "fresh@example.com", roles=())
    db.query(Role).filter(Role.name == "user").first().soft_delete()
    db.commit()

    assert assign_default_user_role(db, user.id) is False


def test_regranting_revives_soft_deleted_grant(db, role_repo):
    user = make_user(db, "editor@example.com", roles=())
    role = role_repo.create({"name": "editor"})

    first = role_repo.grant(user.id, role.id)
    role_repo.revoke(user.id, role.id)
    assert not has_role(db, user.id, "editor")

    again = role_repo.grant(user.id, role.id)
    assert again.id == first.id
    assert again.deleted_at is None
    assert db.query(UserRole).filter(UserRole.user_id == user.id).count() == 1


def test_list_roles_counts_active_holders(db, role_repo):
    make_user(db, "a@example.com", roles=("user", "admin"))
    make_user(db, "b@example.com")
    gone = make_user(db, "c@example.com")
    gone.soft_delete()
    db.commit()

    counts = {role.name: role.user_count for role in list_roles(role_repo)}
    assert counts == {"admin": 1, "user": 2}


def test_create_role_and_duplicates(role_repo):
    role = create_role(role_repo, RoleCreate(name="editor"))
    assert role.name == "editor"

    with pytest.raises(ConflictException):
        create_role(role_repo, RoleCreate(name="editor"))


def test_create_role_revives_soft_deleted_role(role_repo):
    role = create_role(role_repo, RoleCreate(name="editor"))
    delete_role(role_repo, role.id)

    revived = create_role(role_repo, RoleCreate(name="editor"))
    assert revived.id == role.id


def test_protected_roles_cannot_be_deleted(role_repo):
    for name in ("user", "admin"):
        with pytest.raises(BusinessRuleViolationException):
            delete_role(role_repo, role_repo.get_by_name(name).id)


def test_role_in_use_cannot_be_deleted(db, role_repo):
    role = create_role(role_repo, RoleCreate(name="editor"))
    make_user(db, "ed@example.com", roles=("editor",))

    with pytest.raises(BusinessRuleViolationException):
        delete_role(role_repo, role.id)


def test_delete_unknown_role(role_repo):
    with pytest.raises(EntityNotFoundException):
        delete_role(role_repo, "01HZZZZZZZZZZZZZZZZZZZZZZZ")


def test_grant_role_rejects_duplicates_and_unknowns(db, user_repo, role_repo):
    user = make_user(db, "member@example.com")

    with pytest.raises(ConflictException):
        grant_role(user_repo, role_repo, user.id, "user")
    with pytest.raises(EntityNotFoundException):
        grant_role(user_repo, role_repo, user.id, "nope")
    with pytest.raises(EntityNotFoundException):
        grant_role(user_repo, role_repo, "01HZZZZZZZZZZZZZZZZZZZZZZZ", "user")


def test_last_admin_cannot_be_removed(db, user_repo, role_repo):
    admin = make_user(db, "admin@example.com", roles=("admin",))
    operator = make_user(db, "operator@example.com")

    with pytest.raises(BusinessRuleViolationException):
        revoke_role(user_repo, role_repo, admin.id, "admin", acting_user_id=operator.id)
    assert is_admin(db, admin.id)


def test_admin_cannot_remove_own_admin_role(db, user_repo, role_repo):
    first = make_user(db, "first@example.com", roles=("admin",))
    make_user(db, "second@example.com", roles=("admin",))

    with pytest.raises(BusinessRuleViolationException):
        revoke_role(user_repo, role_repo, first.id, "admin", acting_user_id=first.id)


def test_revoke_admin_when_another_admin_remains(db, user_repo, role_repo):
    first = make_user(db, "first@example.com", roles=("admin",))
    second = make_user(db, "second@example.com", roles=("admin",))

    revoke_role(user_repo, role_repo, second.id, "admin", acting_user_id=first.id)
    assert not is_admin(db, second.id)


def test_revoke_role_user_does_not_have(db, user_repo, role_repo):
    user = make_user(db, "member@example.com", roles=())
    with pytest.raises(EntityNotFoundException):
        revoke_role(user_repo, role_repo, user.id, "user", acting_user_id="someone-else")
