import os

os.environ["SECRET_KEY"] = "test-secret-key-for-jwt-signing"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_URL"] = "http://testserver"

from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from adminpanel.main import app
from adminpanel.application.services.auth_service import hash_password
from adminpanel.application.services.role_service import ensure_default_roles
from adminpanel.application.services.token_service import generate_token
from adminpanel.config import get_settings
from adminpanel.core.rate_limit import limiter
from adminpanel.domain.models.role import Role
from adminpanel.domain.models.user import User, UserProfile
from adminpanel.infrastructure.database import Base, get_db
from adminpanel.infrastructure.email import ConsoleEmailProvider, set_email_provider
from adminpanel.infrastructure.environment import DotEnvStore
from adminpanel.infrastructure.repositories.role_repository import SQLAlchemyRoleRepository
from adminpanel.infrastructure.storage import LocalStorageProvider
from adminpanel.interfaces.deps import get_environment_store, get_storage


@pytest.fixture(autouse=True)
def isolated_environment():
    """Environment edits made by a test (directly or via the .env store) do not leak."""
    saved = dict(os.environ)
    get_settings.cache_clear()
    yield
    os.environ.clear()
    os.environ.update(saved)
    get_settings.cache_clear()


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    ensure_default_roles(session)
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def storage(tmp_path):
    return LocalStorageProvider(str(tmp_path / "media"))


@pytest.fixture
def env_store(tmp_path):
    return DotEnvStore(str(tmp_path / ".env"))


@pytest.fixture
def outbox():
    provider = ConsoleEmailProvider()
    set_email_provider(provider)
    yield provider.sent
    set_email_provider(None)


@pytest.fixture
def client(db, storage, env_store, outbox):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_environment_store] = lambda: env_store
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(
    db,
    email: str,
    password: Optional[str] = "password123",
    roles: Iterable[str] = ("user",),
    name: Optional[str] = None,
) -> User:
    user = User(email=email, password=hash_password(password) if password else None, name=name)
    db.add(user)
    db.flush()
    db.add(UserProfile(user_id=user.id))
    db.commit()

    repo = SQLAlchemyRoleRepository(db, Role)
    for role_name in roles:
        repo.grant(user.id, repo.get_by_name(role_name).id)
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {generate_token(user.id, 'access')}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", roles=("user", "admin"), name="Admin")


@pytest.fixture
def member(db):
    return make_user(db, "member@example.com", name="Member")
