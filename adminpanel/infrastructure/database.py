"""Database engine, session factory and declarative base."""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from adminpanel.config import get_settings

settings = get_settings()


def build_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, future=True, **kwargs)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Provide a session per request, closed afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create database tables if they do not exist."""
    # Import all models so SQLAlchemy knows about them
    from adminpanel.domain.models.account import Account  # noqa: F401
    from adminpanel.domain.models.role import Role, UserRole  # noqa: F401
    from adminpanel.domain.models.user import User, UserProfile  # noqa: F401

    Base.metadata.create_all(bind=engine)
