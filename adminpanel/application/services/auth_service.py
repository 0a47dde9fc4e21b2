"""Auth service — password hashing, credential checks, sign-up and first admin setup."""

from typing import Optional

import structlog
from passlib.context import CryptContext
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adminpanel.config import get_settings
from adminpanel.core.exceptions import (
    BusinessRuleViolationException,
    ConflictException,
    EntityNotFoundException,
)
from adminpanel.domain.models.mixins import utcnow
from adminpanel.domain.models.role import ADMIN_ROLE, USER_ROLE, Role, UserRole
from adminpanel.domain.models.user import User, UserProfile
from adminpanel.domain.schemas.auth import SessionUser

logger = structlog.get_logger(__name__)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # unrecognised or corrupted hash
        return False


def get_user_by_email(db: Session, email: str, include_deleted: bool = False) -> Optional[User]:
    query = db.query(User).filter(User.email == normalize_email(email))
    if not include_deleted:
        query = query.filter(User.deleted_at.is_(None))
    return query.first()


def get_active_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()


def to_session_user(user: User) -> SessionUser:
    return SessionUser(
        id=user.id,
        email=user.email,
        name=user.display_name,
        image=user.image,
        roles=user.roles,
    )


def verify_user_credentials(db: Session, email: Optional[str], password: Optional[str]) -> Optional[SessionUser]:
    """Check an email/password pair; None on any failure."""
    if not email or not password:
        return None

    try:
        user = get_user_by_email(db, email)
        if user is None or not user.password:
            return None
        if not verify_password(password, user.password):
            return None

        user.last_signed_in = utcnow()
        db.commit()
        db.refresh(user)
        return to_session_user(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Auth error", error=str(e))
        return None


def authorize_credentials(db: Session, email: Optional[str], password: Optional[str]) -> Optional[SessionUser]:
    """Credentials sign-in, honouring the ENABLE_EMAIL_PASSWORD toggle."""
    if not get_settings().ENABLE_EMAIL_PASSWORD:
        return None
    return verify_user_credentials(db, email, password)


def _get_role(db: Session, name: str) -> Optional[Role]:
    return db.query(Role).filter(Role.name == name, Role.deleted_at.is_(None)).first()


def _create_user(db: Session, email: str, password: str, role: Optional[Role], verified: bool = False) -> User:
    now = utcnow()
    user = User(
        email=normalize_email(email),
        password=hash_password(password),
        email_verified=now if verified else None,
        last_signed_in=now if verified else None,
    )
    db.add(user)
    db.flush()
    db.add(UserProfile(user_id=user.id))
    if role is not None:
        db.add(UserRole(user_id=user.id, role_id=role.id))
    return user


def register_user(db: Session, email: str, password: str) -> User:
    """Sign-up: user, empty profile and the default role in one transaction."""
    if get_user_by_email(db, email, include_deleted=True):
        raise ConflictException("Email already registered")

    try:
        user = _create_user(db, email, password, _get_role(db, USER_ROLE))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("User registered", user_id=user.id)
    return user


def count_admins(db: Session) -> int:
    return (
        db.query(UserRole)
        .join(Role, Role.id == UserRole.role_id)
        .join(User, User.id == UserRole.user_id)
        .filter(
            Role.name == ADMIN_ROLE,
            Role.deleted_at.is_(None),
            UserRole.deleted_at.is_(None),
            User.deleted_at.is_(None),
        )
        .count()
    )


def setup_admin(db: Session, email: str, password: str) -> User:
    """Create the first administrator; refused once any active admin exists."""
    admin_role = _get_role(db, ADMIN_ROLE)
    if admin_role is None:
        raise EntityNotFoundException("Admin role not found. Please run database seed.")
    if count_admins(db) > 0:
        raise BusinessRuleViolationException("Admin user already exists")
    if get_user_by_email(db, email, include_deleted=True):
        raise ConflictException("Email already registered")

    try:
        user = _create_user(db, email, password, admin_role, verified=True)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("Admin user created", user_id=user.id)
    return user


def is_database_empty(db: Session) -> bool:
    return db.query(User.id).filter(User.deleted_at.is_(None)).first() is None


def check_admin_exists(db: Session) -> bool:
    """True when setup can be skipped: empty database or an active admin exists."""
    try:
        if is_database_empty(db):
            return True
        return count_admins(db) > 0
    except SQLAlchemyError as e:
        logger.error("Error checking admin existence", error=str(e))
        return False


def set_password(db: Session, user: User, password: str) -> User:
    user.password = hash_password(password)
    db.commit()
    db.refresh(user)
    return user


def mark_email_verified(db: Session, user: User) -> User:
    if user.email_verified is None:
        user.email_verified = utcnow()
        db.commit()
        db.refresh(user)
    return user


def touch_last_signed_in(db: Session, user: User) -> None:
    user.last_signed_in = utcnow()
    db.commit()
