"""User domain models — map to the 'users' and 'user_profiles' tables."""

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from adminpanel.domain.models.mixins import SoftDeleteMixin
from adminpanel.infrastructure.database import Base


class User(SoftDeleteMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=True)  # bcrypt hash; NULL for OAuth-only accounts
    name = Column(String(200), nullable=True)
    image = Column(String(1000), nullable=True)
    email_verified = Column(DateTime(timezone=True), nullable=True)
    last_signed_in = Column(DateTime(timezone=True), nullable=True)

    profile = relationship("UserProfile", back_populates="user", uselist=False)
    user_roles = relationship("UserRole", back_populates="user")
    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")

    @property
    def active_user_roles(self):
        return [
            ur for ur in self.user_roles
            if ur.deleted_at is None and ur.role is not None and ur.role.deleted_at is None
        ]

    @property
    def roles(self) -> list[str]:
        return [ur.role.name for ur in self.active_user_roles]

    @property
    def display_name(self):
        if self.name:
            return self.name
        if self.profile:
            full = f"{self.profile.first_name or ''} {self.profile.last_name or ''}".strip()
            if full:
                return full
        return None

    def __repr__(self):
        return f"<User {self.email}>"


class UserProfile(SoftDeleteMixin, Base):
    __tablename__ = "user_profiles"

    user_id = Column(String(26), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    first_name = Column(String(200), nullable=True)
    last_name = Column(String(200), nullable=True)

    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<UserProfile {self.user_id}>"
