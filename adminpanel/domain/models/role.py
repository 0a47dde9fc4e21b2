"""Roles and the user_roles join table."""

from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from adminpanel.domain.models.mixins import SoftDeleteMixin
from adminpanel.infrastructure.database import Base

USER_ROLE = "user"
ADMIN_ROLE = "admin"
PROTECTED_ROLES = (USER_ROLE, ADMIN_ROLE)


class Role(SoftDeleteMixin, Base):
    __tablename__ = "roles"

    name = Column(String(50), unique=True, nullable=False, index=True)

    user_roles = relationship("UserRole", back_populates="role")

    def __repr__(self):
        return f"<Role {self.name}>"


class UserRole(SoftDeleteMixin, Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),)

    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    role_id = Column(String(26), ForeignKey("roles.id"), nullable=False, index=True)

    user = relationship("User", back_populates="user_roles")
    role = relationship("Role", back_populates="user_roles")

    def __repr__(self):
        return f"<UserRole {self.user_id} -> {self.role_id}>"
