"""OAuth account links, one row per (provider, provider account)."""

from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from adminpanel.domain.models.mixins import SoftDeleteMixin
from adminpanel.infrastructure.database import Base


class Account(SoftDeleteMixin, Base):
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("provider", "provider_account_id", name="uq_accounts_provider_account"),
    )

    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    provider = Column(String(50), nullable=False)
    provider_account_id = Column(String(255), nullable=False)

    user = relationship("User", back_populates="accounts")

    def __repr__(self):
        return f"<Account {self.provider}:{self.provider_account_id}>"
