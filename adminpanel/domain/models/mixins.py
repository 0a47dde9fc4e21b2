"""Columns shared by every table: ULID key, timestamps and soft-delete marker."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from adminpanel.core.ids import generate_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SoftDeleteMixin:
    id = Column(String(26), primary_key=True, default=generate_id)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()
