"""Declarative base and the column mixins shared by planner tables.

Every table has a UUID primary key and ``created_at``/``updated_at``
audit stamps.  Rows that belong to a user (fields, notifications) or to a
field (schedule entries, irrigation logs) pick up the owning foreign key
from :class:`UserOwnedMixin` / :class:`FieldScopedMixin`; both cascade on
delete so removing a user or field clears everything under it.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    pass


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.uuid_generate_v4(),
    )


class TimestampMixin:
    """``updated_at`` doubles as the freshness stamp of cached weather rows."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UserOwnedMixin:
    @declared_attr
    def user_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )


class FieldScopedMixin:
    @declared_attr
    def field_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True),
            ForeignKey("fields.id", ondelete="CASCADE"),
            nullable=False,
        )
