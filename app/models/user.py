"""User ORM model — account owning fields and notifications.

Users authenticate via email/password and receive a bearer token.  Every
field belongs to exactly one user, who also receives that field's
notifications.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.field import Field


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Application user — authenticates via email/password (JWT)."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[str] = mapped_column(
        String(128), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        default=True,
        server_default=text("true"),
        nullable=False,
    )

    # ── Relationships ────────────────────────────────────────────────────
    fields: Mapped[list[Field]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
