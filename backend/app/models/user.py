"""
Storefront Backend — User SQLAlchemy Model
============================================

What:  ORM model for the `users` table (the credential store).
How:   Inherits from the shared DeclarativeBase; Alembic reads it for migrations.

Table Design:
    - email is UNIQUE: the service pre-checks for duplicates, and the
      constraint catches the race between two concurrent registrations
    - password holds a bcrypt hash only; response schemas never include it
    - role: 'user' (default) or 'admin'
    - profile_picture: public path (/uploads/profile-pictures/<file>)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A registered customer or administrator."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(String(150), nullable=False)

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)

    # bcrypt hash, never the plain password
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")

    profile_picture: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        # No password here: reprs end up in logs
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
