"""
Storefront Backend — Category SQLAlchemy Model
================================================

What:  ORM model for the `categories` table.

The `products` column is a denormalized list of product ids (as strings)
whose `Product.category` equals this category's title. The authoritative
relation is the product's `category` field; this list is kept in step by
CatalogService inside the same transaction as the product write.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    products: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, title='{self.title}', products={len(self.products or [])})>"
