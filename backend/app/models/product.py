"""
Storefront Backend — Product SQLAlchemy Model
===============================================

What:  ORM model for the `products` table.

Table Design:
    - category: the *title* of a Category, not a foreign key. Products can
      name a category that does not exist (yet); membership in the
      category's product list is maintained by CatalogService.
    - sizes / images / rating: JSON columns. Lists are reassigned, never
      mutated in place, so SQLAlchemy sees every change.
    - totalprice: derived, price - price * discount / 100. Written by
      CatalogService on every create and update.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    """A catalog item."""

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    sizes: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    size: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default=None)

    # Public image paths, in display order
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    stock: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    price: Mapped[float] = mapped_column(Float, nullable=False)
    prevprice: Mapped[Optional[float]] = mapped_column(Float, nullable=True, default=None)
    qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    totalprice: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # {"rate": float, "count": int}
    rating: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, title='{self.title}', category='{self.category}')>"
