"""
Storefront Backend — Product & Category Schemas
=================================================

What:  Request bodies and responses for /api/products and /api/categories.

Required vs optional on create:
    title, category, price (> 0) and at least one image are required.
    Everything else has a default. `stock` is free text ("12", "in stock"),
    numbers are accepted and stored as strings.

Responses:
    camelCase on the wire (createdAt, updatedAt); the single-word catalog
    fields (totalprice, prevprice) are unchanged.

Update semantics:
    ProductUpdate has every field optional and no `images` field: image
    paths in an update body are ignored, only uploaded files replace them.
    Services apply `model_dump(exclude_unset=True, exclude_none=True)`, so
    fields absent from the payload keep their stored values.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Rating(BaseModel):
    rate: Optional[float] = Field(default=None, ge=0)
    count: Optional[int] = Field(default=None, ge=0)


class ProductCreate(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    category: str = Field(min_length=1, max_length=255)
    type: str = ""
    sizes: List[str] = Field(default_factory=list)
    size: Optional[str] = None
    images: List[str] = Field(min_length=1, description="Paths returned by POST /api/products/upload")
    stock: str = ""
    price: float = Field(gt=0)
    prevprice: Optional[float] = Field(default=None, ge=0)
    qty: int = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0, le=100, description="Percentage off price")
    rating: Optional[Rating] = None


class ProductUpdate(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[str] = None
    sizes: Optional[List[str]] = None
    size: Optional[str] = None
    stock: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    prevprice: Optional[float] = Field(default=None, ge=0)
    qty: Optional[int] = Field(default=None, ge=0)
    discount: Optional[float] = Field(default=None, ge=0, le=100)
    rating: Optional[Rating] = None


class ProductResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    category: str
    type: str
    sizes: List[str]
    size: Optional[str] = None
    images: List[str]
    stock: str
    price: float
    prevprice: Optional[float] = None
    qty: int
    discount: float
    totalprice: float
    rating: Optional[Rating] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class ImageUploadResponse(BaseModel):
    """{"imageUrls": ["/uploads/products/<file>", ...]}"""
    model_config = ConfigDict(populate_by_name=True)

    image_urls: List[str] = Field(alias="imageUrls")


class CategoryCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class CategoryResponse(BaseModel):
    id: uuid.UUID
    title: str
    products: List[str] = Field(description="Ids of products in this category")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
