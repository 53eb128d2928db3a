"""
Storefront Backend — Catalog Service
======================================

What:  Product create/read/update/delete, product image uploads, and the
       category records whose product lists index products by title.
How:   Operations run against the request's AsyncSession. Category
       membership changes are flushed in the same transaction as the
       product write they follow, so both commit or neither does.
Who:   Called by the /api/products and /api/categories routes.

Membership rules:
    create  → append the new id to the category whose title == product.category
    delete  → remove the id from that category
    A product whose category title matches no Category row is simply not
    listed anywhere; that is not an error.
"""

import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.category import Category
from app.models.product import Product
from app.schemas.product import (
    CategoryCreate,
    CategoryResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from app.services.file_service import PRODUCT_FOLDER, FileService

logger = logging.getLogger(__name__)


def compute_total_price(price: float, discount: Optional[float]) -> float:
    """price - price * discount / 100; a missing discount counts as 0."""
    return price - price * ((discount or 0) / 100)


def parse_identifier(raw: str, resource: str) -> UUID:
    """
    Raises:
        ValidationError: `raw` is not a well-formed identifier
    """
    try:
        return UUID(raw)
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(
            message=f"Invalid {resource} ID",
            field="id",
            context={"value": str(raw)},
        )


class CatalogService:
    """
    Business logic layer for products and categories.

    Stateless apart from the FileService used for product images.
    """

    def __init__(self, files: FileService):
        self.files = files

    # ── Category helpers ──────────────────────────────────────────────────

    async def _find_category(self, db: AsyncSession, title: str) -> Category | None:
        result = await db.execute(
            select(Category).where(Category.title == title).order_by(Category.created_at)
        )
        return result.scalars().first()

    async def _add_to_category(self, db: AsyncSession, product: Product) -> None:
        category = await self._find_category(db, product.category)
        if category is None:
            logger.debug("No category titled %r; product %s not indexed", product.category, product.id)
            return
        # Reassign instead of append: JSON columns do not track in-place mutation
        category.products = [*category.products, str(product.id)]
        await db.flush()

    async def _remove_from_category(self, db: AsyncSession, product: Product) -> None:
        category = await self._find_category(db, product.category)
        if category is None:
            return
        product_id = str(product.id)
        category.products = [pid for pid in category.products if pid != product_id]
        await db.flush()

    # ── Products ──────────────────────────────────────────────────────────

    async def create_product(self, db: AsyncSession, payload: ProductCreate) -> ProductResponse:
        """
        Persist a product and index it under its category.

        Raises:
            DatabaseError: insert or category update failed (both roll back)
        """
        data = payload.model_dump()
        product = Product(
            **data,
            totalprice=compute_total_price(payload.price, payload.discount),
        )

        try:
            db.add(product)
            await db.flush()
            await self._add_to_category(db, product)
            await db.refresh(product)
        except SQLAlchemyError as e:
            logger.error("Database error creating product: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the product. Please try again.",
                context={"title": payload.title},
            )

        logger.info("Product created: %s (%s)", product.id, product.category)
        return ProductResponse.model_validate(product)

    async def upload_images(
        self,
        files: Sequence[Tuple[str, Optional[str], bytes]],
    ) -> List[str]:
        """Validate and store product images; returns their public paths."""
        if not files:
            raise ValidationError(message="No files uploaded", field="images")
        paths = await self.files.validate_and_store_many(PRODUCT_FOLDER, files)
        logger.info("Uploaded %d product image(s)", len(paths))
        return paths

    async def list_products(self, db: AsyncSession) -> List[ProductResponse]:
        try:
            result = await db.execute(select(Product))
            products = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing products: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve products. Please try again.")
        return [ProductResponse.model_validate(p) for p in products]

    async def _get_product(self, db: AsyncSession, product_id: UUID) -> Product:
        product = await db.get(Product, product_id)
        if product is None:
            raise NotFoundError(resource="product", resource_id=str(product_id))
        return product

    async def get_product(self, db: AsyncSession, raw_id: str) -> ProductResponse:
        """
        Raises:
            ValidationError: malformed id (400)
            NotFoundError: no such product (404)
        """
        product_id = parse_identifier(raw_id, "product")
        try:
            product = await self._get_product(db, product_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching product %s: %s", product_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the product. Please try again.",
                context={"product_id": str(product_id)},
            )
        return ProductResponse.model_validate(product)

    async def update_product(
        self,
        db: AsyncSession,
        raw_id: str,
        payload: ProductUpdate,
        uploads: Sequence[Tuple[str, Optional[str], bytes]] = (),
    ) -> ProductResponse:
        """
        Apply a partial update.

        Only fields present in `payload` change. Uploaded files replace the
        image list; without uploads the images are untouched. totalprice is
        always recomputed from the resulting price and discount.

        Category membership is not moved when `category` changes.
        """
        product_id = parse_identifier(raw_id, "product")
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        try:
            product = await self._get_product(db, product_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching product %s: %s", product_id, str(e))
            raise DatabaseError(context={"product_id": str(product_id)})

        new_images: List[str] = []
        if uploads:
            new_images = await self.files.validate_and_store_many(PRODUCT_FOLDER, uploads)

        for field, value in changes.items():
            setattr(product, field, value)
        if new_images:
            product.images = new_images
        product.totalprice = compute_total_price(product.price, product.discount)

        try:
            await db.flush()
            await db.refresh(product)
        except SQLAlchemyError as e:
            for path in new_images:
                await self.files.cleanup_file(path)
            logger.error("Database error updating product %s: %s", product_id, str(e))
            raise DatabaseError(
                message="Could not update the product. Please try again.",
                context={"product_id": str(product_id)},
            )

        logger.info(
            "Product %s updated fields: %s%s",
            product_id,
            sorted(changes),
            " (+images)" if new_images else "",
        )
        return ProductResponse.model_validate(product)

    async def delete_product(self, db: AsyncSession, raw_id: str) -> None:
        """Delete a product and pull its id from its category's list."""
        product_id = parse_identifier(raw_id, "product")
        try:
            product = await self._get_product(db, product_id)
            await db.delete(product)
            await db.flush()
            await self._remove_from_category(db, product)
        except SQLAlchemyError as e:
            logger.error("Database error deleting product %s: %s", product_id, str(e))
            raise DatabaseError(
                message="Could not delete the product. Please try again.",
                context={"product_id": str(product_id)},
            )
        logger.info("Product deleted: %s", product_id)

    # ── Categories ────────────────────────────────────────────────────────

    async def create_category(self, db: AsyncSession, payload: CategoryCreate) -> CategoryResponse:
        category = Category(title=payload.title, products=[])
        try:
            db.add(category)
            await db.flush()
            await db.refresh(category)
        except SQLAlchemyError as e:
            logger.error("Database error creating category: %s", str(e), exc_info=True)
            raise DatabaseError(context={"title": payload.title})
        logger.info("Category created: %s (%s)", category.id, category.title)
        return CategoryResponse.model_validate(category)

    async def list_categories(self, db: AsyncSession) -> List[CategoryResponse]:
        try:
            result = await db.execute(select(Category).order_by(Category.created_at))
            categories = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing categories: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve categories. Please try again.")
        return [CategoryResponse.model_validate(c) for c in categories]

    async def get_category(self, db: AsyncSession, raw_id: str) -> CategoryResponse:
        category_id = parse_identifier(raw_id, "category")
        try:
            category = await db.get(Category, category_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching category %s: %s", category_id, str(e))
            raise DatabaseError(context={"category_id": str(category_id)})
        if category is None:
            raise NotFoundError(resource="category", resource_id=str(category_id))
        return CategoryResponse.model_validate(category)
