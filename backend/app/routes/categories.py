"""
Storefront Backend — Category Route Handlers
==============================================

What:  /api/categories: create, list, get. Membership lists are maintained
       by the product routes, not edited here.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_catalog_service
from app.schemas.common import ErrorResponse
from app.schemas.product import CategoryCreate, CategoryResponse
from app.services.catalog_service import CatalogService

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.post("", status_code=201, response_model=CategoryResponse, summary="Create a category")
async def create_category(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> CategoryResponse:
    return await catalog.create_category(db, payload)


@router.get("", response_model=List[CategoryResponse], summary="List categories")
async def list_categories(
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[CategoryResponse]:
    return await catalog.list_categories(db)


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={
        400: {"description": "Malformed category ID", "model": ErrorResponse},
        404: {"description": "Category not found", "model": ErrorResponse},
    },
    summary="Get a category and its product ids",
)
async def get_category(
    category_id: str,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> CategoryResponse:
    return await catalog.get_category(db, category_id)
