"""
Storefront Backend — Product Route Handlers
=============================================

What:  /api/products CRUD plus POST /api/products/upload for images.

Typical client flow:
    1. POST /api/products/upload (multipart `images`) → {"imageUrls": [...]}
    2. POST /api/products with those paths in `images`

PUT /api/products/{id} accepts either a JSON body or multipart form data.
In the multipart case `sizes` may repeat, `rating` is a JSON string, and
any `images` files replace the product's image list.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Request, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.database import get_db_session
from app.dependencies import get_catalog_service
from app.exceptions import ValidationError
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.product import (
    ImageUploadResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from app.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])

ID_ERRORS = {
    400: {"description": "Malformed product ID", "model": ErrorResponse},
    404: {"description": "Product not found", "model": ErrorResponse},
}

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

Upload = Tuple[str, Optional[str], bytes]


def summarize_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def _parse_json_field(name: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError(message=f"Field '{name}' must be valid JSON", field=name)


async def _read_uploads(files: List[Any]) -> List[Upload]:
    uploads = []
    for item in files:
        if isinstance(item, StarletteUploadFile) and item.filename:
            uploads.append((item.filename, item.content_type, await item.read()))
    return uploads


async def read_update_request(request: Request) -> Tuple[ProductUpdate, List[Upload]]:
    """
    Build a ProductUpdate and the uploaded image files from a JSON or
    multipart request.

    Raises:
        ValidationError: unreadable body or invalid field values
    """
    content_type = request.headers.get("content-type", "")
    uploads: List[Upload] = []
    data: Dict[str, Any] = {}

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        try:
            for key in form.keys():
                values = [v for v in form.getlist(key) if isinstance(v, str)]
                if key == "images" or not values:
                    continue
                if key == "sizes":
                    data[key] = values
                elif key == "rating":
                    data[key] = _parse_json_field(key, values[-1]) if values[-1] else None
                else:
                    data[key] = values[-1]
            uploads = await _read_uploads(form.getlist("images"))
        finally:
            await form.close()
    else:
        body = await request.body()
        if body:
            try:
                data = json.loads(body)
            except json.JSONDecodeError:
                raise ValidationError(message="Request body must be valid JSON")
            if not isinstance(data, dict):
                raise ValidationError(message="Request body must be a JSON object")

    try:
        payload = ProductUpdate.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            message="Invalid product fields",
            context={"errors": summarize_errors(e)},
        )
    return payload, uploads


@router.post(
    "",
    status_code=201,
    response_model=ProductResponse,
    responses={400: {"description": "Required fields are missing", "model": ErrorResponse}},
    summary="Create a product",
)
async def create_product(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    return await catalog.create_product(db, payload)


@router.post(
    "/upload",
    response_model=ImageUploadResponse,
    responses={400: {"description": "No files, or a file is not an allowed image", "model": ErrorResponse}},
    summary="Upload product images (jpeg, jpg, png, gif, max 5MB each)",
)
async def upload_images(
    images: Optional[List[UploadFile]] = File(default=None),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ImageUploadResponse:
    files = images or []
    try:
        uploads = await _read_uploads(files)
        urls = await catalog.upload_images(uploads)
    finally:
        for f in files:
            await f.close()
    return ImageUploadResponse(image_urls=urls)


@router.get("", response_model=List[ProductResponse], summary="List all products")
async def list_products(
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[ProductResponse]:
    return await catalog.list_products(db)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses=ID_ERRORS,
    summary="Get a product by ID",
)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    # Path param stays a str so a malformed id is our 400, not FastAPI's 422
    return await catalog.get_product(db, product_id)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses=ID_ERRORS,
    summary="Partially update a product (JSON or multipart with new images)",
)
async def update_product(
    product_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    payload, uploads = await read_update_request(request)
    return await catalog.update_product(db, product_id, payload, uploads)


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    responses=ID_ERRORS,
    summary="Delete a product",
)
async def delete_product(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> MessageResponse:
    await catalog.delete_product(db, product_id)
    return MessageResponse(message="Product deleted")
