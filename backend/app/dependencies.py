"""
Storefront Backend — Service & Body Dependencies
==================================================

What:  FastAPI dependencies returning the services built by `create_app()`,
       plus `json_body()` for routes that must authenticate before they
       look at the request body.
How:   Services are constructed once from the application's Settings and
       kept on `app.state`; handlers get them through Depends() instead of
       importing module-level singletons.

json_body ordering:
    FastAPI parses a declared body model before any dependency runs, so a
    malformed body would be answered with 400 even without a token.
    Declaring `payload = Depends(json_body(Model))` AFTER
    `identity = Depends(require_auth)` makes the token check come first.
"""

import json
from typing import Any, Callable, Coroutine, Dict, Type, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.exceptions import ValidationError
from app.services.catalog_service import CatalogService
from app.services.file_service import FileService
from app.services.user_service import UserService

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def json_body(model: Type[ModelT]) -> Callable[[Request], Coroutine[Any, Any, ModelT]]:
    """
    Build a dependency that reads and validates a JSON body as `model`.

    Raises (from the dependency):
        ValidationError: body is not valid JSON (400)
        RequestValidationError: body does not fit `model` (400 via its handler)
    """

    async def read_body(request: Request) -> ModelT:
        raw = await request.body()
        try:
            data = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            raise ValidationError(message="Request body must be valid JSON", field="body")
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise RequestValidationError(
                [{**err, "loc": ("body", *err["loc"])} for err in e.errors()]
            )

    return read_body


def openapi_json_body(model: Type[BaseModel]) -> Dict[str, Any]:
    """`openapi_extra` documenting a body that is read through json_body()."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }
