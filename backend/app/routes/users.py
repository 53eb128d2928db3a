"""
Storefront Backend — User Route Handlers
==========================================

What:  /api/users: register, login, profile, update, change password and
       profile-picture upload.
How:   Thin handlers: validated body in, UserService call, schema out.
       Protected routes declare `identity: AuthContext = Depends(require_auth)`
       first and read their JSON body through `json_body()`, so a request
       without a token gets 401 whatever its body looks like.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_user_service, json_body, openapi_json_body
from app.middleware.auth import AuthContext, require_auth
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    UserEnvelope,
)
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

AUTH_ERRORS = {
    400: {"description": "Invalid or expired token", "model": ErrorResponse},
    401: {"description": "No bearer token", "model": ErrorResponse},
}


@router.post(
    "/register",
    status_code=201,
    response_model=RegisterResponse,
    responses={400: {"description": "Missing fields or user already exists", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> RegisterResponse:
    return await users.register(db, payload)


@router.post(
    "/login-user",
    response_model=LoginResponse,
    responses={401: {"description": "Unknown email or wrong password", "model": ErrorResponse}},
    summary="Exchange credentials for a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> LoginResponse:
    return await users.login(db, payload)


@router.get(
    "/profile",
    response_model=UserEnvelope,
    responses={**AUTH_ERRORS, 404: {"description": "User no longer exists", "model": ErrorResponse}},
    summary="Current user's profile",
)
async def get_profile(
    identity: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserEnvelope:
    return UserEnvelope(user=await users.get_profile(db, identity.user_id))


@router.put(
    "/update",
    response_model=UserEnvelope,
    responses={**AUTH_ERRORS, 404: {"description": "User no longer exists", "model": ErrorResponse}},
    summary="Update username and/or email",
    openapi_extra=openapi_json_body(ProfileUpdateRequest),
)
async def update_profile(
    identity: AuthContext = Depends(require_auth),
    payload: ProfileUpdateRequest = Depends(json_body(ProfileUpdateRequest)),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserEnvelope:
    return UserEnvelope(user=await users.update_profile(db, identity.user_id, payload))


@router.post(
    "/change-password",
    response_class=PlainTextResponse,
    responses=AUTH_ERRORS,
    summary="Change password (requires the current one)",
    openapi_extra=openapi_json_body(ChangePasswordRequest),
)
async def change_password(
    identity: AuthContext = Depends(require_auth),
    payload: ChangePasswordRequest = Depends(json_body(ChangePasswordRequest)),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> PlainTextResponse:
    await users.change_password(db, identity.user_id, payload)
    return PlainTextResponse("Password updated successfully")


@router.post(
    "/upload-profile-picture",
    response_model=MessageResponse,
    responses={**AUTH_ERRORS, 404: {"description": "User no longer exists", "model": ErrorResponse}},
    summary="Upload a profile picture (jpeg, jpg, png, gif, max 5MB)",
)
async def upload_profile_picture(
    profile_picture: UploadFile = File(..., alias="profilePicture"),
    identity: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    try:
        content = await profile_picture.read()
        await users.upload_profile_picture(
            db,
            identity.user_id,
            filename=profile_picture.filename or "upload",
            content_type=profile_picture.content_type,
            content=content,
        )
    finally:
        await profile_picture.close()
    return MessageResponse(message="Profile picture updated successfully")
