"""
Storefront Backend — User Service
===================================

What:  Registration, login, profile read/update, password change and
       profile-picture upload.
How:   Each operation validates, performs a single-row read/write through
       the request's AsyncSession, and returns a response schema.
Who:   Called by the /api/users routes.

Error Handling Strategy:
    Business failures raise the matching application exception
    (ConflictError, AuthenticationError, NotFoundError, ValidationError).
    SQLAlchemy failures are logged with detail and re-raised as
    DatabaseError, whose response body stays generic.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from app.models.user import User
from app.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
    UserSummary,
)
from app.services.auth_service import AuthService
from app.services.file_service import PROFILE_PICTURE_FOLDER, FileService

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for user accounts.

    Holds only its collaborators; the database session is passed per call.
    """

    def __init__(self, auth: AuthService, files: FileService):
        self.auth = auth
        self.files = files

    async def _find_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def _get_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> RegisterResponse:
        """
        Create an account and sign the caller in.

        Raises:
            ConflictError: the email is already registered
            DatabaseError: query or insert failed
        """
        try:
            if await self._find_by_email(db, payload.email) is not None:
                raise ConflictError(context={"email": payload.email})

            user = User(
                username=payload.username,
                email=payload.email,
                password=await self.auth.hash_password_async(payload.password),
            )
            db.add(user)
            await db.flush()
        except IntegrityError:
            # Lost the race against a concurrent registration with this email
            raise ConflictError(context={"email": payload.email})
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "register"})

        logger.info("User registered: %s", user.id)
        token = self.auth.create_access_token({"id": str(user.id)})
        return RegisterResponse(token=token, user=UserSummary.model_validate(user))

    async def login(self, db: AsyncSession, payload: LoginRequest) -> LoginResponse:
        """
        Exchange email + password for a token carrying id and role.

        Raises:
            AuthenticationError: unknown email or wrong password (401)
        """
        try:
            user = await self._find_by_email(db, payload.email)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "login"})

        if user is None:
            raise AuthenticationError(message="User not found", code="invalid_credentials")

        if not await self.auth.verify_password_async(payload.password, user.password):
            logger.info("Failed login for user %s", user.id)
            raise AuthenticationError(message="Incorrect password", code="invalid_credentials")

        token = self.auth.create_access_token({"id": str(user.id), "role": user.role})
        return LoginResponse(token=token, username=user.username, role=user.role)

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> UserResponse:
        try:
            user = await self._get_user(db, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})
        return UserResponse.model_validate(user)

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: UUID,
        payload: ProfileUpdateRequest,
    ) -> UserResponse:
        """Apply username/email when present. Email stays unique."""
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        try:
            user = await self._get_user(db, user_id)
            for field, value in changes.items():
                setattr(user, field, value)
            await db.flush()
            await db.refresh(user)
        except IntegrityError:
            raise ConflictError(
                message="Email is already in use",
                context={"user_id": str(user_id)},
            )
        except SQLAlchemyError as e:
            logger.error("Database error updating user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})

        logger.info("User %s updated fields: %s", user_id, sorted(changes))
        return UserResponse.model_validate(user)

    async def change_password(
        self,
        db: AsyncSession,
        user_id: UUID,
        payload: ChangePasswordRequest,
    ) -> None:
        """
        Raises:
            ValidationError: the user is gone or the current password is wrong
        """
        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})

        if user is None or not await self.auth.verify_password_async(
            payload.current_password, user.password
        ):
            raise ValidationError(message="Invalid current password", field="currentPassword")

        user.password = await self.auth.hash_password_async(payload.new_password)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error saving password for %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})
        logger.info("Password changed for user %s", user_id)

    async def upload_profile_picture(
        self,
        db: AsyncSession,
        user_id: UUID,
        filename: str,
        content_type: str | None,
        content: bytes,
    ) -> str:
        """
        Store the picture and record its public path on the user.

        Returns: The stored public path.
        """
        try:
            user = await self._get_user(db, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})

        public_path = await self.files.validate_and_store(
            PROFILE_PICTURE_FOLDER, filename, content_type, content
        )

        user.profile_picture = public_path
        try:
            await db.flush()
        except SQLAlchemyError as e:
            await self.files.cleanup_file(public_path)
            logger.error("Database error saving picture for %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})
        return public_path
