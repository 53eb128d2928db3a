"""
Storefront Backend — Password Hashing & Bearer Tokens
=======================================================

What:  bcrypt password hashing (passlib) and HS256 token issue/verify
       (python-jose), configured from Settings.
Who:   UserService (register, login, change password) and the auth
       dependency (token verification).

Token payload:
    {"id": "<user uuid>", "role": "<role>" (login only), "exp": <unix ts>}

Hashing is CPU-bound (bcrypt cost 10 is ~50-100ms), so the async variants
run it in Starlette's thread pool instead of on the event loop.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless apart from the immutable settings it was built with."""

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._expire = timedelta(minutes=settings.token_expire_minutes)
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.bcrypt_rounds,
        )

    # ── Passwords ─────────────────────────────────────────────────────────

    def hash_password(self, password: str) -> str:
        return self._pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return self._pwd_context.verify(plain_password, hashed_password)

    async def hash_password_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash_password, password)

    async def verify_password_async(self, plain_password: str, hashed_password: str) -> bool:
        return await run_in_threadpool(self.verify_password, plain_password, hashed_password)

    # ── Tokens ────────────────────────────────────────────────────────────

    def create_access_token(
        self,
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Sign `data` with an `exp` claim.

        Args:
            data: Claims to embed, e.g. {"id": "...", "role": "admin"}
            expires_delta: Override of the configured lifetime (tests use a
                negative delta to mint expired tokens)
        """
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or self._expire)
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry and return the claims.

        Raises:
            InvalidTokenError: bad signature, expired, or not a JWT at all
        """
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as e:
            logger.info("Rejected bearer token: %s", str(e))
            raise InvalidTokenError(context={"reason": type(e).__name__})
