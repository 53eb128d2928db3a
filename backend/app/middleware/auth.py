"""
Storefront Backend — Bearer Token Authentication
==================================================

What:  FastAPI dependency guarding the protected /api/users routes.
How:   Reads `Authorization: Bearer <token>`, verifies it with AuthService
       and hands the handler an explicit `AuthContext`.

Outcomes:
    no header / empty token     → AuthenticationError  (401), handler not run
    bad signature / expired /
    malformed / no UUID "id"    → InvalidTokenError    (400), handler not run
    valid                       → AuthContext(user_id, role)

Usage:
    @router.get("/profile")
    async def get_profile(identity: AuthContext = Depends(require_auth)): ...
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Request

from app.exceptions import AuthenticationError, InvalidTokenError
from app.services.auth_service import AuthService

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    """The authenticated caller, as proven by the bearer token."""
    user_id: UUID
    role: Optional[str] = None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    token = authorization
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    return token.strip() or None


def authenticate(auth: AuthService, authorization: Optional[str]) -> AuthContext:
    """Resolve an Authorization header value into an AuthContext."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthenticationError()

    claims = auth.decode_token(token)
    try:
        user_id = UUID(str(claims["id"]))
    except (KeyError, ValueError):
        raise InvalidTokenError(context={"reason": "missing or malformed id claim"})
    return AuthContext(user_id=user_id, role=claims.get("role"))


async def require_auth(request: Request) -> AuthContext:
    identity = authenticate(request.app.state.auth_service, request.headers.get("Authorization"))
    # Read by RequestLoggingMiddleware once the response is ready
    request.state.user_id = identity.user_id
    return identity
