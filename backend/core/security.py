"""
Tenant session resolution.

User sign-in lives with the external auth provider, which issues HS256 JWTs
signed with the shared SECRET_KEY. This module verifies those tokens and
exposes the caller's tenant as a FastAPI dependency.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials as HTTPAuthCredentials
from pydantic import BaseModel
import jwt

from app.config import get_settings

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24

# HTTP Bearer for API endpoints
security_scheme = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    """JWT token payload structure."""
    sub: str  # user_id
    email: str
    tenant_id: str
    role: str = "member"  # "admin" or "member"
    exp: datetime
    iat: datetime
    type: str  # "access"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def create_access_token(
    user_id: str,
    email: str,
    tenant_id: str,
    role: str = "member",
    expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
) -> str:
    """
    Create a JWT access token in the auth provider's format.

    Used by tests and local tooling; production tokens come from the provider.

    Args:
        user_id: User ID
        email: User email
        tenant_id: Tenant the user belongs to
        role: "admin" or "member"

    Returns:
        Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "tenant_id": tenant_id,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, get_settings().SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode a JWT token and return the raw payload dict.

    Raises:
        jwt.InvalidTokenError: If token is invalid or expired
    """
    return jwt.decode(token, get_settings().SECRET_KEY, algorithms=[ALGORITHM])


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_token(token: str) -> TokenPayload:
    """
    Verify and decode a JWT token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    user_id = payload.get("sub")
    email = payload.get("email")
    tenant_id = payload.get("tenant_id")
    if user_id is None or email is None or tenant_id is None:
        raise _unauthorized("Invalid token payload")

    return TokenPayload(
        sub=user_id,
        email=email,
        tenant_id=tenant_id,
        role=payload.get("role", "member"),
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        type=payload.get("type", ""),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthCredentials] = Depends(security_scheme),
) -> TokenPayload:
    """
    FastAPI dependency: the authenticated user from the Bearer token.

    Raises:
        HTTPException: If token is missing, invalid, or expired
    """
    if not credentials:
        raise _unauthorized("Missing authorization header")

    token_payload = verify_token(credentials.credentials)
    if token_payload.type != "access":
        raise _unauthorized("Invalid token type")
    return token_payload


async def require_tenant_admin(
    current_user: TokenPayload = Depends(get_current_user),
) -> TokenPayload:
    """FastAPI dependency: the current user must be an admin of their tenant."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: business admin access required",
        )
    return current_user
