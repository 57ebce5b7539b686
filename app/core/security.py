"""
Bearer token authentication

Usage:
    from app.core.security import get_current_user

    @router.get("/protected")
    async def protected(user: User = Depends(get_current_user)):
        return {"user_id": user.id}
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationException
from app.models.user import User

# auto_error=False so a missing header becomes our own 401 envelope
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenSubject:
    """Decoded token claims"""
    user_id: str
    role: Optional[str] = None
    email: Optional[str] = None


def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    """Sign a token for `user`"""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.jwt_expire_minutes)
    payload = {
        "sub": user.id,
        "role": user.role,
        "email": user.email,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenSubject:
    """
    Verify signature and expiry

    Raises:
        AuthenticationException: expired, malformed or wrongly signed token
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise AuthenticationException("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise AuthenticationException("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise AuthenticationException("Invalid token: missing user ID")

    return TokenSubject(
        user_id=str(user_id),
        role=payload.get("role"),
        email=payload.get("email"),
    )


async def resolve_user(db: AsyncSession, token: str) -> User:
    """Decode `token` and load its user"""
    subject = decode_access_token(token)
    user = await db.get(User, subject.user_id)
    if user is None:
        logger.warning(f"Token subject not found: {subject.user_id}")
        raise AuthenticationException("User not found")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user from `Authorization: Bearer <token>`

    Raises:
        AuthenticationException: 401 if the header is missing or the token
            is invalid, expired or points to an unknown user
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("No token provided")
    if credentials.scheme.lower() != "bearer":
        raise AuthenticationException("Invalid authorization scheme")

    return await resolve_user(db, credentials.credentials)
