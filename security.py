"""
Security Module
Version: 1.0

Bearer token authentication for the API.
Tokens are provisioned out of band; only their SHA-256 digest is stored.
DEPENDS ON: database.py, models.py
"""

import hashlib
import logging
import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from services.errors import AuthenticationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def hash_token(token: str) -> str:
    """Digest stored in users.api_token_hash."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_api_token() -> str:
    """New random bearer token (show once, store hash_token(token))."""
    return secrets.token_urlsafe(32)


def mask_token(token: str) -> str:
    """Mask token for logging."""
    if not token or len(token) < 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


async def authenticate_token(db: AsyncSession, token: str) -> Optional[User]:
    """Active user owning the token, or None."""
    if not token:
        return None
    stmt = select(User).where(User.api_token_hash == hash_token(token), User.is_active.is_(True))
    return (await db.execute(stmt)).scalars().first()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency resolving the bearer token to a user.

    Raises AuthenticationError (401) if the header is missing or unknown.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Unauthenticated.")

    user = await authenticate_token(db, credentials.credentials)
    if user is None:
        logger.warning(f"Rejected bearer token {mask_token(credentials.credentials)}")
        raise AuthenticationError("Unauthenticated.")

    return user
