"""
Security utilities for JWT bearer tokens.
"""
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from tripmatrix.core.config import settings


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Production tokens are issued by the external identity provider; this is
    used to mint tokens for tests and local tooling.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None


def get_token_uid(token: str) -> Optional[str]:
    """Return the uid (``sub`` claim) carried by a valid token, or None."""
    payload = decode_access_token(token)
    if payload is None:
        return None
    uid = payload.get("sub")
    if not uid:
        return None
    return str(uid)
