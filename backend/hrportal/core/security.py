from datetime import datetime, timedelta
from typing import Any, Optional
import secrets
import string

import bcrypt
from jose import jwt, JWTError

from hrportal.core.config import settings


def create_access_token(claims: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT carrying the principal's claims.

    Args:
        claims: Claims to embed; must include ``sub``
        expires_delta: Optional expiration time delta (defaults to AUTH_TOKEN_EXPIRE_DAYS)

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.AUTH_TOKEN_EXPIRE_DAYS)
    expire = datetime.utcnow() + expires_delta

    to_encode = dict(claims)
    to_encode["sub"] = str(to_encode["sub"])
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify signature and expiry of a token.

    Returns:
        The claims dict, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def _prepare_password(password: str) -> bytes:
    """
    Prepare password for bcrypt by encoding and truncating to 72 bytes (bcrypt limit).
    """
    return password.encode('utf-8')[:72]


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain password against a bcrypt hash.

    Rows without a hash (accounts that never had a password set) never verify.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            _prepare_password(plain_password),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Malformed hash in the credential store
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.
    """
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(_prepare_password(password), salt)
    return hashed.decode('utf-8')


def generate_temporary_password(length: Optional[int] = None) -> str:
    """Random password handed out once when HR creates an employee."""
    length = max(length or 0, settings.MIN_PASSWORD_LENGTH, 12)
    alphabet = string.ascii_letters + string.digits
    body = "".join(secrets.choice(alphabet) for _ in range(length - 1))
    return f"{body}{secrets.choice('!@#$%^&*')}"
