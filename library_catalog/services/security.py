"""
Credential Hashing and Access Tokens

Two things live here: the bcrypt hashes stored in `users.password_hash`,
and the signed tokens that `login` hands out and the GraphQL context
reads back from `Authorization: bearer <token>`.

Token payload:
    sub       user id as a string
    username  for logs and clients, never trusted for lookups
    type      always "access"; anything else is rejected
    exp       expiry, ACCESS_TOKEN_EXPIRE_MINUTES after issue

Usage:
    from library_catalog.services.security import create_user_token, verify_token_type

    token = create_user_token(user.id, user.username)
    payload = verify_token_type(token, ACCESS_TOKEN_TYPE)
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from library_catalog.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# -------------------------------------------------------------------------
# Passwords
# -------------------------------------------------------------------------
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a password for `createUser`.

    Example:
        >>> hash_password("testPassword").startswith("$2b$")
        True
    """
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a `login` password against the stored hash."""
    return pwd_context.verify(password, password_hash)


# -------------------------------------------------------------------------
# Access tokens
# -------------------------------------------------------------------------
ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Sign `data` as an access token.

    Args:
        data: Claims to include, usually "sub" and "username"
        expires_delta: Lifetime; defaults to the configured token lifetime

    Example:
        >>> token = create_access_token({"sub": "1", "username": "mluukkai"})
        >>> decode_token(token)["type"]
        'access'
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        **data,
        "exp": datetime.now(UTC) + lifetime,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def create_user_token(user_id: int, username: str) -> str:
    """The token returned as `Token.value` by a successful login."""
    return create_access_token({"sub": str(user_id), "username": username})


def decode_token(token: str) -> dict | None:
    """
    Return the claims of a well-signed, unexpired token.

    A bad signature, an expired token and plain garbage all give None;
    the reason is only logged.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        return None


def verify_token_type(token: str, expected_type: str) -> dict | None:
    """Like decode_token, but also require the "type" claim to match."""
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != expected_type:
        logger.warning(f"Rejected bearer token of type {payload.get('type')!r}")
        return None

    return payload
