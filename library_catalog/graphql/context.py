"""
GraphQL Context

Provides request context to all GraphQL resolvers:
- Database session for the request
- Current authenticated user (None for anonymous requests)

The context is created fresh for each request and reaches every
resolver through `info.context`; nothing is looked up globally.

Authentication rules:
- No Authorization header (or another scheme): anonymous request
- `bearer <token>` with a valid access token: current_user is loaded
- `bearer <token>` that is malformed, expired or badly signed: the
  request fails with InvalidTokenError before any resolver runs
"""

import logging
from typing import TYPE_CHECKING

from fastapi import Depends
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection
from strawberry.fastapi import BaseContext

from library_catalog.database import get_db
from library_catalog.services.security import ACCESS_TOKEN_TYPE, verify_token_type
from library_catalog.services.users import get_user

if TYPE_CHECKING:
    from library_catalog.models.user import User

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


class InvalidTokenError(Exception):
    """Raised when a bearer token is present but can't be trusted."""

    def __init__(self, message: str = "Invalid or expired authentication token."):
        self.message = message
        super().__init__(message)


class GraphQLContext(BaseContext):
    """
    Context object available to all GraphQL resolvers.

    Attributes:
        db: SQLAlchemy database session
        current_user: Authenticated user, None if anonymous
    """

    def __init__(self, db: Session, current_user: "User | None" = None):
        super().__init__()
        self.db = db
        self.current_user = current_user


def extract_bearer_token(authorization: str | None) -> str | None:
    """
    Pull the token out of an Authorization header value.

    The scheme is matched case-insensitively ("bearer" and "Bearer").

    Raises:
        InvalidTokenError: If the bearer scheme is used without a token
    """
    if not authorization:
        return None

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        return None

    token = token.strip()
    if not token:
        raise InvalidTokenError("Bearer token is missing.")
    return token


def get_user_from_token(db: Session, token: str | None) -> "User | None":
    """
    Resolve the user a token was issued to.

    Returns:
        The User, or None when there is no token or the user is gone

    Raises:
        InvalidTokenError: If the token fails signature, expiry or type checks
    """
    if not token:
        return None

    payload = verify_token_type(token, ACCESS_TOKEN_TYPE)
    if payload is None:
        raise InvalidTokenError()

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise InvalidTokenError()

    user = get_user(db, int(user_id))
    if user is None:
        logger.info(f"Token for unknown user id {user_id}, treating as anonymous")
    return user


async def get_context(
    connection: HTTPConnection,
    db: Session = Depends(get_db),
) -> GraphQLContext:
    """
    Create GraphQL context for each request.

    Called by Strawberry for every HTTP request and WebSocket connection.
    The session comes from the get_db dependency so tests can override it.
    """
    token = extract_bearer_token(connection.headers.get("Authorization"))
    user = get_user_from_token(db, token)
    return GraphQLContext(db=db, current_user=user)
