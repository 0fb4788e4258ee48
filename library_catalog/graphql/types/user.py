"""
GraphQL User Types

Defines the User type and the Token returned by login.
Only exposes public/safe fields, never the password hash.
"""

import strawberry

from library_catalog.graphql.types.book import BookType


@strawberry.type(name="User")
class UserType:
    """GraphQL type representing a registered user."""

    id: strawberry.ID
    username: str
    favorite_genre: str
    saved_books: list[BookType] = strawberry.field(default_factory=list)


@strawberry.type(name="Token")
class TokenType:
    """Signed access token, sent back as `Authorization: bearer <value>`."""

    value: str
