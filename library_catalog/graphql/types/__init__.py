"""
GraphQL Types Package

Strawberry type definitions exposed by the schema. Python classes keep
a `Type` suffix; the GraphQL names are the plain entity names clients
already use (Book, Author, User, Token).
"""

from library_catalog.graphql.types.author import AuthorType
from library_catalog.graphql.types.book import BookType
from library_catalog.graphql.types.user import TokenType, UserType

__all__ = [
    "AuthorType",
    "BookType",
    "TokenType",
    "UserType",
]
