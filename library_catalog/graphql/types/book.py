"""
GraphQL Book Type

Defines the Book type for GraphQL queries.
"""

import strawberry

from library_catalog.graphql.types.author import AuthorType


@strawberry.type(name="Book")
class BookType:
    """
    GraphQL type representing a book.

    Maps to the Book SQLAlchemy model with its author resolved.
    """

    id: strawberry.ID
    title: str
    published: int
    author: AuthorType
    genres: list[str] = strawberry.field(default_factory=list)
