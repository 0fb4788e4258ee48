"""
GraphQL Author Type

Defines the Author type for GraphQL queries.
"""

import strawberry


@strawberry.type(name="Author")
class AuthorType:
    """
    GraphQL type representing a book author.

    book_count is computed from the books table when the type is built,
    it is not a column on the Author model.
    """

    id: strawberry.ID
    name: str
    born: int | None = None
    book_count: int = 0
