"""
GraphQL Query Resolvers

Defines all read operations (queries) for the GraphQL API.
Each resolver fetches data through the catalog services using the
session in the request context.
"""

from collections.abc import Iterable

import strawberry
from sqlalchemy.orm import Session
from strawberry.types import Info

from library_catalog.graphql.context import GraphQLContext
from library_catalog.graphql.types import AuthorType, BookType, UserType
from library_catalog.models import Author, Book, User
from library_catalog.services import catalog


def author_to_graphql(author: Author, book_count: int) -> AuthorType:
    """Convert SQLAlchemy Author model to GraphQL AuthorType."""
    return AuthorType(
        id=strawberry.ID(str(author.id)),
        name=author.name,
        born=author.born,
        book_count=book_count,
    )


def book_to_graphql(book: Book, author_book_count: int) -> BookType:
    """Convert SQLAlchemy Book model to GraphQL BookType."""
    return BookType(
        id=strawberry.ID(str(book.id)),
        title=book.title,
        published=book.published,
        author=author_to_graphql(book.author, author_book_count),
        genres=book.genres,
    )


def books_to_graphql(db: Session, books: Iterable[Book]) -> list[BookType]:
    """
    Convert many books at once.

    Book counts for every author come from a single grouped query
    instead of one count per book.
    """
    counts = catalog.author_book_counts(db)
    return [book_to_graphql(b, counts.get(b.author_id, 0)) for b in books]


def user_to_graphql(db: Session, user: User) -> UserType:
    """Convert SQLAlchemy User model to GraphQL UserType."""
    return UserType(
        id=strawberry.ID(str(user.id)),
        username=user.username,
        favorite_genre=user.favorite_genre,
        saved_books=books_to_graphql(db, user.saved_books),
    )


@strawberry.type
class Query:
    """
    GraphQL Query type containing all read operations.

    None of these require authentication except `me`, which simply
    returns null for anonymous requests.
    """

    @strawberry.field(description="Books, optionally filtered by author name and genre")
    def all_books(
        self,
        info: Info[GraphQLContext, None],
        author: str | None = None,
        genre: str | None = None,
    ) -> list[BookType | None] | None:
        """
        Get books matching every supplied filter.

        Args:
            author: Exact author name
            genre: Genre the book must carry

        Returns:
            Matching books in the order they were added
        """
        db = info.context.db
        return books_to_graphql(db, catalog.iter_books(db, author=author, genre=genre))

    @strawberry.field(description="Every author with the number of books they wrote")
    def all_authors(
        self, info: Info[GraphQLContext, None]
    ) -> list[AuthorType | None] | None:
        db = info.context.db
        counts = catalog.author_book_counts(db)
        return [
            author_to_graphql(a, counts.get(a.id, 0))
            for a in catalog.list_authors(db)
        ]

    @strawberry.field(description="Distinct genres across all books")
    def all_genres(self, info: Info[GraphQLContext, None]) -> list[str | None] | None:
        return catalog.list_genres(info.context.db)

    @strawberry.field(description="Total number of books")
    def book_count(self, info: Info[GraphQLContext, None]) -> int | None:
        return catalog.count_books(info.context.db)

    @strawberry.field(description="Total number of authors")
    def author_count(self, info: Info[GraphQLContext, None]) -> int | None:
        return catalog.count_authors(info.context.db)

    @strawberry.field(description="Get the currently authenticated user")
    def me(self, info: Info[GraphQLContext, None]) -> UserType | None:
        """
        Get the current authenticated user.

        Returns None if not authenticated.
        """
        user = info.context.current_user

        if user is None:
            return None

        return user_to_graphql(info.context.db, user)
