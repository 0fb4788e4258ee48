"""
GraphQL Mutation Resolvers

Defines all write operations (mutations) for the GraphQL API.

Registration and login are open to everyone; adding books, editing
authors and saving books require a bearer token. Service exceptions are
translated into structured GraphQL errors here and nowhere else.
"""

import strawberry
from strawberry.types import Info

from library_catalog.graphql.context import GraphQLContext
from library_catalog.graphql.errors import (
    bad_birth_year_error,
    book_not_found_error,
    book_validation_error,
    duplicate_title_error,
    unauthenticated_error,
    username_taken_error,
    wrong_credentials_error,
)
from library_catalog.graphql.queries import (
    author_to_graphql,
    book_to_graphql,
    user_to_graphql,
)
from library_catalog.graphql.types import AuthorType, BookType, TokenType, UserType
from library_catalog.models.user import User
from library_catalog.services import catalog, users
from library_catalog.services.events import Event, EventType, get_event_broker
from library_catalog.services.security import create_user_token
from library_catalog.services.validation import (
    BookValidationError,
    validate_book_fields,
)


def require_auth(info: Info[GraphQLContext, None]) -> User:
    """Helper to require authentication and return the user."""
    user = info.context.current_user
    if user is None:
        raise unauthenticated_error()
    return user


@strawberry.type
class Mutation:
    """GraphQL Mutation type containing all write operations."""

    # =========================================================================
    # Credential Mutations
    # =========================================================================

    @strawberry.mutation(description="Register a new user account")
    def create_user(
        self,
        info: Info[GraphQLContext, None],
        username: str,
        password: str,
        favorite_genre: str,
    ) -> UserType | None:
        db = info.context.db

        try:
            user = users.create_user(db, username, password, favorite_genre)
        except users.UsernameTakenError as e:
            raise username_taken_error(e.username, e.cause) from e

        return user_to_graphql(db, user)

    @strawberry.mutation(description="Log in and receive a bearer token")
    def login(
        self,
        info: Info[GraphQLContext, None],
        username: str,
        password: str,
    ) -> TokenType | None:
        """
        Authenticate with username and password.

        A wrong username and a wrong password fail identically, both
        reporting the submitted username as the invalid argument.
        """
        user = users.authenticate(info.context.db, username, password)
        if user is None:
            raise wrong_credentials_error(username)

        return TokenType(value=create_user_token(user.id, user.username))

    @strawberry.mutation(description="Add a book to the current user's saved books")
    def save_book(
        self,
        info: Info[GraphQLContext, None],
        title: str,
    ) -> UserType | None:
        user = require_auth(info)
        db = info.context.db

        book = catalog.get_book_by_title(db, title)
        if book is None:
            raise book_not_found_error(title)

        return user_to_graphql(db, users.save_book(db, user, book))

    # =========================================================================
    # Catalog Mutations
    # =========================================================================

    @strawberry.mutation(description="Add a book, creating its author if needed")
    def add_book(
        self,
        info: Info[GraphQLContext, None],
        title: str,
        author: str,
        published: int,
        genres: list[str],
    ) -> BookType | None:
        """
        Create a new book.

        Requires authentication. Field rules are checked first; title
        uniqueness is left to the store and reported as
        DUPLICATE_BOOK_TITLE.
        """
        require_auth(info)
        db = info.context.db

        try:
            validate_book_fields(title, author, published, genres)
        except BookValidationError as e:
            raise book_validation_error(e) from e

        try:
            book = catalog.add_book(db, title, author, published, genres)
        except catalog.DuplicateTitleError as e:
            raise duplicate_title_error(e.title, e.cause) from e

        book_type = book_to_graphql(
            book, catalog.count_books_by_author(db, book.author_id)
        )
        get_event_broker().publish(Event(type=EventType.BOOK_ADDED, payload=book_type))
        return book_type

    @strawberry.mutation(description="Set an author's birth year")
    def edit_author(
        self,
        info: Info[GraphQLContext, None],
        name: str,
        set_born_to: int,
    ) -> AuthorType | None:
        """
        Update the birth year of an existing author.

        Requires authentication. Returns null if no author has that name.
        """
        require_auth(info)
        db = info.context.db

        if set_born_to < 0:
            raise bad_birth_year_error()

        author = catalog.set_author_born(db, name, set_born_to)
        if author is None:
            return None

        return author_to_graphql(author, catalog.count_books_by_author(db, author.id))
