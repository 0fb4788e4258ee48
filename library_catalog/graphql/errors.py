"""
GraphQL Error Helpers

Every failure a client can see is a GraphQLError with a stable
`message` and an `extensions.code`. Resolvers catch service exceptions
and re-raise them through these helpers, so raw store errors never
reach the response.

Error shapes:
    WRONG_CREDENTIALS           message "Login failed!", invalidArgs
    UNAUTHENTICATED_USER        message "User not authenticated.", extensions.message
    BAD_BOOK_* / BAD_AUTHOR_*   message "Creating a book failed!", extensions.message
    DUPLICATE_BOOK_TITLE        message "Creating a book failed!", extensions.error
    BAD_USER_INPUT              message "Creating the user failed!", invalidArgs, extensions.error
    BOOK_NOT_FOUND              message "Saving the book failed!", invalidArgs
    BAD_AUTHOR_BIRTH_YEAR       message "Editing the author failed!", extensions.message
    GRAPHQL_VALIDATION_FAILED   added by ValidationErrorCodes (see extensions.py)
    INTERNAL_SERVER_ERROR       anything else, masked by MaskUnexpectedErrors
"""

from enum import StrEnum

from graphql import GraphQLError
from sqlalchemy.exc import IntegrityError

from library_catalog.services.validation import BookValidationError


class ErrorCode(StrEnum):
    """Values of `extensions.code` in error responses."""

    WRONG_CREDENTIALS = "WRONG_CREDENTIALS"
    UNAUTHENTICATED_USER = "UNAUTHENTICATED_USER"
    BAD_BOOK_TITLE = "BAD_BOOK_TITLE"
    BAD_AUTHOR_NAME = "BAD_AUTHOR_NAME"
    BAD_BOOK_PUBLICATION_DATE = "BAD_BOOK_PUBLICATION_DATE"
    BAD_BOOK_GENRES = "BAD_BOOK_GENRES"
    DUPLICATE_BOOK_TITLE = "DUPLICATE_BOOK_TITLE"
    GRAPHQL_VALIDATION_FAILED = "GRAPHQL_VALIDATION_FAILED"
    BAD_USER_INPUT = "BAD_USER_INPUT"
    BOOK_NOT_FOUND = "BOOK_NOT_FOUND"
    BAD_AUTHOR_BIRTH_YEAR = "BAD_AUTHOR_BIRTH_YEAR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


ADD_BOOK_FAILED = "Creating a book failed!"
INTERNAL_ERROR_MESSAGE = "Internal server error."


def describe_store_error(error: IntegrityError) -> dict[str, str]:
    """Summarize a store exception for `extensions.error`."""
    return {
        "name": type(error).__name__,
        "message": str(error.orig),
    }


def unauthenticated_error() -> GraphQLError:
    return GraphQLError(
        "User not authenticated.",
        extensions={
            "code": ErrorCode.UNAUTHENTICATED_USER.value,
            "message": "Authenticate yourself first.",
        },
    )


def wrong_credentials_error(username: str) -> GraphQLError:
    # Same shape for unknown user and wrong password
    return GraphQLError(
        "Login failed!",
        extensions={
            "code": ErrorCode.WRONG_CREDENTIALS.value,
            "invalidArgs": username,
        },
    )


def book_validation_error(error: BookValidationError) -> GraphQLError:
    return GraphQLError(
        ADD_BOOK_FAILED,
        extensions={
            "code": ErrorCode(error.code.value).value,
            "message": error.message,
        },
    )


def duplicate_title_error(title: str, cause: IntegrityError) -> GraphQLError:
    return GraphQLError(
        ADD_BOOK_FAILED,
        extensions={
            "code": ErrorCode.DUPLICATE_BOOK_TITLE.value,
            "message": f"Book title '{title}' is already taken!",
            "error": describe_store_error(cause),
        },
    )


def username_taken_error(username: str, cause: IntegrityError) -> GraphQLError:
    return GraphQLError(
        "Creating the user failed!",
        extensions={
            "code": ErrorCode.BAD_USER_INPUT.value,
            "invalidArgs": username,
            "error": describe_store_error(cause),
        },
    )


def book_not_found_error(title: str) -> GraphQLError:
    return GraphQLError(
        "Saving the book failed!",
        extensions={
            "code": ErrorCode.BOOK_NOT_FOUND.value,
            "invalidArgs": title,
        },
    )


def bad_birth_year_error() -> GraphQLError:
    return GraphQLError(
        "Editing the author failed!",
        extensions={
            "code": ErrorCode.BAD_AUTHOR_BIRTH_YEAR.value,
            "message": "Birth year cant be negative!",
        },
    )
