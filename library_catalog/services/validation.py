"""
Book Validation Service

Pure checks run on candidate book fields before anything touches the
store. Rules are checked in a fixed order and the first failure wins:

1. title long enough          -> BAD_BOOK_TITLE
2. author name long enough    -> BAD_AUTHOR_NAME
3. published year >= 0        -> BAD_BOOK_PUBLICATION_DATE
4. at least one genre         -> BAD_BOOK_GENRES

Title uniqueness is not checked here. The store's unique constraint
decides it, and the resolver re-tags the failure as DUPLICATE_BOOK_TITLE
(see services/catalog.py).

Usage:
    from library_catalog.services.validation import validate_book_fields

    validate_book_fields("Oddly Normal", "Otis Frampton", 2014, ["comics"])
"""

from collections.abc import Iterable
from enum import StrEnum

TITLE_MIN_LENGTH = 1
AUTHOR_NAME_MIN_LENGTH = 1


class BookValidationCode(StrEnum):
    """Reasons a candidate book can be rejected."""

    BAD_BOOK_TITLE = "BAD_BOOK_TITLE"
    BAD_AUTHOR_NAME = "BAD_AUTHOR_NAME"
    BAD_BOOK_PUBLICATION_DATE = "BAD_BOOK_PUBLICATION_DATE"
    BAD_BOOK_GENRES = "BAD_BOOK_GENRES"


class BookValidationError(Exception):
    """Raised when a candidate book breaks one of the field rules."""

    def __init__(self, code: BookValidationCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


def normalize_genres(genres: Iterable[str]) -> list[str]:
    """
    Trim genre names and drop blanks and repeats, keeping first-seen order.

    Example:
        >>> normalize_genres([" comics", "fantasy", "", "comics"])
        ['comics', 'fantasy']
    """
    seen: set[str] = set()
    normalized = []
    for genre in genres:
        name = genre.strip()
        if name and name not in seen:
            seen.add(name)
            normalized.append(name)
    return normalized


def validate_book_fields(
    title: str,
    author: str,
    published: int,
    genres: Iterable[str],
) -> None:
    """
    Check candidate book fields.

    Raises:
        BookValidationError: tagged with the first rule that failed
    """
    if len(title.strip()) < TITLE_MIN_LENGTH:
        raise BookValidationError(
            BookValidationCode.BAD_BOOK_TITLE, "Book title too short!"
        )

    if len(author.strip()) < AUTHOR_NAME_MIN_LENGTH:
        raise BookValidationError(
            BookValidationCode.BAD_AUTHOR_NAME, "Author name too short!"
        )

    if published < 0:
        raise BookValidationError(
            BookValidationCode.BAD_BOOK_PUBLICATION_DATE,
            "Publication date cant be negative!",
        )

    if not normalize_genres(genres):
        raise BookValidationError(
            BookValidationCode.BAD_BOOK_GENRES,
            "Book must have at least one genre!",
        )
