"""
Catalog Store Service

Reads and writes authors and books.

Derived values are never stored: an author's book count is computed
with COUNT ... GROUP BY at read time, so it can't drift from the books
table.

Adding a book resolves or creates its author and inserts the book in a
single transaction. If the insert fails on the unique title constraint
the whole transaction is rolled back, so no author is left behind
without books.
"""

import logging
from collections.abc import Iterable, Iterator

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from library_catalog.models import Author, Book, BookGenre
from library_catalog.services.validation import normalize_genres

logger = logging.getLogger(__name__)


class DuplicateTitleError(Exception):
    """Raised when the store rejects a book because its title is taken."""

    def __init__(self, title: str, cause: IntegrityError):
        self.title = title
        self.cause = cause
        super().__init__(f"A book titled '{title}' already exists")


# =============================================================================
# Authors
# =============================================================================


def get_author_by_name(db: Session, name: str) -> Author | None:
    stmt = select(Author).where(Author.name == name)
    return db.execute(stmt).scalar_one_or_none()


def find_or_create_author(db: Session, name: str) -> Author:
    """
    Return the author called `name`, creating it if needed.

    The new author is flushed but not committed, so it joins whatever
    transaction the caller is running. If a concurrent request created
    the same author first, the unique constraint fires and the winner's
    row is returned instead.
    """
    author = get_author_by_name(db, name)
    if author is not None:
        return author

    author = Author(name=name)
    db.add(author)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        author = get_author_by_name(db, name)
        if author is None:
            raise
        return author

    logger.info(f"Created author '{name}'")
    return author


def list_authors(db: Session) -> list[Author]:
    """Every author, in the order they were created."""
    stmt = select(Author).order_by(Author.id)
    return list(db.execute(stmt).scalars().all())


def set_author_born(db: Session, name: str, born: int) -> Author | None:
    """Set an author's birth year. Returns None if there is no such author."""
    author = get_author_by_name(db, name)
    if author is None:
        return None

    author.born = born
    db.commit()
    db.refresh(author)
    logger.info(f"Set birth year of '{name}' to {born}")
    return author


def count_authors(db: Session) -> int:
    return db.execute(select(func.count()).select_from(Author)).scalar_one()


# =============================================================================
# Book counts per author
# =============================================================================


def count_books_by_author(db: Session, author_id: int) -> int:
    """Number of books whose author is `author_id`."""
    stmt = select(func.count()).select_from(Book).where(Book.author_id == author_id)
    return db.execute(stmt).scalar_one()


def author_book_counts(db: Session) -> dict[int, int]:
    """
    Book count for every author that has at least one book.

    One grouped query, used when many authors are resolved at once.
    Authors without books are simply missing from the mapping.
    """
    stmt = select(Book.author_id, func.count(Book.id)).group_by(Book.author_id)
    return {author_id: count for author_id, count in db.execute(stmt).all()}


# =============================================================================
# Books
# =============================================================================


def select_books(author: str | None = None, genre: str | None = None) -> Select:
    """
    Build the query behind allBooks.

    Args:
        author: Only books by the author with exactly this name
        genre: Only books carrying this genre

    An empty or missing filter doesn't restrict that dimension.
    """
    stmt = (
        select(Book)
        .options(selectinload(Book.author), selectinload(Book.genre_entries))
        .order_by(Book.id)
    )

    if author:
        stmt = stmt.join(Book.author).where(Author.name == author)

    if genre:
        stmt = stmt.where(Book.genre_entries.any(BookGenre.name == genre))

    return stmt


def iter_books(
    db: Session,
    author: str | None = None,
    genre: str | None = None,
) -> Iterator[Book]:
    """
    Lazily yield books matching the filters.

    Nothing is queried until iteration starts; calling the function
    again runs a fresh query.
    """
    yield from db.execute(select_books(author, genre)).scalars()


def get_book_by_title(db: Session, title: str) -> Book | None:
    stmt = (
        select(Book)
        .options(selectinload(Book.author), selectinload(Book.genre_entries))
        .where(Book.title == title)
    )
    return db.execute(stmt).scalar_one_or_none()


def add_book(
    db: Session,
    title: str,
    author_name: str,
    published: int,
    genres: Iterable[str],
) -> Book:
    """
    Store a new book, creating its author on first use.

    Fields are expected to have passed validate_book_fields already.

    Raises:
        DuplicateTitleError: If a book with this title already exists
    """
    title = title.strip()
    author = find_or_create_author(db, author_name.strip())

    book = Book(title=title, published=published, author=author)
    book.genres = normalize_genres(genres)
    db.add(book)

    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"Rejected duplicate book title '{title}'")
        raise DuplicateTitleError(title, e) from e

    db.commit()
    db.refresh(book)
    logger.info(f"Added book '{title}' by '{author.name}'")
    return book


def count_books(db: Session) -> int:
    return db.execute(select(func.count()).select_from(Book)).scalar_one()


def list_genres(db: Session) -> list[str]:
    """Distinct genre names across all books, alphabetically."""
    stmt = select(BookGenre.name).distinct().order_by(BookGenre.name)
    return list(db.execute(stmt).scalars().all())
