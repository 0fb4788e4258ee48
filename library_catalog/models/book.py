"""
Book Model

The central model of the catalog, plus the BookGenre rows that hold a
book's genre names.

WHY a BookGenre table instead of a Genre lookup table?
=======================================================
Genres are free-form strings supplied with each book, there is no
genre entity to manage. Storing one row per (book, name) keeps the
caller's order (by primary key), lets the database reject duplicate
genres on the same book, and makes "books in genre X" and "all distinct
genres" plain SQL queries.
"""

from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_catalog.database import Base

if TYPE_CHECKING:
    from library_catalog.models.author import Author


class Book(Base):
    """
    Book model representing books in the catalog.

    Table: books

    Fields:
    - title: Book title, globally unique
    - published: Publication year, never negative

    Relationships:
    - author: Many-to-One, resolved or created by name when the book is added
    - genre_entries: One-to-Many BookGenre rows, ordered as supplied

    Books are immutable once created.

    Example:
        book = Book(title="Oddly Normal", published=2014, author=author)
        book.genres = ["comics", "fantasy"]
    """

    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("published >= 0", name="ck_books_published_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(
        String(500),
        unique=True,
        index=True,
        nullable=False,
        comment="Book title"
    )

    published: Mapped[int] = mapped_column(
        Integer,
        index=True,
        nullable=False,
        comment="Year of publication"
    )

    author_id: Mapped[int] = mapped_column(
        ForeignKey("authors.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    author: Mapped["Author"] = relationship(
        "Author",
        back_populates="books",
    )

    # Ordered by primary key so genres come back in insertion order
    genre_entries: Mapped[list["BookGenre"]] = relationship(
        "BookGenre",
        back_populates="book",
        cascade="all, delete-orphan",
        order_by="BookGenre.id",
    )

    @property
    def genres(self) -> list[str]:
        """Genre names in the order they were supplied."""
        return [entry.name for entry in self.genre_entries]

    @genres.setter
    def genres(self, names: list[str]) -> None:
        self.genre_entries = [BookGenre(name=name) for name in names]

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}')"


class BookGenre(Base):
    """
    A single genre name attached to a book.

    Table: book_genres
    """

    __tablename__ = "book_genres"
    __table_args__ = (
        UniqueConstraint("book_id", "name", name="uq_book_genres_book_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    book_id: Mapped[int] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Genre name (e.g. 'fantasy', 'refactoring')"
    )

    book: Mapped["Book"] = relationship("Book", back_populates="genre_entries")

    def __repr__(self) -> str:
        return f"BookGenre(book_id={self.book_id}, name='{self.name}')"
