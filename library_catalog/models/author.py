"""
Author Model

Represents an author in the catalog store.

Authors are never created directly by clients: the first book that
names an author creates it. The number of books an author has written
is not stored; it is counted at read time (see services/catalog.py).
"""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_catalog.database import Base

# TYPE_CHECKING avoids a circular import between author and book at runtime
if TYPE_CHECKING:
    from library_catalog.models.book import Book


class Author(Base):
    """
    Author model representing writers in the catalog.

    Table: authors

    Relationships:
    - books: One-to-Many, every Book points at exactly one Author

    Indexes:
    - name: Unique index, author names are globally unique

    Example:
        author = Author(name="Robert Martin", born=1952)
        db.add(author)
        db.commit()
    """

    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="Author's full name"
    )

    # Optional birth year, set later through editAuthor
    born: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Year the author was born"
    )

    books: Mapped[list["Book"]] = relationship(
        "Book",
        back_populates="author",
    )

    def __repr__(self) -> str:
        return f"Author(id={self.id}, name='{self.name}')"
