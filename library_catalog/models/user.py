"""
User Model

Represents a registered user of the catalog together with the ordered
list of books they saved.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_catalog.database import Base

if TYPE_CHECKING:
    from library_catalog.models.book import Book


class User(Base):
    """
    User model representing registered users.

    Table: users

    Users are created on registration and are only ever mutated by
    appending saved books. The password is stored as a bcrypt hash and
    is never exposed through the API.

    Relationships:
    - saved_entries: One-to-Many SavedBook rows, in the order saved

    Example:
        user = User(
            username="mluukkai",
            password_hash=hash_password("secret"),
            favorite_genre="refactoring",
        )
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique login name"
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    favorite_genre: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Genre used to suggest books to the user"
    )

    saved_entries: Mapped[list["SavedBook"]] = relationship(
        "SavedBook",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="SavedBook.id",
    )

    @property
    def saved_books(self) -> list["Book"]:
        """Saved books in the order they were saved."""
        return [entry.book for entry in self.saved_entries]

    def __repr__(self) -> str:
        return f"User(id={self.id}, username='{self.username}')"


class SavedBook(Base):
    """
    Link between a user and a book they saved.

    Table: saved_books
    """

    __tablename__ = "saved_books"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_saved_books_user_book"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    book_id: Mapped[int] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="saved_entries")
    book: Mapped["Book"] = relationship("Book")
