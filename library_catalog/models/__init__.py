"""
SQLAlchemy Models Package

This package contains all database models for the Library Catalog API.

Model Relationships:
- Author -> Book: One-to-Many (a book has exactly one author,
                  an author can write many books)
- Book -> BookGenre: One-to-Many (genre names, kept in insertion order)
- User -> SavedBook -> Book: ordered list of books a user saved

Import models from this package:
    from library_catalog.models import Author, Book, User
"""

from library_catalog.models.author import Author
from library_catalog.models.book import Book, BookGenre
from library_catalog.models.user import SavedBook, User

__all__ = [
    "Author",
    "Book",
    "BookGenre",
    "SavedBook",
    "User",
]
