#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample books and a demo user for
development.

USAGE:
    # From the project root with the virtualenv active
    python scripts/seed_data.py

This script:
1. Connects to the database using library_catalog settings
2. Clears existing data (optional)
3. Adds books through the catalog service, so authors are created the
   same way the addBook mutation creates them
4. Registers a demo user
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from library_catalog.database import SessionLocal, create_tables
from library_catalog.models import Author, Book, BookGenre, SavedBook, User
from library_catalog.services import catalog, users

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "demo-password"

BOOKS = [
    {
        "title": "Clean Code",
        "author": "Robert Martin",
        "published": 2008,
        "genres": ["refactoring"],
    },
    {
        "title": "Agile software development",
        "author": "Robert Martin",
        "published": 2002,
        "genres": ["agile", "patterns", "design"],
    },
    {
        "title": "Refactoring, edition 2",
        "author": "Martin Fowler",
        "published": 2018,
        "genres": ["refactoring"],
    },
    {
        "title": "Refactoring to patterns",
        "author": "Joshua Kerievsky",
        "published": 2008,
        "genres": ["refactoring", "patterns"],
    },
    {
        "title": "Practical Object-Oriented Design, An Agile Primer Using Ruby",
        "author": "Sandi Metz",
        "published": 2012,
        "genres": ["refactoring", "design"],
    },
    {
        "title": "Crime and punishment",
        "author": "Fyodor Dostoevsky",
        "published": 1866,
        "genres": ["classic", "crime"],
    },
    {
        "title": "Demons",
        "author": "Fyodor Dostoevsky",
        "published": 1872,
        "genres": ["classic", "revolution"],
    },
]

BIRTH_YEARS = {
    "Robert Martin": 1952,
    "Martin Fowler": 1963,
    "Fyodor Dostoevsky": 1821,
}


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    for model in (SavedBook, BookGenre, Book, Author, User):
        db.execute(delete(model))
    db.commit()
    print("Data cleared.")


def create_books(db: Session) -> list[Book]:
    """Add the sample books, creating authors on first use."""
    print("Creating books...")
    books = [
        catalog.add_book(db, data["title"], data["author"], data["published"], data["genres"])
        for data in BOOKS
    ]

    for name, born in BIRTH_YEARS.items():
        catalog.set_author_born(db, name, born)

    print(f"Created {len(books)} books.")
    return books


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        books = create_books(db)
        users.create_user(db, DEMO_USERNAME, DEMO_PASSWORD, favorite_genre="refactoring")

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Authors: {catalog.count_authors(db)}")
        print(f"  - Books: {len(books)}")
        print(f"  - Genres: {len(catalog.list_genres(db))}")
        print(f"  - Demo login: {DEMO_USERNAME} / {DEMO_PASSWORD}")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
