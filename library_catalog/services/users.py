"""
Credential Store Service

Registration, credential checks and saved books for users.

Usernames are unique at the database level; a clash surfaces as an
IntegrityError which is turned into UsernameTakenError here.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from library_catalog.models import Book, SavedBook, User
from library_catalog.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class UsernameTakenError(Exception):
    """Raised when registering a username that already exists."""

    def __init__(self, username: str, cause: IntegrityError):
        self.username = username
        self.cause = cause
        super().__init__(f"Username '{username}' is already taken")


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User | None:
    stmt = select(User).where(User.username == username)
    return db.execute(stmt).scalar_one_or_none()


def create_user(
    db: Session,
    username: str,
    password: str,
    favorite_genre: str,
) -> User:
    """
    Register a new user with a bcrypt-hashed password.

    Raises:
        UsernameTakenError: If the username is already registered
    """
    user = User(
        username=username,
        password_hash=hash_password(password),
        favorite_genre=favorite_genre,
    )
    db.add(user)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise UsernameTakenError(username, e) from e

    db.refresh(user)
    logger.info(f"Registered user '{username}'")
    return user


def authenticate(db: Session, username: str, password: str) -> User | None:
    """
    Return the user if the username exists and the password matches.

    Callers can't tell an unknown username from a wrong password; both
    return None.
    """
    user = get_user_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        logger.info(f"Failed login for '{username}'")
        return None
    return user


def save_book(db: Session, user: User, book: Book) -> User:
    """Append a book to the user's saved books. Saving twice is a no-op."""
    if any(entry.book_id == book.id for entry in user.saved_entries):
        return user

    user.saved_entries.append(SavedBook(book=book))
    db.commit()
    db.refresh(user)
    logger.info(f"User '{user.username}' saved '{book.title}'")
    return user
