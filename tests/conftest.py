"""
pytest Fixtures for Library Catalog Tests

Shared fixtures used across all test files.

For database tests we use:
- a fresh SQLite in-memory engine per test (StaticPool keeps the single
  connection alive, so every session sees the same database)
- a TestClient whose get_db dependency is overridden with the test session
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from library_catalog.database import Base, get_db
from library_catalog.main import app
from library_catalog.models import Book, User
from library_catalog.services import catalog
from library_catalog.services.security import create_user_token, hash_password

TEST_PASSWORD = "testPassword"

SAMPLE_BOOKS = [
    {
        "title": "Oddly Normal",
        "author": "Otis Frampton",
        "published": 2014,
        "genres": ["comics", "fantasy"],
    },
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
]


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def engine():
    """
    Create a SQLite in-memory database engine with all tables.

    Function scope: every test starts from an empty database, so tests
    that hit unique constraints (and roll back) can't affect each other.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Create a database session bound to the test engine."""
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
    session = TestSessionLocal()

    yield session

    session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    get_db is overridden so the GraphQL context uses our test session.
    """

    def override_get_db():
        """Provide test database session instead of real one."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user for testing."""
    user = User(
        username="testUser1",
        password_hash=hash_password(TEST_PASSWORD),
        favorite_genre="testGenre",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_token(sample_user: User) -> str:
    """A valid bearer token for sample_user."""
    return create_user_token(sample_user.id, sample_user.username)


@pytest.fixture
def sample_books(db_session: Session) -> list[Book]:
    """Store every entry of SAMPLE_BOOKS through the catalog service."""
    return [
        catalog.add_book(
            db_session,
            data["title"],
            data["author"],
            data["published"],
            data["genres"],
        )
        for data in SAMPLE_BOOKS
    ]
