"""
Library Catalog API Package

GraphQL backend for a library-catalog application: users register and
log in, authenticated users add books, and anyone can browse books,
authors and genres.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and declarative base
- main.py: FastAPI application factory and configuration
- models/: SQLAlchemy ORM models
- services/: Store access, validation, security and event broadcasting
- graphql/: Strawberry schema, resolvers and request context
"""

__version__ = "0.1.0"
