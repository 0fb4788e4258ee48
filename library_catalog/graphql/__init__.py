"""
GraphQL Package

The library catalog's GraphQL API, built with Strawberry GraphQL and
served through FastAPI.

Features:
- Queries: allBooks, allAuthors, allGenres, bookCount, authorCount, me
- Mutations: createUser, login, addBook, editAuthor, saveBook
- Subscription: bookAdded
- Authentication via bearer JWT in the request context
- Stable error codes in `extensions.code`

Example Query:
    query {
        allBooks(genre: "refactoring") {
            title
            published
            author { name bookCount }
            genres
        }
    }
"""

import strawberry
from strawberry.fastapi import GraphQLRouter

from library_catalog.config import get_settings
from library_catalog.graphql.context import get_context
from library_catalog.graphql.extensions import (
    MaskUnexpectedErrors,
    ValidationErrorCodes,
)
from library_catalog.graphql.mutations import Mutation
from library_catalog.graphql.queries import Query
from library_catalog.graphql.subscriptions import Subscription

schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    subscription=Subscription,
    extensions=[ValidationErrorCodes, MaskUnexpectedErrors()],
)


def create_graphql_router() -> GraphQLRouter:
    """
    Create the GraphQL router for FastAPI.

    Returns:
        GraphQLRouter configured with schema and context
    """
    settings = get_settings()
    graphql_ide = None if settings.graphql_ide == "none" else settings.graphql_ide

    return GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide=graphql_ide,
    )


__all__ = ["schema", "create_graphql_router"]
