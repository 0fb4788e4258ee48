"""
GraphQL Subscription Resolvers

Real-time updates delivered over the GraphQL WebSocket protocols that
Strawberry's FastAPI router speaks (graphql-transport-ws, graphql-ws).
"""

from collections.abc import AsyncGenerator
from contextlib import aclosing

import strawberry

from library_catalog.graphql.types import BookType
from library_catalog.services.events import EventType, get_event_broker


@strawberry.type
class Subscription:
    """GraphQL Subscription type."""

    @strawberry.subscription(description="Books as they are added")
    async def book_added(self) -> AsyncGenerator[BookType, None]:
        # aclosing drops the subscriber queue as soon as the client goes away
        async with aclosing(get_event_broker().listen(EventType.BOOK_ADDED)) as events:
            async for event in events:
                yield event.payload
