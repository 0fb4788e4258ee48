"""
Services Package

Business logic kept separate from the GraphQL resolvers so it can be
tested on its own:

- catalog.py: Author and book storage, read-time aggregations
- events.py: In-process broker feeding GraphQL subscriptions
- security.py: Password hashing and JWT utilities
- users.py: Registration, credential checks and saved books
- validation.py: Field rules for candidate books
"""
