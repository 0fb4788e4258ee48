"""
Test Suite for the Library Catalog API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_graphql.py: Every GraphQL operation over HTTP
- test_catalog.py, test_users.py: Store services
- test_validation.py, test_security.py: Field rules, hashing, tokens, auth gate
- test_events.py: bookAdded event broker
- test_config.py: Settings validators

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_graphql.py

    # Run with verbose output
    pytest -v
"""
