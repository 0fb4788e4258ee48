"""
GraphQL API Tests

Tests for the GraphQL endpoint including:
- Catalog queries (allBooks, allAuthors, allGenres, counts)
- addBook validation, duplicate titles and authentication
- Account mutations (createUser, login, saveBook) and `me`
- editAuthor, the bookAdded event and its WebSocket subscription
- Masking of unexpected resolver errors
- Health and root endpoints
"""

import time

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from library_catalog.models import Book, User
from library_catalog.services import catalog
from library_catalog.services.events import EventType, get_event_broker
from library_catalog.services.security import create_access_token
from tests.conftest import SAMPLE_BOOKS, TEST_PASSWORD

# =============================================================================
# Helper Functions
# =============================================================================


def graphql_request(client: TestClient, query: str, variables: dict = None, token: str = None):
    """Execute a GraphQL query and return the raw response."""
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    payload = {"query": query}
    if variables:
        payload["variables"] = variables

    return client.post("/graphql", json=payload, headers=headers)


def graphql_query(client: TestClient, query: str, variables: dict = None, token: str = None):
    """Execute a GraphQL query and return the response body."""
    return graphql_request(client, query, variables, token).json()


def first_error(result: dict) -> dict:
    assert "errors" in result
    return result["errors"][0]


ADD_BOOK = """
mutation AddBook($title: String!, $author: String!, $published: Int!, $genres: [String!]!) {
    addBook(title: $title, author: $author, published: $published, genres: $genres) {
        id
        title
        published
        genres
        author {
            name
            born
            bookCount
        }
    }
}
"""

ALL_BOOKS = """
query AllBooks($author: String, $genre: String) {
    allBooks(author: $author, genre: $genre) {
        title
        author { name }
        genres
    }
}
"""

LOGIN = """
mutation Login($username: String!, $password: String!) {
    login(username: $username, password: $password) {
        value
    }
}
"""


def add_book(client: TestClient, token: str, **fields):
    variables = {
        "title": "Oddly Normal",
        "author": "Otis Frampton",
        "published": 2014,
        "genres": ["comics", "fantasy"],
    }
    variables.update(fields)
    return graphql_query(client, ADD_BOOK, variables, token)


# =============================================================================
# addBook Tests
# =============================================================================


class TestAddBook:
    """Tests for the addBook mutation."""

    def test_requires_authentication(self, client: TestClient):
        result = add_book(client, token=None)

        error = first_error(result)
        assert error["message"] == "User not authenticated."
        assert error["extensions"]["code"] == "UNAUTHENTICATED_USER"
        assert error["extensions"]["message"] == "Authenticate yourself first."
        assert result["data"]["addBook"] is None

    def test_authentication_is_checked_before_fields(self, client: TestClient):
        result = add_book(client, token=None, title="", genres=[])

        assert first_error(result)["extensions"]["code"] == "UNAUTHENTICATED_USER"

    def test_add_book(self, client: TestClient, auth_token: str):
        result = add_book(client, auth_token)

        assert "errors" not in result
        book = result["data"]["addBook"]
        assert book["id"]
        assert book["title"] == "Oddly Normal"
        assert book["published"] == 2014
        assert book["genres"] == ["comics", "fantasy"]
        assert book["author"] == {"name": "Otis Frampton", "born": None, "bookCount": 1}

    def test_book_count_of_existing_author(
        self, client: TestClient, auth_token: str, sample_books: list[Book]
    ):
        result = add_book(
            client,
            auth_token,
            title="The Clean Coder",
            author="Robert Martin",
            published=2011,
            genres=["refactoring"],
        )

        assert result["data"]["addBook"]["author"]["bookCount"] == 3

    def test_added_book_is_listed(self, client: TestClient, auth_token: str):
        add_book(client, auth_token)

        result = graphql_query(client, ALL_BOOKS)

        assert result["data"]["allBooks"] == [
            {
                "title": "Oddly Normal",
                "author": {"name": "Otis Frampton"},
                "genres": ["comics", "fantasy"],
            }
        ]

    def test_duplicate_title(self, client: TestClient, auth_token: str, db_session: Session):
        add_book(client, auth_token)
        result = add_book(client, auth_token, author="Someone Else")

        error = first_error(result)
        assert error["message"] == "Creating a book failed!"
        assert error["extensions"]["code"] == "DUPLICATE_BOOK_TITLE"
        assert error["extensions"]["error"]["name"] == "IntegrityError"
        assert result["data"]["addBook"] is None
        assert catalog.count_books(db_session) == 1
        assert catalog.get_author_by_name(db_session, "Someone Else") is None

    def test_empty_title(self, client: TestClient, auth_token: str):
        error = first_error(add_book(client, auth_token, title=""))

        assert error["message"] == "Creating a book failed!"
        assert error["extensions"]["code"] == "BAD_BOOK_TITLE"
        assert error["extensions"]["message"] == "Book title too short!"

    def test_empty_author(self, client: TestClient, auth_token: str):
        error = first_error(add_book(client, auth_token, author=""))

        assert error["extensions"]["code"] == "BAD_AUTHOR_NAME"
        assert error["extensions"]["message"] == "Author name too short!"

    def test_negative_published(self, client: TestClient, auth_token: str):
        error = first_error(add_book(client, auth_token, published=-2000))

        assert error["extensions"]["code"] == "BAD_BOOK_PUBLICATION_DATE"
        assert error["extensions"]["message"] == "Publication date cant be negative!"

    def test_empty_genres(self, client: TestClient, auth_token: str):
        error = first_error(add_book(client, auth_token, genres=[]))

        assert error["extensions"]["code"] == "BAD_BOOK_GENRES"
        assert error["extensions"]["message"] == "Book must have at least one genre!"

    def test_invalid_book_is_not_stored(
        self, client: TestClient, auth_token: str, db_session: Session
    ):
        add_book(client, auth_token, genres=[])

        assert catalog.count_books(db_session) == 0
        assert catalog.count_authors(db_session) == 0

    def test_non_integer_published(self, client: TestClient, auth_token: str):
        query = """
        mutation {
            addBook(title: "Oddly Normal", author: "Otis Frampton",
                    published: "2014", genres: ["comics"]) {
                title
            }
        }
        """
        response = graphql_request(client, query, token=auth_token)

        assert response.status_code == 400
        error = first_error(response.json())
        assert error["extensions"]["code"] == "GRAPHQL_VALIDATION_FAILED"

    def test_unknown_field(self, client: TestClient):
        response = graphql_request(client, "query { allBooks { isbn } }")

        assert response.status_code == 400
        assert first_error(response.json())["extensions"]["code"] == "GRAPHQL_VALIDATION_FAILED"

    def test_publishes_book_added(self, client: TestClient, auth_token: str):
        broker = get_event_broker()
        queue = broker.open_queue(EventType.BOOK_ADDED)
        try:
            add_book(client, auth_token)

            event = queue.get_nowait()
        finally:
            broker.close_queue(EventType.BOOK_ADDED, queue)

        assert event.type == EventType.BOOK_ADDED
        assert event.payload.title == "Oddly Normal"
        assert event.payload.author.name == "Otis Frampton"

    def test_failed_add_publishes_nothing(self, client: TestClient, auth_token: str):
        broker = get_event_broker()
        queue = broker.open_queue(EventType.BOOK_ADDED)
        try:
            add_book(client, auth_token, title="")
        finally:
            broker.close_queue(EventType.BOOK_ADDED, queue)

        assert queue.empty()


# =============================================================================
# Catalog Query Tests
# =============================================================================


class TestCatalogQueries:
    """Tests for the read-only catalog queries."""

    def test_empty_catalog(self, client: TestClient):
        query = "query { bookCount authorCount allBooks { title } allAuthors { name } allGenres }"
        result = graphql_query(client, query)

        assert "errors" not in result
        assert result["data"] == {
            "bookCount": 0,
            "authorCount": 0,
            "allBooks": [],
            "allAuthors": [],
            "allGenres": [],
        }

    def test_counts(self, client: TestClient, sample_books: list[Book]):
        result = graphql_query(client, "query { bookCount authorCount }")

        assert result["data"] == {"bookCount": 3, "authorCount": 2}

    def test_book_count_after_adding_through_api(self, client: TestClient, auth_token: str):
        for data in SAMPLE_BOOKS:
            add_book(client, auth_token, **data)

        result = graphql_query(client, "query { bookCount }")

        assert result["data"]["bookCount"] == len(SAMPLE_BOOKS)

    def test_all_books(self, client: TestClient, sample_books: list[Book]):
        result = graphql_query(client, ALL_BOOKS)

        titles = [b["title"] for b in result["data"]["allBooks"]]
        assert titles == [data["title"] for data in SAMPLE_BOOKS]

    def test_filter_by_author(self, client: TestClient, sample_books: list[Book]):
        result = graphql_query(client, ALL_BOOKS, {"author": "Robert Martin"})

        titles = [b["title"] for b in result["data"]["allBooks"]]
        assert titles == ["Clean Code", "Agile software development"]

    def test_filter_by_genre(self, client: TestClient, sample_books: list[Book]):
        result = graphql_query(client, ALL_BOOKS, {"genre": "refactoring"})

        assert [b["title"] for b in result["data"]["allBooks"]] == ["Clean Code"]

    def test_filter_by_author_and_genre(self, client: TestClient, sample_books: list[Book]):
        result = graphql_query(
            client, ALL_BOOKS, {"author": "Robert Martin", "genre": "comics"}
        )

        assert result["data"]["allBooks"] == []

    def test_filter_by_unknown_author(self, client: TestClient, sample_books: list[Book]):
        result = graphql_query(client, ALL_BOOKS, {"author": "Nobody"})

        assert "errors" not in result
        assert result["data"]["allBooks"] == []

    def test_all_authors_with_book_counts(self, client: TestClient, sample_books: list[Book]):
        query = "query { allAuthors { id name born bookCount } }"
        result = graphql_query(client, query)

        authors = result["data"]["allAuthors"]
        assert [(a["name"], a["bookCount"]) for a in authors] == [
            ("Otis Frampton", 1),
            ("Robert Martin", 2),
        ]
        assert all(a["id"] and a["born"] is None for a in authors)

    def test_all_genres_without_repeats(
        self, client: TestClient, db_session: Session, sample_books: list[Book]
    ):
        catalog.add_book(
            db_session,
            "Demons",
            "Fyodor Dostoevsky",
            1872,
            ["classic", "fantasy"],
        )

        result = graphql_query(client, "query { allGenres }")

        genres = result["data"]["allGenres"]
        assert len(genres) == len(set(genres))
        assert set(genres) == {
            "comics",
            "fantasy",
            "refactoring",
            "agile",
            "patterns",
            "design",
            "classic",
        }

    def test_type_names(self, client: TestClient):
        query = """
        query {
            book: __type(name: "Book") { name fields { name } }
            author: __type(name: "Author") { name fields { name } }
            user: __type(name: "User") { name fields { name } }
            token: __type(name: "Token") { name fields { name } }
        }
        """
        result = graphql_query(client, query)

        fields = {
            key: {f["name"] for f in value["fields"]}
            for key, value in result["data"].items()
        }
        assert fields["book"] == {"id", "title", "published", "author", "genres"}
        assert fields["author"] == {"id", "name", "born", "bookCount"}
        assert fields["user"] == {"id", "username", "favoriteGenre", "savedBooks"}
        assert fields["token"] == {"value"}

    def test_query_field_nullability(self, client: TestClient):
        query = """
        query {
            __type(name: "Query") {
                fields { name type { kind ofType { kind name } } }
            }
        }
        """
        result = graphql_query(client, query)

        types = {f["name"]: f["type"] for f in result["data"]["__type"]["fields"]}
        assert types["allBooks"] == {"kind": "LIST", "ofType": {"kind": "OBJECT", "name": "Book"}}
        assert types["allAuthors"] == {"kind": "LIST", "ofType": {"kind": "OBJECT", "name": "Author"}}
        assert types["allGenres"] == {"kind": "LIST", "ofType": {"kind": "SCALAR", "name": "String"}}
        assert types["bookCount"] == {"kind": "SCALAR", "ofType": None}
        assert types["authorCount"] == {"kind": "SCALAR", "ofType": None}


# =============================================================================
# Account Tests
# =============================================================================


class TestCreateUser:
    """Tests for the createUser mutation."""

    CREATE_USER = """
    mutation CreateUser($username: String!, $password: String!, $favoriteGenre: String!) {
        createUser(username: $username, password: $password, favoriteGenre: $favoriteGenre) {
            id
            username
            favoriteGenre
            savedBooks { title }
        }
    }
    """

    def test_create_user(self, client: TestClient):
        variables = {"username": "mluukkai", "password": "secret", "favoriteGenre": "refactoring"}
        result = graphql_query(client, self.CREATE_USER, variables)

        assert "errors" not in result
        user = result["data"]["createUser"]
        assert user["username"] == "mluukkai"
        assert user["favoriteGenre"] == "refactoring"
        assert user["savedBooks"] == []

    def test_created_user_can_log_in(self, client: TestClient):
        variables = {"username": "mluukkai", "password": "secret", "favoriteGenre": "refactoring"}
        graphql_query(client, self.CREATE_USER, variables)

        result = graphql_query(client, LOGIN, {"username": "mluukkai", "password": "secret"})

        assert result["data"]["login"]["value"]

    def test_duplicate_username(self, client: TestClient, sample_user: User):
        variables = {
            "username": sample_user.username,
            "password": "other",
            "favoriteGenre": "comics",
        }
        result = graphql_query(client, self.CREATE_USER, variables)

        error = first_error(result)
        assert error["message"] == "Creating the user failed!"
        assert error["extensions"]["code"] == "BAD_USER_INPUT"
        assert error["extensions"]["invalidArgs"] == sample_user.username


class TestLogin:
    """Tests for the login mutation."""

    def test_login(self, client: TestClient, sample_user: User):
        variables = {"username": sample_user.username, "password": TEST_PASSWORD}
        result = graphql_query(client, LOGIN, variables)

        assert "errors" not in result
        assert result["data"]["login"]["value"]

    def test_wrong_username(self, client: TestClient, sample_user: User):
        variables = {"username": "wrongUsername", "password": TEST_PASSWORD}
        result = graphql_query(client, LOGIN, variables)

        error = first_error(result)
        assert error["message"] == "Login failed!"
        assert error["extensions"]["code"] == "WRONG_CREDENTIALS"
        assert error["extensions"]["invalidArgs"] == "wrongUsername"
        assert result["data"]["login"] is None

    def test_wrong_password(self, client: TestClient, sample_user: User):
        variables = {"username": sample_user.username, "password": "wrongPassword"}
        result = graphql_query(client, LOGIN, variables)

        error = first_error(result)
        assert error["message"] == "Login failed!"
        assert error["extensions"]["code"] == "WRONG_CREDENTIALS"
        assert error["extensions"]["invalidArgs"] == sample_user.username

    def test_token_from_login_authenticates(self, client: TestClient, sample_user: User):
        variables = {"username": sample_user.username, "password": TEST_PASSWORD}
        token = graphql_query(client, LOGIN, variables)["data"]["login"]["value"]

        result = graphql_query(client, "query { me { username } }", token=token)

        assert result["data"]["me"] == {"username": sample_user.username}


class TestMe:
    """Tests for the me query and the auth gate."""

    ME = "query { me { username favoriteGenre savedBooks { title } } }"

    def test_me_authenticated(self, client: TestClient, auth_token: str):
        result = graphql_query(client, self.ME, token=auth_token)

        assert result["data"]["me"] == {
            "username": "testUser1",
            "favoriteGenre": "testGenre",
            "savedBooks": [],
        }

    def test_me_anonymous(self, client: TestClient):
        result = graphql_query(client, self.ME)

        assert "errors" not in result
        assert result["data"]["me"] is None

    def test_lowercase_bearer_scheme(self, client: TestClient, auth_token: str):
        response = client.post(
            "/graphql",
            json={"query": self.ME},
            headers={"Authorization": f"bearer {auth_token}"},
        )

        assert response.json()["data"]["me"]["username"] == "testUser1"

    def test_invalid_token(self, client: TestClient):
        response = graphql_request(client, self.ME, token="not-a-valid-token")

        assert response.status_code == 401
        error = first_error(response.json())
        assert error["extensions"]["code"] == "UNAUTHENTICATED_USER"

    def test_token_for_missing_user_is_anonymous(self, client: TestClient):
        token = create_access_token({"sub": "9999", "username": "ghost"})

        result = graphql_query(client, self.ME, token=token)

        assert result["data"]["me"] is None


# =============================================================================
# saveBook and editAuthor Tests
# =============================================================================


class TestSaveBook:
    """Tests for the saveBook mutation."""

    SAVE_BOOK = """
    mutation SaveBook($title: String!) {
        saveBook(title: $title) {
            username
            savedBooks { title author { name bookCount } }
        }
    }
    """

    def test_save_book(self, client: TestClient, auth_token: str, sample_books: list[Book]):
        result = graphql_query(client, self.SAVE_BOOK, {"title": "Clean Code"}, auth_token)

        assert "errors" not in result
        assert result["data"]["saveBook"]["savedBooks"] == [
            {"title": "Clean Code", "author": {"name": "Robert Martin", "bookCount": 2}}
        ]

    def test_saved_books_show_in_me(
        self, client: TestClient, auth_token: str, sample_books: list[Book]
    ):
        graphql_query(client, self.SAVE_BOOK, {"title": "Oddly Normal"}, auth_token)

        result = graphql_query(client, "query { me { savedBooks { title } } }", token=auth_token)

        assert result["data"]["me"]["savedBooks"] == [{"title": "Oddly Normal"}]

    def test_unknown_title(self, client: TestClient, auth_token: str):
        result = graphql_query(client, self.SAVE_BOOK, {"title": "Missing"}, auth_token)

        error = first_error(result)
        assert error["message"] == "Saving the book failed!"
        assert error["extensions"]["code"] == "BOOK_NOT_FOUND"
        assert error["extensions"]["invalidArgs"] == "Missing"

    def test_requires_authentication(self, client: TestClient, sample_books: list[Book]):
        result = graphql_query(client, self.SAVE_BOOK, {"title": "Clean Code"})

        assert first_error(result)["extensions"]["code"] == "UNAUTHENTICATED_USER"


class TestEditAuthor:
    """Tests for the editAuthor mutation."""

    EDIT_AUTHOR = """
    mutation EditAuthor($name: String!, $setBornTo: Int!) {
        editAuthor(name: $name, setBornTo: $setBornTo) {
            name
            born
            bookCount
        }
    }
    """

    def test_set_birth_year(self, client: TestClient, auth_token: str, sample_books: list[Book]):
        variables = {"name": "Robert Martin", "setBornTo": 1952}
        result = graphql_query(client, self.EDIT_AUTHOR, variables, auth_token)

        assert result["data"]["editAuthor"] == {
            "name": "Robert Martin",
            "born": 1952,
            "bookCount": 2,
        }

    def test_unknown_author(self, client: TestClient, auth_token: str):
        variables = {"name": "Nobody", "setBornTo": 1900}
        result = graphql_query(client, self.EDIT_AUTHOR, variables, auth_token)

        assert "errors" not in result
        assert result["data"]["editAuthor"] is None

    def test_negative_year(self, client: TestClient, auth_token: str, sample_books: list[Book]):
        variables = {"name": "Robert Martin", "setBornTo": -5}
        result = graphql_query(client, self.EDIT_AUTHOR, variables, auth_token)

        assert first_error(result)["extensions"]["code"] == "BAD_AUTHOR_BIRTH_YEAR"

    def test_requires_authentication(self, client: TestClient, sample_books: list[Book]):
        variables = {"name": "Robert Martin", "setBornTo": 1952}
        result = graphql_query(client, self.EDIT_AUTHOR, variables)

        assert first_error(result)["extensions"]["code"] == "UNAUTHENTICATED_USER"


# =============================================================================
# Unexpected Error Tests
# =============================================================================


class TestUnexpectedErrors:
    """Failures not raised through the error helpers are hidden from clients."""

    def test_database_error_is_masked(self, client: TestClient, monkeypatch):
        def refuse(db):
            raise OperationalError(
                "SELECT count(*) FROM books",
                {},
                Exception("connection to server at db.internal:5432 refused"),
            )

        monkeypatch.setattr(catalog, "count_books", refuse)

        response = graphql_request(client, "query { bookCount }")

        assert response.status_code == 500
        body = response.json()
        error = first_error(body)
        assert error["message"] == "Internal server error."
        assert error["extensions"]["code"] == "INTERNAL_SERVER_ERROR"
        assert body["data"] == {"bookCount": None}
        assert "db.internal" not in response.text
        assert "SELECT" not in response.text

    def test_programming_error_is_masked(
        self, client: TestClient, auth_token: str, monkeypatch
    ):
        def broken(*args, **kwargs):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(catalog, "set_author_born", broken)

        variables = {"name": "Robert Martin", "setBornTo": 1952}
        response = graphql_request(
            client,
            "mutation E($name: String!, $setBornTo: Int!) "
            "{ editAuthor(name: $name, setBornTo: $setBornTo) { name } }",
            variables,
            auth_token,
        )

        assert response.status_code == 500
        assert first_error(response.json())["extensions"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret internals" not in response.text

    def test_coded_errors_are_not_masked(self, client: TestClient):
        variables = {"title": "", "author": "", "published": 1, "genres": []}
        response = graphql_request(client, ADD_BOOK, variables)

        assert response.status_code == 200
        assert first_error(response.json())["extensions"]["code"] == "UNAUTHENTICATED_USER"

    def test_syntax_errors_are_not_masked(self, client: TestClient):
        response = graphql_request(client, "query { allBooks { title }")

        error = first_error(response.json())
        assert error["message"] != "Internal server error."
        assert response.status_code != 500


# =============================================================================
# Subscription Tests
# =============================================================================


def wait_for_subscribers(expected: int, timeout: float = 2.0) -> int:
    """Poll the broker until `expected` bookAdded subscribers are open."""
    broker = get_event_broker()
    deadline = time.monotonic() + timeout
    while broker.subscriber_count(EventType.BOOK_ADDED) != expected:
        if time.monotonic() > deadline:
            break
        time.sleep(0.01)
    return broker.subscriber_count(EventType.BOOK_ADDED)


class TestBookAddedSubscription:
    """Tests for the bookAdded subscription over WebSocket."""

    SUBSCRIPTION = "subscription { bookAdded { title published genres author { name bookCount } } }"

    def test_receives_added_book(self, client: TestClient, auth_token: str):
        with client.websocket_connect(
            "/graphql", subprotocols=["graphql-transport-ws"]
        ) as websocket:
            websocket.send_json({"type": "connection_init"})
            assert websocket.receive_json()["type"] == "connection_ack"

            websocket.send_json(
                {"id": "1", "type": "subscribe", "payload": {"query": self.SUBSCRIPTION}}
            )
            assert wait_for_subscribers(1) == 1

            add_book(client, auth_token)

            message = websocket.receive_json()
            websocket.send_json({"id": "1", "type": "complete"})

        assert message["type"] == "next"
        assert message["id"] == "1"
        assert message["payload"]["data"]["bookAdded"] == {
            "title": "Oddly Normal",
            "published": 2014,
            "genres": ["comics", "fantasy"],
            "author": {"name": "Otis Frampton", "bookCount": 1},
        }
        assert wait_for_subscribers(0) == 0

    def test_closing_socket_removes_subscriber(self, client: TestClient):
        with client.websocket_connect(
            "/graphql", subprotocols=["graphql-transport-ws"]
        ) as websocket:
            websocket.send_json({"type": "connection_init"})
            websocket.receive_json()
            websocket.send_json(
                {"id": "1", "type": "subscribe", "payload": {"query": self.SUBSCRIPTION}}
            )
            assert wait_for_subscribers(1) == 1

        assert wait_for_subscribers(0) == 0



# =============================================================================
# Health Check Tests
# =============================================================================


class TestHealthEndpoints:
    """Tests for the plain HTTP endpoints next to GraphQL."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["graphql"]["endpoint"] == "/graphql"

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["graphql"] == "/graphql"
