"""
Tests for the FastAPI application.
"""

import pytest
from fastapi.testclient import TestClient

from api.config import APIConfig
from api.main import create_app


@pytest.fixture
def client(catalog_config):
    """Create test client with a fresh data directory."""
    app = create_app(catalog_config, APIConfig(debug=False))
    with TestClient(app) as test_client:
        yield test_client


def register(client, email="a@x.com", password="p1"):
    return client.post("/auth/register", json={"email": email, "password": password})


def auth_headers(client, email="a@x.com", password="p1"):
    register(client, email, password)
    response = client.post("/auth/login", json={"email": email, "password": password})
    return {"Authorization": f"Bearer {response.json()['token']}"}


def create_book(client, headers, **overrides):
    fields = {"title": "T", "author": "Au", "genre": "Fiction", "publishedYear": 2020}
    fields.update(overrides)
    return client.post("/books", json=fields, headers=headers)


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["storage_status"] == "healthy"
    assert "timestamp" in data
    assert "version" in data


def test_request_id_header(client):
    generated = client.get("/health")
    echoed = client.get("/health", headers={"X-Request-ID": "req-42"})

    assert generated.headers["X-Request-ID"]
    assert echoed.headers["X-Request-ID"] == "req-42"


def test_startup_creates_collections(client, data_dir):
    assert (data_dir / "users.json").exists()
    assert (data_dir / "books.json").exists()


class TestAuthEndpoints:
    """Test cases for registration and login."""

    def test_register(self, client):
        response = register(client)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered"
        assert data["user"]["id"]
        assert data["user"]["email"] == "a@x.com"
        assert "createdAt" in data["user"]
        assert "password" not in data["user"]
        assert "passwordHash" not in data["user"]

    def test_register_duplicate(self, client):
        register(client)

        response = register(client, password="other")

        assert response.status_code == 400
        assert response.json()["error"] == "User already exists"

    def test_register_missing_password(self, client):
        response = client.post("/auth/register", json={"email": "a@x.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "Email and password are required"

    def test_register_malformed_body(self, client):
        response = client.post("/auth/register", json={"email": ["a@x.com"], "password": "p1"})

        assert response.status_code == 400

    def test_login(self, client):
        user_id = register(client).json()["user"]["id"]

        response = client.post("/auth/login", json={"email": "a@x.com", "password": "p1"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["token"]
        assert data["user"] == {"id": user_id, "email": "a@x.com"}

    def test_login_failures_are_indistinguishable(self, client):
        register(client)

        wrong_password = client.post("/auth/login", json={"email": "a@x.com", "password": "nope"})
        unknown_email = client.post("/auth/login", json={"email": "b@x.com", "password": "p1"})

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json()["error"] == "Invalid credentials"


class TestBookAuthentication:
    """Test cases for the bearer token gate on /books."""

    def test_books_endpoint_requires_auth(self, client):
        response = client.get("/books")

        assert response.status_code == 401
        assert response.json()["error"] == "Token required"

    def test_invalid_token(self, client):
        response = client.get("/books", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 403
        assert response.json()["error"] == "Invalid or expired token"

    def test_create_without_token_has_no_side_effects(self, client, data_dir):
        response = create_book(client, headers={})

        assert response.status_code == 401
        assert (data_dir / "books.json").read_text(encoding="utf-8") == "[]"


class TestBookEndpoints:
    """Test cases for book CRUD over HTTP."""

    def test_create_and_get_book(self, client):
        headers = auth_headers(client)
        user_id = client.post(
            "/auth/login", json={"email": "a@x.com", "password": "p1"}
        ).json()["user"]["id"]

        created = create_book(client, headers)

        assert created.status_code == 201
        book = created.json()["book"]
        assert created.json()["message"] == "Book created"
        assert book["ownerId"] == user_id
        assert "updatedAt" not in book

        fetched = client.get(f"/books/{book['id']}", headers=headers)
        assert fetched.status_code == 200
        assert fetched.json()["book"] == book

    def test_create_invalid_book(self, client):
        headers = auth_headers(client)

        response = create_book(client, headers, publishedYear="2020")

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid book data"

    def test_book_not_found(self, client):
        headers = auth_headers(client)

        response = client.get("/books/nonexistent_id", headers=headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Book not found"

    def test_list_books_with_filter_and_pagination(self, client):
        headers = auth_headers(client)
        create_book(client, headers, title="One", genre="Fiction")
        create_book(client, headers, title="Two", genre="Poetry")
        create_book(client, headers, title="Three", genre="Science Fiction")

        everything = client.get("/books", headers=headers).json()
        assert [book["title"] for book in everything["books"]] == ["One", "Two", "Three"]
        assert "pagination" not in everything

        filtered = client.get("/books?genre=FICTION", headers=headers).json()
        assert [book["title"] for book in filtered["books"]] == ["One", "Three"]

        page = client.get("/books?page=1&limit=2", headers=headers).json()
        assert [book["title"] for book in page["books"]] == ["One", "Two"]
        assert page["pagination"] == {
            "currentPage": 1,
            "totalPages": 2,
            "totalBooks": 3,
            "hasNext": True,
            "hasPrev": False,
        }

    def test_invalid_pagination(self, client):
        headers = auth_headers(client)

        response = client.get("/books?page=0&limit=2", headers=headers)

        assert response.status_code == 400

    def test_search_books(self, client):
        headers = auth_headers(client)
        create_book(client, headers, title="One", genre="Mystery")
        create_book(client, headers, title="Two", genre="Poetry")

        response = client.get("/books/search?genre=myst", headers=headers)

        assert response.status_code == 200
        assert [book["title"] for book in response.json()["books"]] == ["One"]

    def test_search_requires_genre(self, client):
        headers = auth_headers(client)

        response = client.get("/books/search", headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Genre is required"

    def test_update_by_owner(self, client):
        headers = auth_headers(client)
        book_id = create_book(client, headers).json()["book"]["id"]

        response = client.put(f"/books/{book_id}", json={"title": "T2"}, headers=headers)

        assert response.status_code == 200
        book = response.json()["book"]
        assert response.json()["message"] == "Book updated"
        assert book["title"] == "T2"
        assert book["author"] == "Au"
        assert "updatedAt" in book

    def test_update_by_other_user_is_forbidden(self, client):
        owner = auth_headers(client, "a@x.com")
        other = auth_headers(client, "b@x.com")
        book_id = create_book(client, owner).json()["book"]["id"]

        response = client.put(f"/books/{book_id}", json={"title": "T2"}, headers=other)

        assert response.status_code == 403
        assert response.json()["error"] == "Unauthorized"
        stored = client.get(f"/books/{book_id}", headers=other).json()["book"]
        assert stored["title"] == "T"

    def test_invalid_update_by_other_user_is_forbidden(self, client):
        owner = auth_headers(client, "a@x.com")
        other = auth_headers(client, "b@x.com")
        book_id = create_book(client, owner).json()["book"]["id"]

        response = client.put(f"/books/{book_id}", json={"title": ""}, headers=other)

        assert response.status_code == 403
        assert response.json()["error"] == "Unauthorized"

    def test_invalid_update_of_unknown_book_is_not_found(self, client):
        headers = auth_headers(client)

        response = client.put("/books/missing", json={"publishedYear": "x"}, headers=headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Book not found"

    def test_invalid_update_by_owner_is_rejected(self, client):
        headers = auth_headers(client)
        book_id = create_book(client, headers).json()["book"]["id"]

        response = client.put(f"/books/{book_id}", json={"title": ""}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid book data"

    def test_delete_by_other_user_is_forbidden(self, client):
        owner = auth_headers(client, "a@x.com")
        other = auth_headers(client, "b@x.com")
        book_id = create_book(client, owner).json()["book"]["id"]

        response = client.delete(f"/books/{book_id}", headers=other)

        assert response.status_code == 403
        assert client.get(f"/books/{book_id}", headers=owner).status_code == 200

    def test_delete_by_owner(self, client):
        headers = auth_headers(client)
        book_id = create_book(client, headers).json()["book"]["id"]

        response = client.delete(f"/books/{book_id}", headers=headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Book deleted"
        assert response.json()["book"]["id"] == book_id
        assert client.get(f"/books/{book_id}", headers=headers).status_code == 404


class TestErrorHandling:
    """Test cases for generic error responses."""

    def test_unknown_route(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error"] == "Route not found"

    def test_corrupt_storage_is_a_generic_failure(self, client, data_dir):
        headers = auth_headers(client)
        (data_dir / "books.json").write_text("{broken", encoding="utf-8")

        response = client.get("/books", headers=headers)

        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal server error",
            "detail": None,
            "status_code": 500,
        }
